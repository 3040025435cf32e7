"""
Mock Interview (Text Mode).

Runs a complete interview session in the terminal:
1. Select questions from the chosen topics
2. Answer each question, getting AI feedback after every answer
3. End the interview for the overall evaluation, saved to the session store

Prerequisites:
- OPENAI_API_KEY or PERPLEXITY_API_KEY set (or in .env)

Usage:
    python scripts/run_mock_interview.py --topics java SystemDesign --count 5
    python scripts/run_mock_interview.py --list-topics
    python scripts/run_mock_interview.py --topics java --speak   # read questions aloud

While answering, type /end to finish early or /quit to abandon the session.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mock_interview.core.config import get_settings
from mock_interview.models.session import OperationOutcome, SelectionMode, SessionPhase
from mock_interview.providers.grading import GradingClientFactory
from mock_interview.providers.session_store import LocalSessionStore
from mock_interview.providers.speech import SpeechAdapter
from mock_interview.services.question_bank import QuestionBankService
from mock_interview.services.session_orchestrator import SessionOrchestrator

CLI_USER = "cli-user"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Practice a mock interview in the terminal")
    parser.add_argument("--topics", nargs="+", default=["java"], help="Topics to draw questions from")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SelectionMode],
        default=SelectionMode.SEQUENTIAL.value,
        help="Question selection mode",
    )
    parser.add_argument("--count", type=int, default=5, help="Number of questions")
    parser.add_argument("--provider", choices=["openai", "perplexity"], default="openai")
    parser.add_argument("--speak", action="store_true", help="Read questions aloud with pyttsx3")
    parser.add_argument("--list-topics", action="store_true", help="List topics and exit")
    parser.add_argument("--verbose", action="store_true", help="Show service logs")
    return parser.parse_args(argv)


def print_separator(char="=", length=70):
    print(char * length)


async def read_line(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, prompt)


async def read_answer() -> str:
    """Read a multi-line answer terminated by an empty line."""
    lines = []
    while True:
        line = await read_line("> " if not lines else "  ")
        if line.strip() in ("/end", "/quit"):
            return line.strip()
        if not line.strip():
            if lines:
                break
            continue
        lines.append(line)
    return "\n".join(lines)


def build_speech(enabled: bool) -> SpeechAdapter:
    if not enabled:
        return SpeechAdapter()

    from mock_interview.providers.speech.pyttsx3_synthesizer import Pyttsx3Synthesizer

    speech = SpeechAdapter(synthesizer=Pyttsx3Synthesizer())
    if not speech.supports_synthesis:
        print("Speech synthesis is not available on this system; continuing in text only.")
    return speech


async def run(args) -> int:
    settings = get_settings()
    question_bank = QuestionBankService(Path(settings.question_bank_path))

    if args.list_topics:
        for info in await question_bank.get_topic_info():
            print(f"  {info.name:<30} {info.question_count} questions")
        return 0

    orchestrator = SessionOrchestrator(
        question_bank=question_bank,
        grading_client_factory=GradingClientFactory(settings).create,
        session_store=LocalSessionStore(settings.session_store_path),
        user_id=CLI_USER,
        speech=build_speech(args.speak),
        settings=settings,
    )

    outcome = await orchestrator.start_session(args.topics, args.mode, args.count, args.provider)
    if outcome != OperationOutcome.APPLIED:
        print(f"Could not start the interview: {orchestrator.last_error}")
        return 1

    print_separator()
    print(f"  MOCK INTERVIEW: {', '.join(args.topics)} ({len(orchestrator.questions)} questions)")
    print_separator()

    try:
        while orchestrator.current_question is not None:
            question = orchestrator.current_question
            print(f"\nQuestion {orchestrator.cursor + 1}/{len(orchestrator.questions)} [{question.topic}]")
            print(f"  {question.text}\n")
            await orchestrator.ask_current_question()

            answer = await read_answer()
            if answer == "/quit":
                await orchestrator.reset()
                print("Interview abandoned.")
                return 0
            if answer == "/end":
                break

            outcome = await orchestrator.submit_answer(answer)
            while outcome == OperationOutcome.FAILED:
                print(f"\nGrading failed ({orchestrator.last_error}).")
                retry = await read_line("Retry the same answer? [Y/n] ")
                if retry.strip().lower() == "n":
                    await orchestrator.reset()
                    return 1
                outcome = await orchestrator.submit_answer(answer)

            print_separator("-")
            print(orchestrator.feedback[-1])
            print_separator("-")

        print("\nEvaluating your interview...")
        outcome = await orchestrator.end_session()
        while outcome == OperationOutcome.FAILED:
            print(f"Evaluation failed ({orchestrator.last_error}).")
            retry = await read_line("Retry the evaluation? [Y/n] ")
            if retry.strip().lower() == "n":
                return 1
            outcome = await orchestrator.end_session()

        result = orchestrator.evaluation_result
        print_separator()
        print(f"  SCORE: {result.overall_score:.0f}/100")
        print_separator()
        print(result.feedback)
        if result.strengths:
            print("\nStrengths:")
            for item in result.strengths:
                print(f"  + {item}")
        if result.weaknesses:
            print("\nAreas to improve:")
            for item in result.weaknesses:
                print(f"  - {item}")

        await orchestrator.wait_for_persistence()
        if orchestrator.phase == SessionPhase.COMPLETE:
            print(f"\nSaved as session {orchestrator.session_id}")
        return 0
    finally:
        await orchestrator.close()


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    try:
        return asyncio.run(run(args))
    except (KeyboardInterrupt, EOFError):
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
