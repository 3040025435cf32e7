"""
Grading Prompts and Templates.

Contains the prompts sent to the grading providers for per-answer
feedback and end-of-session evaluation.
"""
from typing import List


# System prompts
INTERVIEWER_SYSTEM_PROMPT = (
    "You are an interviewer conducting a technical interview. "
    "Ask clear, concise questions and evaluate responses professionally."
)

EVALUATOR_SYSTEM_PROMPT = (
    "You are an expert interviewer evaluator. "
    "Provide fair and constructive feedback on interview performance."
)


# Per-answer feedback
ANSWER_FEEDBACK_PROMPT = """Question: {question}

User's Answer: {answer}

Is this answer correct? Provide feedback."""


# End-of-session evaluation
EVALUATION_ITEM_TEMPLATE = """
Question {number}: {question}
User's Answer: {answer}
Correct Answer: {reference_answer}
"""

EVALUATION_PROMPT = """Evaluate the following interview performance:

Questions and Answers:
{items}
Please provide a score out of 100, detailed feedback, strengths, and weaknesses in the following JSON format:
{{
  "score": number,
  "feedback": string,
  "strengths": string[],
  "weaknesses": string[]
}}"""

# JSON schema of the evaluation payload, for providers that take one
EVALUATION_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {"type": "number"},
        "feedback": {"type": "string"},
        "strengths": {"type": "array", "items": {"type": "string"}},
        "weaknesses": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["score", "feedback", "strengths", "weaknesses"],
}


def build_feedback_prompt(question: str, answer: str) -> str:
    """Prompt asking for feedback on one answer."""
    return ANSWER_FEEDBACK_PROMPT.format(question=question, answer=answer)


def build_evaluation_prompt(
    questions: List[str],
    answers: List[str],
    reference_answers: List[str],
) -> str:
    """
    Prompt asking for an overall evaluation.

    Only questions that received an answer are included, so a partially
    completed interview is graded on what was actually answered.
    """
    items = []
    for i, (question, answer) in enumerate(zip(questions, answers)):
        reference = reference_answers[i] if i < len(reference_answers) else ""
        items.append(EVALUATION_ITEM_TEMPLATE.format(
            number=i + 1,
            question=question,
            answer=answer,
            reference_answer=reference,
        ))
    return EVALUATION_PROMPT.format(items="".join(items))
