"""
Voice answer flow.

Speaks each question, listens for the answer and submits it once the
speaker has been silent for ``silence_timeout`` seconds. Every transcript
update replaces the pending answer and restarts the silence timer.
"""
import asyncio
import logging
from typing import Callable, Optional

from mock_interview.models.session import OperationOutcome
from mock_interview.providers.speech.adapter import SpeechAdapter
from mock_interview.services.session_orchestrator import SessionOrchestrator

logger = logging.getLogger(__name__)


class VoiceAnswerFlow:
    """
    Silence-triggered auto-submit on top of a SpeechAdapter.

    After a successful submission the buffer is cleared and the next
    question is asked. After a failed one the buffer is kept and listening
    resumes, so the answer is never silently lost.
    """

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        speech: SpeechAdapter,
        silence_timeout: float = 2.0,
    ):
        self.orchestrator = orchestrator
        self.speech = speech
        self.silence_timeout = silence_timeout

        self.active = False
        self._buffer = ""
        self._timer: Optional[asyncio.TimerHandle] = None
        self._submit_task: Optional[asyncio.Task] = None
        self._submitting = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def pending_answer(self) -> str:
        """Transcript heard since the last successful submission."""
        return self._buffer

    async def submit_pending_answer(self) -> OperationOutcome:
        """
        Submit the pending answer right away (before ending the interview).

        The buffer is cleared only when the session accepted the answer.
        """
        if not self._buffer.strip():
            return OperationOutcome.IGNORED
        outcome = await self.orchestrator.submit_answer(self._buffer)
        if outcome == OperationOutcome.APPLIED:
            self._buffer = ""
        return outcome

    async def start(self) -> None:
        """Ask the current question and start listening for the answer."""
        if self.active:
            return
        self.active = True
        self._unsubscribe = self.speech.on_transcript(self._on_transcript)
        logger.info(f"Voice flow started for session {self.orchestrator.session_id}")
        await self._ask_and_listen()

    async def stop(self) -> None:
        """Cancel the silence timer, stop listening and stop speaking."""
        if not self.active:
            return
        self.active = False
        self._cancel_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.speech.stop_listening()
        await self.speech.cancel_speech()
        logger.info(f"Voice flow stopped for session {self.orchestrator.session_id}")

    async def wait_idle(self) -> None:
        """Wait for an auto-submission in progress to finish."""
        if self._submit_task is not None and not self._submit_task.done():
            await self._submit_task

    async def _ask_and_listen(self):
        await self.orchestrator.ask_current_question()
        if not self.active:
            return
        if self.orchestrator.current_question is None:
            logger.info("No question left to answer, not listening")
            return
        await self.speech.start_listening()

    def _on_transcript(self, transcript: str):
        if not self.active or self._submitting:
            return
        self._buffer = transcript
        self._restart_timer()

    def _restart_timer(self):
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.silence_timeout, self._on_silence)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_silence(self):
        self._timer = None
        if not self.active or not self._buffer.strip():
            return
        self._submit_task = asyncio.ensure_future(self._submit_pending())

    async def _submit_pending(self):
        self._submitting = True
        try:
            await self.speech.stop_listening()
            outcome = await self.orchestrator.submit_answer(self._buffer)
        finally:
            self._submitting = False

        if not self.active:
            return

        if outcome == OperationOutcome.APPLIED:
            self._buffer = ""
            await self._ask_and_listen()
        elif outcome in (OperationOutcome.FAILED, OperationOutcome.BUSY):
            logger.info(f"Auto-submit {outcome.value}, keeping the answer for retry")
            await self.speech.start_listening()
        else:
            logger.debug("Auto-submit ignored by the session")
