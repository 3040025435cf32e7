"""
Speech I/O adapter.

Capability-gated front for a synthesizer and a recognizer. Calling an
unsupported operation is a no-op that returns immediately.
"""
import asyncio
import logging
from typing import Callable, Optional

from mock_interview.core.errors import DeviceError
from mock_interview.providers.speech.base import (
    SpeechRecognizer,
    SpeechSynthesizer,
    TranscriptListener,
)

logger = logging.getLogger(__name__)


class SpeechAdapter:
    """
    Wraps speech synthesis and recognition backends.

    Usage:
        speech = SpeechAdapter(synthesizer, recognizer)
        if speech.supports_synthesis:
            await speech.speak("Tell me about the JVM.")
        unsubscribe = speech.on_transcript(handle_transcript)
        await speech.start_listening()
    """

    def __init__(
        self,
        synthesizer: Optional[SpeechSynthesizer] = None,
        recognizer: Optional[SpeechRecognizer] = None,
    ):
        self._synthesizer = synthesizer
        self._recognizer = recognizer
        self._speech_task: Optional[asyncio.Task] = None

    @property
    def supports_synthesis(self) -> bool:
        return self._synthesizer is not None and self._synthesizer.available

    @property
    def supports_recognition(self) -> bool:
        return self._recognizer is not None and self._recognizer.available

    @property
    def is_listening(self) -> bool:
        return self.supports_recognition and self._recognizer.listening

    @property
    def is_speaking(self) -> bool:
        return self._speech_task is not None and not self._speech_task.done()

    async def cancel_speech(self) -> None:
        """Cancel playback in progress, if any."""
        task = self._speech_task
        if task is None or task.done():
            return
        task.cancel()
        await self._synthesizer.cancel()

    async def speak(self, text: str) -> None:
        """
        Speak ``text`` and return once playback ends.

        Prior playback is cancelled first. A playback error is logged and
        treated as playback having ended.
        """
        if not self.supports_synthesis or not text.strip():
            return

        await self.cancel_speech()

        task = asyncio.ensure_future(self._synthesizer.speak(text))
        self._speech_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled():
            logger.debug("Speech superseded by newer playback")
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Speech playback failed: {error}")

    def on_transcript(self, listener: TranscriptListener) -> Callable[[], None]:
        """Register a transcript listener. Returns an unsubscribe callable."""
        if self._recognizer is None:
            return lambda: None
        return self._recognizer.on_transcript(listener)

    async def start_listening(self) -> bool:
        """
        Begin continuous transcription.

        Returns:
            True if the recognizer is now listening
        """
        if not self.supports_recognition:
            return False
        if self._recognizer.listening:
            return True
        try:
            await self._recognizer.start()
        except DeviceError as e:
            logger.warning(f"Could not start speech recognition: {e.message}")
            return False
        return True

    async def stop_listening(self) -> None:
        if not self.supports_recognition or not self._recognizer.listening:
            return
        await self._recognizer.stop()
