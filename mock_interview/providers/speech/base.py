"""
Speech synthesis and recognition interfaces.

Backends either run locally (pyttsx3, faster-whisper) or relay to the
browser's Web Speech primitives over the session WebSocket.
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, List

logger = logging.getLogger(__name__)

TranscriptListener = Callable[[str], None]


class SpeechSynthesizer(ABC):
    """Speaks text aloud; ``speak`` returns when playback has ended."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def speak(self, text: str) -> None:
        """Speak ``text`` and wait for playback to finish."""
        pass

    async def cancel(self) -> None:
        """Stop any playback in progress."""
        pass


class SpeechRecognizer(ABC):
    """
    Continuous speech recognition.

    While listening, every registered listener receives the full
    utterance-so-far each time the transcript changes (never a delta).
    """

    def __init__(self):
        self._listeners: List[TranscriptListener] = []
        self.listening = False

    @property
    def available(self) -> bool:
        return True

    def on_transcript(self, listener: TranscriptListener) -> Callable[[], None]:
        """Register a transcript listener. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, transcript: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(transcript)
            except Exception as e:
                logger.error(f"Transcript listener failed: {e}")

    async def start(self) -> None:
        self.listening = True

    async def stop(self) -> None:
        self.listening = False
