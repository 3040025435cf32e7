"""
Local speech synthesis using pyttsx3.

Uses system TTS engines (SAPI5 on Windows, NSSpeechSynthesizer on macOS,
espeak on Linux). Used by the CLI runner to read questions aloud.
"""
import asyncio
import logging
from typing import Optional

import pyttsx3

from mock_interview.providers.speech.base import SpeechSynthesizer

logger = logging.getLogger(__name__)


class Pyttsx3Synthesizer(SpeechSynthesizer):
    """
    Speaks through the local audio device.

    Playback runs in the default thread pool; a fresh engine is created
    per utterance to avoid pyttsx3 threading issues.
    """

    def __init__(
        self,
        voice_id: Optional[str] = None,
        rate: int = 150,  # Words per minute
        volume: float = 1.0,  # 0.0 to 1.0
    ):
        self.voice_id = voice_id
        self.rate = rate
        self.volume = max(0.0, min(1.0, volume))
        self._engine: Optional[pyttsx3.Engine] = None
        self._available: Optional[bool] = None

    @property
    def available(self) -> bool:
        # Probe the system engine once
        if self._available is None:
            try:
                engine = pyttsx3.init()
                engine.stop()
                self._available = True
            except Exception as e:
                logger.warning(f"pyttsx3 engine unavailable: {e}")
                self._available = False
        return self._available

    def _create_engine(self) -> pyttsx3.Engine:
        engine = pyttsx3.init()
        engine.setProperty("rate", self.rate)
        engine.setProperty("volume", self.volume)
        if self.voice_id:
            engine.setProperty("voice", self.voice_id)
        return engine

    def _speak_sync(self, text: str) -> None:
        engine = self._create_engine()
        self._engine = engine
        try:
            engine.say(text)
            engine.runAndWait()
        finally:
            engine.stop()
            if self._engine is engine:
                self._engine = None

    async def speak(self, text: str) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._speak_sync, text)

    async def cancel(self) -> None:
        engine = self._engine
        if engine is not None:
            engine.stop()
