"""
Faster-Whisper based speech recognizer.

Audio segments (WAV or any container soundfile can read) are appended to
an utterance buffer; once enough new audio has arrived the whole buffer
is re-transcribed and listeners receive the full utterance-so-far.
"""
import asyncio
import io
import logging
from typing import List, Optional

import numpy as np
import soundfile as sf

from mock_interview.core.errors import DeviceError
from mock_interview.providers.speech.base import SpeechRecognizer

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000


class WhisperRecognizer(SpeechRecognizer):
    """
    Speech recognizer backed by faster-whisper (CTranslate2).

    The model is loaded on first ``start()``.
    """

    def __init__(
        self,
        model_name: str = "base",
        device: str = "cpu",
        compute_type: str = "int8",
        language: Optional[str] = "en",
        min_new_audio_seconds: float = 1.0,
    ):
        super().__init__()
        self.model_name = model_name
        self.device = device
        self.compute_type = compute_type
        self.language = language
        self.min_new_audio_seconds = min_new_audio_seconds

        self._model = None
        self._chunks: List[np.ndarray] = []
        self._pending_samples = 0
        self._last_transcript = ""
        self._lock = asyncio.Lock()

    def _load_model(self):
        """Load the Whisper model."""
        from faster_whisper import WhisperModel

        logger.info(f"Loading Faster-Whisper model '{self.model_name}' on {self.device}...")
        return WhisperModel(self.model_name, device=self.device, compute_type=self.compute_type)

    async def start(self) -> None:
        if self._model is None:
            loop = asyncio.get_running_loop()
            try:
                self._model = await loop.run_in_executor(None, self._load_model)
            except Exception as e:
                logger.error(f"Failed to load Faster-Whisper model: {e}")
                raise DeviceError(f"Speech recognition model unavailable: {e}")

        self._chunks = []
        self._pending_samples = 0
        self._last_transcript = ""
        await super().start()

    async def stop(self) -> None:
        await super().stop()
        self._chunks = []
        self._pending_samples = 0

    @staticmethod
    def decode_segment(data: bytes) -> np.ndarray:
        """Decode an audio segment to mono float32 samples at 16 kHz."""
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        mono = samples.mean(axis=1)

        if sample_rate != SAMPLE_RATE and len(mono) > 0:
            duration = len(mono) / sample_rate
            target_len = max(1, int(round(duration * SAMPLE_RATE)))
            mono = np.interp(
                np.linspace(0, len(mono) - 1, target_len),
                np.arange(len(mono)),
                mono,
            ).astype(np.float32)

        return mono

    def _transcribe_sync(self, audio: np.ndarray) -> str:
        segments, _info = self._model.transcribe(audio, language=self.language, beam_size=5)
        return " ".join(segment.text.strip() for segment in segments).strip()

    async def push_audio(self, data: bytes) -> None:
        """Append an audio segment and re-transcribe when enough has arrived."""
        if not self.listening:
            logger.debug("Dropping audio received while not listening")
            return

        try:
            samples = self.decode_segment(data)
        except RuntimeError as e:
            logger.warning(f"Unreadable audio segment: {e}")
            return

        async with self._lock:
            self._chunks.append(samples)
            self._pending_samples += len(samples)
            if self._pending_samples < self.min_new_audio_seconds * SAMPLE_RATE:
                return

            self._pending_samples = 0
            audio = np.concatenate(self._chunks)
            loop = asyncio.get_running_loop()
            transcript = await loop.run_in_executor(None, self._transcribe_sync, audio)

        if self.listening and transcript and transcript != self._last_transcript:
            self._last_transcript = transcript
            self._emit(transcript)
