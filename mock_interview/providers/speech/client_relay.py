"""
Browser-relayed speech backends.

The browser owns the speakers and the microphone: synthesis requests are
sent as ``speak`` messages and complete on the client's ``speech_done``
acknowledgement; recognition transcripts arrive as ``transcript`` messages.
"""
import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Optional

from mock_interview.providers.speech.base import SpeechRecognizer, SpeechSynthesizer

logger = logging.getLogger(__name__)

SendMessage = Callable[[Dict[str, Any]], Awaitable[None]]


class ClientRelaySynthesizer(SpeechSynthesizer):
    """Asks the connected browser to speak and waits for its acknowledgement."""

    def __init__(self, send: SendMessage, timeout: Optional[float] = None):
        self._send = send
        self._timeout = timeout
        self._pending: Dict[str, asyncio.Future] = {}

    async def speak(self, text: str) -> None:
        utterance_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[utterance_id] = future

        try:
            await self._send({"type": "speak", "utterance_id": utterance_id, "text": text})
            if self._timeout:
                await asyncio.wait_for(future, self._timeout)
            else:
                await future
        except asyncio.TimeoutError:
            logger.warning(f"No speech_done for utterance {utterance_id}, continuing")
        finally:
            self._pending.pop(utterance_id, None)

    def acknowledge(self, utterance_id: Optional[str] = None, error: Optional[str] = None) -> None:
        """
        Mark playback as finished.

        Without an id, every pending utterance is resolved. A client-side
        playback error also counts as finished.
        """
        if error:
            logger.warning(f"Client speech playback error: {error}")

        if utterance_id is None:
            futures = list(self._pending.values())
        else:
            futures = [self._pending[utterance_id]] if utterance_id in self._pending else []

        for future in futures:
            if not future.done():
                future.set_result(None)

    async def cancel(self) -> None:
        await self._send({"type": "cancel_speech"})
        self.acknowledge()


class ClientTranscriptRecognizer(SpeechRecognizer):
    """Receives Web Speech transcripts pushed by the browser."""

    def __init__(self, send: Optional[SendMessage] = None):
        super().__init__()
        self._send = send

    async def start(self) -> None:
        await super().start()
        if self._send:
            await self._send({"type": "listen", "active": True})

    async def stop(self) -> None:
        await super().stop()
        if self._send:
            await self._send({"type": "listen", "active": False})

    def push_transcript(self, transcript: str) -> None:
        """Deliver the browser's full utterance-so-far."""
        if not self.listening:
            logger.debug("Dropping transcript received while not listening")
            return
        self._emit(transcript)
