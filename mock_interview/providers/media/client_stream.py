"""
Browser media stream device.

The browser owns getUserMedia and MediaRecorder; this device tells it
when to record and receives the chunks it uploads (``media_chunk``).
A ``media_denied`` message from the client is a DeviceError.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from mock_interview.core.errors import DeviceError
from mock_interview.providers.media.base import MediaDevice

logger = logging.getLogger(__name__)

SendMessage = Callable[[Dict[str, Any]], Awaitable[None]]


class ClientStreamDevice(MediaDevice):
    """Media device whose tracks live in the connected browser."""

    def __init__(self, send: Optional[SendMessage] = None):
        super().__init__()
        self._send = send
        self._acquired = False
        self._denied: Optional[str] = None

    @property
    def acquired(self) -> bool:
        return self._acquired

    def bind(self, send: Optional[SendMessage]) -> None:
        """Route control messages to a (re)connected client."""
        self._send = send

    async def _notify(self, message: Dict[str, Any]) -> None:
        if self._send:
            await self._send(message)

    async def acquire(self) -> None:
        if self._denied:
            raise DeviceError(f"Media access denied: {self._denied}")
        if self._acquired:
            raise DeviceError("Media device is already in use")
        self._acquired = True
        logger.debug("Client media stream acquired")

    async def release(self) -> None:
        if not self._acquired:
            return
        self._acquired = False
        await self._notify({"type": "media_stop"})
        logger.debug("Client media stream released")

    async def start(self, mime_type: str, timeslice_ms: int) -> None:
        await self._notify({"type": "media_start", "mime_type": mime_type, "timeslice_ms": timeslice_ms})

    async def pause(self) -> None:
        await self._notify({"type": "media_pause"})

    async def resume(self) -> None:
        await self._notify({"type": "media_resume"})

    def push_chunk(self, data: bytes) -> None:
        """Deliver a chunk uploaded by the browser."""
        if not self._acquired or self._chunk_handler is None:
            logger.debug("Dropping media chunk received while not recording")
            return
        self._chunk_handler(data)

    def deny(self, reason: str = "permission denied") -> None:
        """Record a client-side acquisition failure."""
        self._denied = reason
        self._acquired = False
        logger.warning(f"Client reported media failure: {reason}")
        if self._error_handler is not None:
            self._error_handler(DeviceError(f"Media access denied: {reason}"))
