"""
Media device interface.

A device is an exclusive camera+microphone handle that delivers recorded
chunks to a single handler while started.
"""
from abc import ABC, abstractmethod
from typing import Callable, Optional

from mock_interview.core.errors import DeviceError

ChunkHandler = Callable[[bytes], None]
ErrorHandler = Callable[[DeviceError], None]


class MediaDevice(ABC):
    """
    Abstract camera/microphone source.

    Implementations:
    - ClientStreamDevice: browser MediaRecorder chunks relayed over WebSocket
    """

    def __init__(self):
        self._chunk_handler: Optional[ChunkHandler] = None
        self._error_handler: Optional[ErrorHandler] = None

    def set_handlers(
        self,
        on_chunk: Optional[ChunkHandler],
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        self._chunk_handler = on_chunk
        self._error_handler = on_error

    @property
    @abstractmethod
    def acquired(self) -> bool:
        pass

    @abstractmethod
    async def acquire(self) -> None:
        """
        Request camera and microphone access.

        Raises:
            DeviceError: Permission denied, no device, or already acquired
        """
        pass

    @abstractmethod
    async def release(self) -> None:
        """Release the tracks. Safe to call when not acquired."""
        pass

    @abstractmethod
    async def start(self, mime_type: str, timeslice_ms: int) -> None:
        """Start emitting chunks every ``timeslice_ms``."""
        pass

    async def pause(self) -> None:
        pass

    async def resume(self) -> None:
        pass
