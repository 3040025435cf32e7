"""
Chunked media recorder.

State machine: idle -> recording <-> paused -> stopped. ``stop()`` joins
every chunk collected since ``start()`` into one RecordingArtifact.
"""
import logging
from datetime import datetime
from typing import List, Optional

from mock_interview.core.errors import DeviceError
from mock_interview.models.recording import RecorderStatus, RecordingArtifact
from mock_interview.models.session import utcnow
from mock_interview.providers.media.base import MediaDevice

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "video/webm;codecs=vp8,opus"
DEFAULT_TIMESLICE_MS = 1000


class MediaCapture:
    """
    Records a media device into a single artifact.

    Usage:
        capture = MediaCapture(device)
        await capture.start()
        ...
        artifact = await capture.stop()
    """

    def __init__(
        self,
        device: MediaDevice,
        mime_type: str = DEFAULT_MIME_TYPE,
        timeslice_ms: int = DEFAULT_TIMESLICE_MS,
    ):
        self.device = device
        self.mime_type = mime_type
        self.timeslice_ms = timeslice_ms

        self.status = RecorderStatus.IDLE
        self.error: Optional[DeviceError] = None
        self._chunks: List[bytes] = []
        self._started_at: Optional[datetime] = None

    @property
    def is_recording(self) -> bool:
        return self.status in (RecorderStatus.RECORDING, RecorderStatus.PAUSED)

    async def acquire(self) -> None:
        """Acquire the device if not already held."""
        if self.device.acquired:
            return
        try:
            await self.device.acquire()
        except DeviceError as e:
            self.status = RecorderStatus.ERROR
            self.error = e
            logger.warning(f"Media acquisition failed: {e.message}")
            raise
        self.device.set_handlers(self._on_chunk, self._on_device_error)

    async def start(self) -> None:
        """Start recording. A no-op while already recording or paused."""
        if self.is_recording:
            return

        await self.acquire()
        self._chunks = []
        self._started_at = utcnow()
        self.error = None
        self.status = RecorderStatus.RECORDING
        await self.device.start(self.mime_type, self.timeslice_ms)
        logger.info("Media recording started")

    async def pause(self) -> None:
        if self.status != RecorderStatus.RECORDING:
            return
        self.status = RecorderStatus.PAUSED
        await self.device.pause()

    async def resume(self) -> None:
        if self.status != RecorderStatus.PAUSED:
            return
        self.status = RecorderStatus.RECORDING
        await self.device.resume()

    async def stop(self) -> Optional[RecordingArtifact]:
        """
        Finish recording and release the device.

        Returns:
            The concatenated artifact, or None when nothing was recording
        """
        if not self.is_recording:
            return None

        self.status = RecorderStatus.STOPPED
        await self.device.release()

        artifact = RecordingArtifact(
            blob=b"".join(self._chunks),
            mime_type=self.mime_type,
            started_at=self._started_at,
        )
        self._chunks = []
        logger.info(f"Media recording stopped ({artifact.size_bytes} bytes)")
        return artifact

    async def close(self) -> None:
        """Discard any recording in progress and release the device."""
        if self.is_recording:
            self.status = RecorderStatus.IDLE
        self._chunks = []
        await self.device.release()

    def _on_chunk(self, data: bytes) -> None:
        if self.status == RecorderStatus.RECORDING and data:
            self._chunks.append(data)

    def _on_device_error(self, error: DeviceError) -> None:
        logger.warning(f"Media device failed while recording: {error.message}")
        self.error = error
        self.status = RecorderStatus.ERROR
        self._chunks = []
