"""
Abstract base class for recording storage providers.

Defines the interface that the recording library's storage backends
implement, so local and S3 storage can be swapped by configuration.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from mock_interview.models.recording import RecordingArtifact, RecordingMetadata

MIME_EXTENSIONS = {
    "video/webm": "webm",
    "audio/webm": "webm",
    "video/mp4": "mp4",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
}


def extension_for(mime_type: str) -> str:
    """File extension for a MIME type, ignoring codec parameters."""
    base = mime_type.split(";", 1)[0].strip().lower()
    return MIME_EXTENSIONS.get(base, "bin")


def new_recording_id() -> str:
    return uuid.uuid4().hex


class RecordingStorageProvider(ABC):
    """
    Abstract interface for recording storage backends.

    Implementations:
    - LocalRecordingStorage: Stores in local filesystem (./data/recordings/)
    - S3RecordingStorage: Stores in AWS S3 or MinIO

    Usage:
        meta = await provider.store(user_id, blob, "video/webm")
        blob = await provider.retrieve(user_id, meta.recording_id)
        recordings = await provider.list_recordings(user_id)
    """

    @abstractmethod
    async def store(
        self,
        user_id: str,
        data: bytes,
        mime_type: str,
        session_id: Optional[str] = None,
        started_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> RecordingMetadata:
        """
        Store a recording.

        Args:
            user_id: Owner of the recording
            data: Recording bytes
            mime_type: MIME type reported by the recorder
            session_id: Interview session the recording belongs to, if any
            started_at: When capture started
            metadata: Optional custom metadata to store

        Returns:
            Metadata of the stored recording, including its new id
        """
        pass

    @abstractmethod
    async def retrieve(self, user_id: str, recording_id: str) -> Optional[bytes]:
        """
        Retrieve a stored recording.

        Returns:
            Recording bytes, or None if not found
        """
        pass

    @abstractmethod
    async def get_metadata(self, user_id: str, recording_id: str) -> Optional[RecordingMetadata]:
        """
        Get metadata for a stored recording.

        Returns:
            RecordingMetadata if the recording exists, None otherwise
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, recording_id: str) -> bool:
        """
        Delete a stored recording.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_recordings(self, user_id: str, limit: int = 100) -> List[RecordingMetadata]:
        """
        List a user's recordings, newest first.
        """
        pass

    async def store_artifact(
        self,
        user_id: str,
        artifact: RecordingArtifact,
        session_id: Optional[str] = None,
    ) -> RecordingMetadata:
        """Store a finished recording produced by MediaCapture."""
        return await self.store(
            user_id,
            artifact.blob,
            artifact.mime_type,
            session_id=session_id,
            started_at=artifact.started_at,
        )

    async def health_check(self) -> bool:
        return True
