"""
Local filesystem storage provider for recordings.

Stores recordings in ./data/recordings/{user_id}/{recording_id}.{ext}
with a companion {recording_id}.meta JSON file.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import quote

from mock_interview.models.recording import RecordingMetadata
from mock_interview.models.session import utcnow
from mock_interview.providers.recording_storage.base import (
    RecordingStorageProvider,
    extension_for,
    new_recording_id,
)

logger = logging.getLogger(__name__)


def _safe_name(value: str) -> str:
    """Percent-encode an id into a single path component; distinct ids stay distinct."""
    return quote(value, safe="-_@").replace(".", "%2E") or "%"


class LocalRecordingStorage(RecordingStorageProvider):
    """
    Store recordings in the local filesystem.

    Default location: ./data/recordings/
    """

    def __init__(self, base_path: str = "data/recordings"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Recording storage directory: {self.base_path.absolute()}")

    def _user_dir(self, user_id: str) -> Path:
        return self.base_path / _safe_name(user_id)

    def _meta_path(self, user_id: str, recording_id: str) -> Path:
        return self._user_dir(user_id) / f"{_safe_name(recording_id)}.meta"

    def _blob_path(self, user_id: str, meta: RecordingMetadata) -> Path:
        return self._user_dir(user_id) / f"{_safe_name(meta.recording_id)}.{extension_for(meta.mime_type)}"

    async def store(
        self,
        user_id: str,
        data: bytes,
        mime_type: str,
        session_id: Optional[str] = None,
        started_at: Optional[datetime] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> RecordingMetadata:
        meta = RecordingMetadata(
            recording_id=new_recording_id(),
            user_id=user_id,
            session_id=session_id,
            mime_type=mime_type,
            size_bytes=len(data),
            started_at=started_at,
            stored_at=utcnow(),
            custom_metadata=metadata or {},
        )

        blob_path = self._blob_path(user_id, meta)
        blob_path.parent.mkdir(parents=True, exist_ok=True)

        with open(blob_path, "wb") as f:
            f.write(data)
        with open(self._meta_path(user_id, meta.recording_id), "w", encoding="utf-8") as f:
            f.write(meta.model_dump_json(indent=2))

        logger.info(f"Stored recording: {blob_path} ({len(data)} bytes)")
        return meta

    async def get_metadata(self, user_id: str, recording_id: str) -> Optional[RecordingMetadata]:
        meta_path = self._meta_path(user_id, recording_id)
        if not meta_path.exists():
            return None
        with open(meta_path, "r", encoding="utf-8") as f:
            return RecordingMetadata.model_validate(json.load(f))

    async def retrieve(self, user_id: str, recording_id: str) -> Optional[bytes]:
        meta = await self.get_metadata(user_id, recording_id)
        if meta is None:
            logger.debug(f"Recording not found: {recording_id}")
            return None

        blob_path = self._blob_path(user_id, meta)
        if not blob_path.exists():
            logger.warning(f"Recording metadata without data: {blob_path}")
            return None

        with open(blob_path, "rb") as f:
            return f.read()

    async def delete(self, user_id: str, recording_id: str) -> bool:
        meta = await self.get_metadata(user_id, recording_id)
        if meta is None:
            return False

        blob_path = self._blob_path(user_id, meta)
        if blob_path.exists():
            blob_path.unlink()
        self._meta_path(user_id, recording_id).unlink()

        logger.info(f"Deleted recording: {recording_id}")
        return True

    async def list_recordings(self, user_id: str, limit: int = 100) -> List[RecordingMetadata]:
        user_dir = self._user_dir(user_id)
        if not user_dir.exists():
            return []

        recordings = []
        for meta_path in user_dir.glob("*.meta"):
            with open(meta_path, "r", encoding="utf-8") as f:
                recordings.append(RecordingMetadata.model_validate(json.load(f)))

        recordings.sort(key=lambda m: m.stored_at, reverse=True)
        return recordings[:limit]

    async def health_check(self) -> bool:
        return self.base_path.exists()
