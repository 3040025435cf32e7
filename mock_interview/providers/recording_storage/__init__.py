"""
Recording Storage Providers.

Modular plug-and-play storage backends for the recording library.
Default: LocalRecordingStorage (stores in ./data/recordings/)
"""
from typing import Optional

from mock_interview.core.config import Settings, get_settings
from mock_interview.providers.recording_storage.base import RecordingStorageProvider
from mock_interview.providers.recording_storage.local_provider import LocalRecordingStorage
from mock_interview.providers.recording_storage.s3_provider import S3RecordingStorage


async def create_recording_storage(settings: Optional[Settings] = None) -> RecordingStorageProvider:
    """Create and initialize the configured recording storage."""
    settings = settings or get_settings()
    backend = settings.recording_storage_backend.lower()

    if backend == "s3":
        storage = S3RecordingStorage(settings)
        await storage.initialize()
        return storage

    if backend == "local":
        return LocalRecordingStorage(settings.recording_storage_path)

    raise ValueError(f"Unsupported recording storage backend: {settings.recording_storage_backend}")


__all__ = [
    "RecordingStorageProvider",
    "LocalRecordingStorage",
    "S3RecordingStorage",
    "create_recording_storage",
]
