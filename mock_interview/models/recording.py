"""
Models for media recordings.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RecorderStatus(str, Enum):
    """State of a media recorder."""
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass
class RecordingArtifact:
    """A finished recording: every chunk captured between start and stop."""
    blob: bytes
    mime_type: str
    started_at: datetime

    @property
    def size_bytes(self) -> int:
        return len(self.blob)


class RecordingMetadata(BaseModel):
    """Metadata for a recording kept in the recording library."""
    recording_id: str
    user_id: str
    session_id: Optional[str] = None
    mime_type: str = "video/webm"
    size_bytes: int = 0
    started_at: Optional[datetime] = None
    stored_at: datetime
    custom_metadata: Dict[str, str] = Field(default_factory=dict)


class RecordingListResponse(BaseModel):
    """Recordings owned by the current user."""
    recordings: List[RecordingMetadata]
    total: int
