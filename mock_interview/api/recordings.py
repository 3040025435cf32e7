"""
Recording library endpoints.

Uploads take the raw recording as the request body, the way a browser
posts a MediaRecorder blob.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from mock_interview.api.deps import get_recording_storage
from mock_interview.core.auth import get_current_user
from mock_interview.core.errors import ValidationError
from mock_interview.models.auth import CurrentUser
from mock_interview.models.recording import RecordingListResponse, RecordingMetadata
from mock_interview.models.session import utcnow
from mock_interview.providers.recording_storage.base import RecordingStorageProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/recordings", tags=["recordings"])

DEFAULT_MIME_TYPE = "video/webm"


def _not_found(recording_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Recording {recording_id} not found",
    )


@router.post("", response_model=RecordingMetadata, status_code=status.HTTP_201_CREATED)
async def upload_recording(
    request: Request,
    session_id: Optional[str] = Query(None, description="Interview session the recording belongs to"),
    storage: RecordingStorageProvider = Depends(get_recording_storage),
    user: CurrentUser = Depends(get_current_user),
):
    """Store a recording sent as the raw request body."""
    data = await request.body()
    if not data:
        raise ValidationError("Recording body is empty")

    mime_type = request.headers.get("content-type") or DEFAULT_MIME_TYPE
    meta = await storage.store(
        user.user_id,
        data,
        mime_type,
        session_id=session_id,
        started_at=utcnow(),
    )
    logger.info(f"Uploaded recording {meta.recording_id} ({meta.size_bytes} bytes)")
    return meta


@router.get("", response_model=RecordingListResponse)
async def list_recordings(
    limit: int = Query(100, ge=1, le=500),
    storage: RecordingStorageProvider = Depends(get_recording_storage),
    user: CurrentUser = Depends(get_current_user),
):
    recordings = await storage.list_recordings(user.user_id, limit)
    return RecordingListResponse(recordings=recordings, total=len(recordings))


@router.get("/{recording_id}")
async def download_recording(
    recording_id: str,
    storage: RecordingStorageProvider = Depends(get_recording_storage),
    user: CurrentUser = Depends(get_current_user),
):
    meta = await storage.get_metadata(user.user_id, recording_id)
    data = await storage.retrieve(user.user_id, recording_id) if meta else None
    if data is None:
        raise _not_found(recording_id)
    return Response(content=data, media_type=meta.mime_type)


@router.delete("/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recording(
    recording_id: str,
    storage: RecordingStorageProvider = Depends(get_recording_storage),
    user: CurrentUser = Depends(get_current_user),
):
    if not await storage.delete(user.user_id, recording_id):
        raise _not_found(recording_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
