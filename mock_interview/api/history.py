"""
Session history endpoints.

Read-only views over the finished-session records in the session store.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mock_interview.api.deps import get_app_settings, get_session_store
from mock_interview.core.auth import get_current_user
from mock_interview.core.config import Settings
from mock_interview.models.auth import CurrentUser
from mock_interview.models.session import SessionHistoryResponse, SessionRecord
from mock_interview.providers.session_store.base import SessionStore

router = APIRouter(prefix="/api/v1/history", tags=["history"])


@router.get("", response_model=SessionHistoryResponse)
async def list_history(
    limit: Optional[int] = Query(None, ge=1, le=100, description="Maximum number of records"),
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
    user: CurrentUser = Depends(get_current_user),
):
    """Finished sessions, newest first."""
    records = await store.list(user.user_id, limit or settings.history_default_limit)
    return SessionHistoryResponse(records=records, total=len(records))


@router.get("/{session_id}", response_model=SessionRecord)
async def get_history_record(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
    user: CurrentUser = Depends(get_current_user),
):
    """One finished session."""
    record = await store.read(user.user_id, session_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No finished session {session_id}",
        )
    return record
