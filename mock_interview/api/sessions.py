"""
Interview Session API endpoints.

Operations that fail on an external call return the session state with
``phase`` and ``last_error`` set; only a busy rejection is an HTTP error.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from mock_interview.api.deps import get_session_manager
from mock_interview.core.auth import get_current_user
from mock_interview.models.auth import CurrentUser
from mock_interview.models.session import (
    OperationOutcome,
    SessionResponse,
    StartSessionRequest,
    SubmitAnswerRequest,
)
from mock_interview.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


def _reject_if_busy(outcome: OperationOutcome):
    if outcome == OperationOutcome.BUSY:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Another operation is in progress for this session",
        )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def start_session(
    request: StartSessionRequest,
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Start a new interview session.

    Loads the requested topics, selects the questions and opens the
    session. If the questions cannot be loaded the session is returned
    in the ``failed`` phase.
    """
    orchestrator, outcome = await manager.create_session(user.user_id, request)
    return SessionResponse.from_snapshot(orchestrator.snapshot(), outcome)


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """List the user's live sessions."""
    return [SessionResponse.from_snapshot(o.snapshot()) for o in manager.list_sessions(user.user_id)]


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """Get the current state of a session."""
    orchestrator = manager.get(user.user_id, session_id)
    return SessionResponse.from_snapshot(orchestrator.snapshot())


@router.post("/{session_id}/answer", response_model=SessionResponse)
async def submit_answer(
    session_id: str,
    request: SubmitAnswerRequest,
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Submit an answer to the current question.

    A blank answer is ignored. On a grading failure the answer is not
    recorded and ``last_error`` says why; the same answer can be resubmitted.
    """
    orchestrator = manager.get(user.user_id, session_id)
    outcome = await orchestrator.submit_answer(request.text)
    _reject_if_busy(outcome)
    return SessionResponse.from_snapshot(orchestrator.snapshot(), outcome)


@router.post("/{session_id}/end", response_model=SessionResponse)
async def end_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """
    End the interview and run the evaluation.

    Submit any pending answer first. Can be retried after a failed
    evaluation.
    """
    outcome = await manager.end_session(user.user_id, session_id)
    _reject_if_busy(outcome)
    orchestrator = manager.get(user.user_id, session_id)
    return SessionResponse.from_snapshot(orchestrator.snapshot(), outcome)


@router.post("/{session_id}/reset", response_model=SessionResponse)
async def reset_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Discard the session's progress and close it.

    Returns the idle state; the id is no longer live afterwards, start a
    new session to practise again.
    """
    orchestrator = await manager.remove(user.user_id, session_id)
    return SessionResponse.from_snapshot(orchestrator.snapshot(), OperationOutcome.APPLIED)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
    user: CurrentUser = Depends(get_current_user),
):
    """Forget a live session. Persisted history is not affected."""
    await manager.remove(user.user_id, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
