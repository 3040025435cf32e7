"""
Health check endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

router = APIRouter()

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    session_store: bool
    recording_storage: bool
    mongodb: Optional[bool] = None
    live_sessions: int = 0
    version: str = VERSION


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Check the health of all system components.
    """
    state = request.app.state
    session_store_ok = await state.session_store.health_check()
    recording_ok = await state.recording_storage.health_check()

    mongodb_ok = None
    if state.mongodb is not None:
        mongodb_ok = await state.mongodb.health_check()

    healthy = session_store_ok and recording_ok and mongodb_ok is not False
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        session_store=session_store_ok,
        recording_storage=recording_ok,
        mongodb=mongodb_ok,
        live_sessions=len(state.session_manager),
    )


@router.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Mock Interview",
        "version": VERSION,
        "docs": "/docs",
    }
