"""
Mock Interview - Main FastAPI Application

This is the entry point for the interview practice API.
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mock_interview.api import credentials, health, history, recordings, sessions, topics, ws_sessions
from mock_interview.core.config import Settings, get_settings
from mock_interview.core.database import MongoDBClient
from mock_interview.core.errors import (
    InterviewError,
    SessionNotFoundError,
    TopicNotFoundError,
    ValidationError,
)
from mock_interview.providers.credentials import create_credential_store
from mock_interview.providers.grading import GradingClientFactory
from mock_interview.providers.recording_storage import create_recording_storage
from mock_interview.providers.session_store import create_session_store
from mock_interview.services.question_bank import QuestionBankService
from mock_interview.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Builds the stores and the session manager, and tears them down.
    """
    settings: Settings = app.state.settings
    logger.info("Starting Mock Interview...")

    mongodb: Optional[MongoDBClient] = None
    backends = {settings.session_store_backend.lower(), settings.credential_store_backend.lower()}
    if "mongodb" in backends:
        mongodb = MongoDBClient(settings)
        await mongodb.connect()
        logger.info("MongoDB connection established")

    app.state.mongodb = mongodb
    app.state.question_bank = QuestionBankService(Path(settings.question_bank_path))
    app.state.session_store = create_session_store(settings, mongodb)
    app.state.credential_store = create_credential_store(settings, mongodb)
    app.state.recording_storage = await create_recording_storage(settings)
    app.state.session_manager = SessionManager(
        question_bank=app.state.question_bank,
        grading_factory=GradingClientFactory(settings),
        session_store=app.state.session_store,
        credential_store=app.state.credential_store,
        recording_storage=app.state.recording_storage,
        settings=settings,
    )
    logger.info(
        f"Stores ready: sessions={settings.session_store_backend}, "
        f"credentials={settings.credential_store_backend}, "
        f"recordings={settings.recording_storage_backend}"
    )

    yield

    # Shutdown
    logger.info("Shutting down Mock Interview...")
    await app.state.session_manager.close()
    if mongodb is not None:
        await mongodb.disconnect()


def _error_response(status_code: int, error: InterviewError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": error.message, "kind": error.kind},
    )


def register_exception_handlers(app: FastAPI):
    """Map service errors to HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(TopicNotFoundError)
    async def topic_not_found_handler(request: Request, exc: TopicNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(InterviewError)
    async def interview_error_handler(request: Request, exc: InterviewError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.describe()}")
        return _error_response(status.HTTP_502_BAD_GATEWAY, exc)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Mock interview practice: topic questions, AI feedback and scoring",
        version=health.VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(topics.router)
    app.include_router(sessions.router)
    app.include_router(history.router)
    app.include_router(credentials.router)
    app.include_router(recordings.router)
    app.include_router(ws_sessions.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mock_interview.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
