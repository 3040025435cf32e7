"""
FastAPI dependencies resolving the services built in the lifespan.
"""
from fastapi import Request

from mock_interview.core.config import Settings
from mock_interview.providers.credentials.base import CredentialStore
from mock_interview.providers.recording_storage.base import RecordingStorageProvider
from mock_interview.providers.session_store.base import SessionStore
from mock_interview.services.question_bank import QuestionBankService
from mock_interview.services.session_manager import SessionManager


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_question_bank(request: Request) -> QuestionBankService:
    return request.app.state.question_bank


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_recording_storage(request: Request) -> RecordingStorageProvider:
    return request.app.state.recording_storage
