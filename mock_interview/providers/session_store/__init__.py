"""
Session Store Providers.

Plug-and-play persistence for finished interview sessions.
Default: LocalSessionStore (JSON files under ./data/sessions/)
"""
from typing import Optional

from mock_interview.core.config import Settings, get_settings
from mock_interview.core.database import MongoDBClient
from mock_interview.providers.session_store.base import SessionStore
from mock_interview.providers.session_store.local_provider import LocalSessionStore
from mock_interview.providers.session_store.mongo_provider import MongoSessionStore


def create_session_store(
    settings: Optional[Settings] = None,
    mongodb: Optional[MongoDBClient] = None,
) -> SessionStore:
    """
    Create the configured session store.

    ``mongodb`` must be connected when the backend is "mongodb".
    """
    settings = settings or get_settings()
    backend = settings.session_store_backend.lower()

    if backend == "mongodb":
        if mongodb is None:
            raise ValueError("MongoDB session store requires a MongoDB client")
        return MongoSessionStore(mongodb.interview_sessions)

    if backend == "local":
        return LocalSessionStore(settings.session_store_path)

    raise ValueError(f"Unsupported session store backend: {settings.session_store_backend}")


__all__ = [
    "SessionStore",
    "LocalSessionStore",
    "MongoSessionStore",
    "create_session_store",
]
