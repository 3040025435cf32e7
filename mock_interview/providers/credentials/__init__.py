"""
Grading Credential Stores.

Default: InMemoryCredentialStore
"""
from typing import Optional

from mock_interview.core.config import Settings, get_settings
from mock_interview.core.database import MongoDBClient
from mock_interview.providers.credentials.base import CredentialStore
from mock_interview.providers.credentials.memory_provider import InMemoryCredentialStore
from mock_interview.providers.credentials.mongo_provider import MongoCredentialStore


def create_credential_store(
    settings: Optional[Settings] = None,
    mongodb: Optional[MongoDBClient] = None,
) -> CredentialStore:
    """Create the configured credential store."""
    settings = settings or get_settings()
    backend = settings.credential_store_backend.lower()

    if backend == "mongodb":
        if mongodb is None:
            raise ValueError("MongoDB credential store requires a MongoDB client")
        return MongoCredentialStore(mongodb.grading_credentials)

    if backend == "memory":
        return InMemoryCredentialStore()

    raise ValueError(f"Unsupported credential store backend: {settings.credential_store_backend}")


__all__ = [
    "CredentialStore",
    "InMemoryCredentialStore",
    "MongoCredentialStore",
    "create_credential_store",
]
