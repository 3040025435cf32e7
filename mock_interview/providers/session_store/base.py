"""
Abstract base class for session store providers.

Defines the read/write contract for finished-session records keyed by
(user_id, session_id), so the backing document store can be swapped.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from mock_interview.models.session import SessionRecord


class SessionStore(ABC):
    """
    Abstract interface for finished-session persistence.

    Implementations:
    - LocalSessionStore: JSON documents on the local filesystem
    - MongoSessionStore: MongoDB collection via Motor

    Usage:
        await store.write(user_id, record)
        record = await store.read(user_id, record.session_id)
        recent = await store.list(user_id, limit=20)
    """

    @abstractmethod
    async def write(self, user_id: str, record: SessionRecord) -> None:
        """
        Persist a session record.

        Idempotent on ``record.session_id``: writing the same id again
        replaces the stored document.
        """
        pass

    @abstractmethod
    async def read(self, user_id: str, session_id: str) -> Optional[SessionRecord]:
        """
        Read one record.

        Returns:
            The record, or None if not found
        """
        pass

    @abstractmethod
    async def list(self, user_id: str, limit: int = 20) -> List[SessionRecord]:
        """
        List a user's records ordered by ``finished_at`` descending.

        Args:
            user_id: Owner of the records
            limit: Maximum number of records to return
        """
        pass

    async def health_check(self) -> bool:
        """Check whether the store is reachable."""
        return True
