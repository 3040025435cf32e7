"""
In-memory credential store.
"""
import logging
from dataclasses import replace
from typing import Dict, Optional, Union

from mock_interview.providers.credentials.base import CredentialStore
from mock_interview.providers.grading.base import GradingCredentials, GradingProvider

logger = logging.getLogger(__name__)


class InMemoryCredentialStore(CredentialStore):
    """Keeps credentials in a dict for the lifetime of the process."""

    def __init__(self):
        self._credentials: Dict[str, GradingCredentials] = {}

    async def get_credentials(self, user_id: str) -> GradingCredentials:
        # Hand out a copy so callers cannot mutate stored state
        return replace(self._credentials.get(user_id, GradingCredentials()))

    async def set_key(
        self,
        user_id: str,
        provider: Union[str, GradingProvider],
        api_key: Optional[str],
    ) -> GradingCredentials:
        field = self._field_for(provider)
        current = self._credentials.get(user_id, GradingCredentials())
        updated = replace(current, **{field: api_key or None})
        self._credentials[user_id] = updated
        logger.info(f"Updated {field} for user {user_id}")
        return replace(updated)

    async def clear(self, user_id: str) -> None:
        self._credentials.pop(user_id, None)
        logger.info(f"Cleared grading credentials for user {user_id}")
