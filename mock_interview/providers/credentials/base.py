"""
Abstract base class for grading credential stores.

A key-value store of per-user grading API keys. The keys are handed to
the grading client factory when a session starts; nothing else reads them.
"""
from abc import ABC, abstractmethod
from typing import Optional, Union

from mock_interview.providers.grading.base import GradingCredentials, GradingProvider


class CredentialStore(ABC):
    """
    Abstract interface for per-user grading credentials.

    Implementations:
    - InMemoryCredentialStore: process-local dict (development, tests)
    - MongoCredentialStore: MongoDB collection via Motor
    """

    @abstractmethod
    async def get_credentials(self, user_id: str) -> GradingCredentials:
        """
        Get the user's credentials.

        Returns:
            GradingCredentials, empty if nothing is stored
        """
        pass

    @abstractmethod
    async def set_key(
        self,
        user_id: str,
        provider: Union[str, GradingProvider],
        api_key: Optional[str],
    ) -> GradingCredentials:
        """
        Store (or with ``None``, remove) one provider key.

        Returns:
            The user's credentials after the update
        """
        pass

    @abstractmethod
    async def clear(self, user_id: str) -> None:
        """Remove every key stored for the user."""
        pass

    async def has_any(self, user_id: str) -> bool:
        """Check whether the user has at least one key configured."""
        credentials = await self.get_credentials(user_id)
        return bool(credentials.configured_providers)

    @staticmethod
    def _field_for(provider: Union[str, GradingProvider]) -> str:
        if not isinstance(provider, GradingProvider):
            provider = GradingProvider.from_string(provider)
        return f"{provider.value}_api_key"
