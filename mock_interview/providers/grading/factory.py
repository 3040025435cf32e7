"""
Grading Client Factory.

Creates the grading client for a session's chosen provider from settings,
the grading YAML config and the user's credentials.
"""
import logging
from typing import Any, Dict, Optional, Union

from mock_interview.core.config import Settings, get_settings, load_grading_config
from mock_interview.providers.grading.base import (
    BaseGradingClient,
    GenerationConfig,
    GradingCredentials,
    GradingProvider,
)
from mock_interview.providers.grading.openai_provider import OpenAIGradingClient
from mock_interview.providers.grading.perplexity_provider import PerplexityGradingClient

logger = logging.getLogger(__name__)


class GradingClientFactory:
    """
    Factory for creating grading client instances.

    Server-side keys from settings act as a fallback when the user has not
    configured one for the provider.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        grading_config: Optional[Dict[str, Any]] = None,
    ):
        self.settings = settings or get_settings()
        self.grading_config = grading_config if grading_config is not None else load_grading_config()

    def _provider_config(self, provider: GradingProvider) -> Dict[str, Any]:
        return self.grading_config.get("providers", {}).get(provider.value, {})

    def _generation_config(self, purpose: str) -> GenerationConfig:
        return GenerationConfig.from_dict(self.grading_config.get("generation", {}).get(purpose))

    def _resolve_key(self, provider: GradingProvider, credentials: Optional[GradingCredentials]) -> Optional[str]:
        key = credentials.for_provider(provider) if credentials else None
        if key:
            return key
        if provider == GradingProvider.OPENAI:
            return self.settings.openai_api_key
        return self.settings.perplexity_api_key

    def create(
        self,
        provider: Union[str, GradingProvider],
        credentials: Optional[GradingCredentials] = None,
    ) -> BaseGradingClient:
        """
        Create a grading client.

        Args:
            provider: Provider name or enum
            credentials: User-supplied credentials (may be empty)

        Returns:
            Configured grading client. A missing key is not an error here;
            it surfaces as ProviderError on the first grading call.
        """
        if not isinstance(provider, GradingProvider):
            provider = GradingProvider.from_string(provider)

        provider_config = self._provider_config(provider)
        api_key = self._resolve_key(provider, credentials)
        common = {
            "api_key": api_key,
            "timeout": self.settings.grading_timeout_seconds,
            "feedback_config": self._generation_config("feedback"),
            "evaluation_config": self._generation_config("evaluation"),
        }

        logger.info(
            f"Creating grading client: {provider.value} "
            f"(credential {'present' if api_key else 'missing'})"
        )

        if provider == GradingProvider.OPENAI:
            return OpenAIGradingClient(
                model=provider_config.get("model", "gpt-3.5-turbo"),
                api_url=self.settings.openai_api_url,
                **common,
            )

        return PerplexityGradingClient(
            model=provider_config.get("model", "llama-3-sonar-small-32k-chat"),
            api_url=self.settings.perplexity_api_url,
            **common,
        )
