"""
Perplexity Grading Provider.

Perplexity's chat-completions endpoint takes structured output as a JSON
schema rather than OpenAI's ``json_object`` mode.
"""
from typing import Any, Dict, Optional

from mock_interview.providers.grading.base import GradingProvider
from mock_interview.providers.grading.chat_completion import ChatCompletionGradingClient
from mock_interview.services.prompts import EVALUATION_SCHEMA

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"
PERPLEXITY_DEFAULT_MODEL = "llama-3-sonar-small-32k-chat"


class PerplexityGradingClient(ChatCompletionGradingClient):
    """Grading client for Perplexity-compatible endpoints."""

    provider = GradingProvider.PERPLEXITY

    def __init__(
        self,
        model: str = PERPLEXITY_DEFAULT_MODEL,
        api_url: str = PERPLEXITY_API_URL,
        api_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(model=model, api_url=api_url, api_key=api_key, **kwargs)

    def structured_response_format(self) -> Optional[Dict[str, Any]]:
        return {
            "type": "json_schema",
            "json_schema": {"schema": EVALUATION_SCHEMA},
        }
