"""
OpenAI Grading Provider.

Talks to the OpenAI chat-completions API (or any server speaking the same
protocol) and requests JSON-object responses for evaluations.
"""
from typing import Optional

from mock_interview.providers.grading.base import GradingProvider
from mock_interview.providers.grading.chat_completion import ChatCompletionGradingClient

OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_DEFAULT_MODEL = "gpt-3.5-turbo"


class OpenAIGradingClient(ChatCompletionGradingClient):
    """Grading client for OpenAI-compatible endpoints."""

    provider = GradingProvider.OPENAI

    def __init__(
        self,
        model: str = OPENAI_DEFAULT_MODEL,
        api_url: str = OPENAI_API_URL,
        api_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(model=model, api_url=api_url, api_key=api_key, **kwargs)
