"""
Grading Providers Package.

Interchangeable OpenAI-compatible and Perplexity-compatible grading backends.
"""
from mock_interview.providers.grading.base import (
    BaseGradingClient,
    GradingProvider,
    GradingCredentials,
    GenerationConfig,
    Message,
    system_message,
    user_message,
)
from mock_interview.providers.grading.chat_completion import ChatCompletionGradingClient
from mock_interview.providers.grading.openai_provider import OpenAIGradingClient
from mock_interview.providers.grading.perplexity_provider import PerplexityGradingClient
from mock_interview.providers.grading.factory import GradingClientFactory

__all__ = [
    # Base classes
    "BaseGradingClient",
    "GradingProvider",
    "GradingCredentials",
    "GenerationConfig",
    "Message",
    # Message helpers
    "system_message",
    "user_message",
    # Providers
    "ChatCompletionGradingClient",
    "OpenAIGradingClient",
    "PerplexityGradingClient",
    # Factory
    "GradingClientFactory",
]
