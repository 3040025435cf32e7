"""
Grading Client Interface and Base Classes.

Defines the abstract interface for grading providers, enabling swapping
between OpenAI-compatible and Perplexity-compatible backends per session.
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from mock_interview.core.errors import ParseError, ProviderError
from mock_interview.models.session import EvaluationResult
from mock_interview.services.prompts import (
    EVALUATOR_SYSTEM_PROMPT,
    INTERVIEWER_SYSTEM_PROMPT,
    build_evaluation_prompt,
    build_feedback_prompt,
)

logger = logging.getLogger(__name__)


class GradingProvider(str, Enum):
    """Supported grading provider backends."""
    OPENAI = "openai"
    PERPLEXITY = "perplexity"

    @classmethod
    def from_string(cls, value: str) -> "GradingProvider":
        try:
            return cls(value.lower())
        except (ValueError, AttributeError):
            raise ValueError(f"Unsupported grading provider: {value}")


@dataclass
class Message:
    """Chat message structure."""
    role: str  # "system", "user", "assistant"
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class GenerationConfig:
    """Configuration for one completion request."""
    max_tokens: int = 512
    temperature: float = 0.7

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "GenerationConfig":
        data = data or {}
        return cls(
            max_tokens=int(data.get("max_tokens", cls.max_tokens)),
            temperature=float(data.get("temperature", cls.temperature)),
        )


@dataclass
class GradingCredentials:
    """
    Grading credentials, passed explicitly into the clients.

    Credentials are optional until a grading call is made; a missing key
    only fails the call that needs it.
    """
    openai_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None

    def for_provider(self, provider: GradingProvider) -> Optional[str]:
        if provider == GradingProvider.OPENAI:
            return self.openai_api_key
        return self.perplexity_api_key

    @property
    def configured_providers(self) -> List[GradingProvider]:
        return [p for p in GradingProvider if self.for_provider(p)]


def system_message(content: str) -> Message:
    """Create a system message."""
    return Message(role="system", content=content)


def user_message(content: str) -> Message:
    """Create a user message."""
    return Message(role="user", content=content)


class BaseGradingClient(ABC):
    """
    Abstract base class for grading clients.

    Subclasses implement the transport (``_complete``); the feedback and
    evaluation operations, prompt assembly and response parsing live here.
    No retries are attempted; the caller decides whether to retry.
    """

    provider: GradingProvider

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        feedback_config: Optional[GenerationConfig] = None,
        evaluation_config: Optional[GenerationConfig] = None,
    ):
        self.model = model
        self.api_key = api_key
        self.feedback_config = feedback_config or GenerationConfig(max_tokens=512, temperature=0.7)
        self.evaluation_config = evaluation_config or GenerationConfig(max_tokens=1024, temperature=0.3)

    @abstractmethod
    async def _complete(
        self,
        messages: List[Message],
        config: GenerationConfig,
        structured: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message content.

        Args:
            messages: System and user messages
            config: Generation parameters
            structured: Request a JSON response body

        Raises:
            RemoteError: The HTTP call did not succeed
        """
        pass

    @abstractmethod
    async def close(self):
        """Release transport resources."""
        pass

    def _require_credential(self) -> str:
        if not self.api_key:
            raise ProviderError(f"API key not found for {self.provider.value}")
        return self.api_key

    async def ask_question(self, question_text: str, answer_text: str) -> str:
        """
        Get feedback on one answer.

        Raises:
            ProviderError: No credential configured for this provider
            RemoteError: The HTTP call failed
            ParseError: The response carried no message content
        """
        self._require_credential()
        messages = [
            system_message(INTERVIEWER_SYSTEM_PROMPT),
            user_message(build_feedback_prompt(question_text, answer_text)),
        ]
        return await self._complete(messages, self.feedback_config)

    async def evaluate(
        self,
        questions: List[str],
        answers: List[str],
        reference_answers: List[str],
    ) -> EvaluationResult:
        """
        Evaluate a whole interview.

        Raises:
            ProviderError: No credential configured for this provider
            RemoteError: The HTTP call failed
            ParseError: The response is not valid structured evaluation data
        """
        self._require_credential()
        messages = [
            system_message(EVALUATOR_SYSTEM_PROMPT),
            user_message(build_evaluation_prompt(questions, answers, reference_answers)),
        ]
        content = await self._complete(messages, self.evaluation_config, structured=True)
        return self.parse_evaluation(content)

    @staticmethod
    def _parse_json_response(response: str) -> Dict[str, Any]:
        """Parse a JSON object from a completion, tolerating markdown fences."""
        response = response.strip()

        if "```json" in response:
            start = response.find("```json") + 7
            end = response.find("```", start)
            response = response[start:end].strip()
        elif "```" in response:
            start = response.find("```") + 3
            end = response.find("```", start)
            response = response[start:end].strip()

        try:
            data = json.loads(response)
        except json.JSONDecodeError as e:
            logger.debug(f"Response was: {response[:500]}")
            raise ParseError(f"Evaluation response is not valid JSON: {e}")

        if not isinstance(data, dict):
            raise ParseError("Evaluation response is not a JSON object")
        return data

    @classmethod
    def parse_evaluation(cls, content: str) -> EvaluationResult:
        """Convert an evaluation completion into an EvaluationResult."""
        data = cls._parse_json_response(content)
        if "score" not in data:
            raise ParseError("Evaluation response has no score")

        try:
            return EvaluationResult(
                overall_score=data["score"],
                feedback=data.get("feedback") or "",
                strengths=data.get("strengths") or [],
                weaknesses=data.get("weaknesses") or [],
            )
        except PydanticValidationError as e:
            raise ParseError(f"Invalid evaluation fields: {e.errors()[0]['msg']}")
