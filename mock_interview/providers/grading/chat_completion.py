"""
Chat-completion transport shared by the grading providers.

Both supported providers expose an OpenAI-style ``/chat/completions``
endpoint; subclasses only differ in defaults and structured-output options.
"""
import time
import logging
from typing import Any, Dict, List, Optional

import httpx

from mock_interview.core.errors import ParseError, RemoteError
from mock_interview.providers.grading.base import (
    BaseGradingClient,
    GenerationConfig,
    Message,
)

logger = logging.getLogger(__name__)


class ChatCompletionGradingClient(BaseGradingClient):
    """
    Grading client speaking the chat-completions wire format.

    Each call is an independent request; the underlying httpx client only
    pools connections.
    """

    def __init__(
        self,
        model: str,
        api_url: str,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        **kwargs
    ):
        """
        Initialize the client.

        Args:
            model: Model name sent in the request body
            api_url: Full chat-completions endpoint URL
            api_key: Bearer credential (may be absent until a call is made)
            timeout: Request timeout in seconds
        """
        super().__init__(model, api_key=api_key, **kwargs)
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    def _build_headers(self) -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def structured_response_format(self) -> Optional[Dict[str, Any]]:
        """``response_format`` requesting a JSON body, or None if unsupported."""
        return {"type": "json_object"}

    def build_payload(
        self,
        messages: List[Message],
        config: GenerationConfig,
        structured: bool = False,
    ) -> Dict[str, Any]:
        payload = {
            "model": self.model,
            "messages": [msg.to_dict() for msg in messages],
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if structured:
            response_format = self.structured_response_format()
            if response_format:
                payload["response_format"] = response_format
        return payload

    async def _complete(
        self,
        messages: List[Message],
        config: GenerationConfig,
        structured: bool = False,
    ) -> str:
        start_time = time.time()
        payload = self.build_payload(messages, config, structured)

        try:
            response = await self._client.post(
                self.api_url,
                json=payload,
                headers=self._build_headers(),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.provider.value} API error: {e.response.status_code} - {e.response.text[:200]}")
            raise RemoteError(
                f"API request failed with status {e.response.status_code}",
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            logger.error(f"{self.provider.value} connection error: {e}")
            raise RemoteError(f"Failed to reach {self.provider.value}: {e}")
        except ValueError as e:
            raise ParseError(f"{self.provider.value} returned a non-JSON body: {e}")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ParseError(f"{self.provider.value} response has no message content")

        if not isinstance(content, str):
            raise ParseError(f"{self.provider.value} message content is not a string")

        latency_ms = (time.time() - start_time) * 1000
        logger.debug(f"{self.provider.value} completion in {latency_ms:.0f}ms ({len(content)} chars)")
        return content

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()
