"""
Chat-completion provider for generative text services.

Speaks the OpenAI-compatible chat contract used by Perplexity:
    POST {model, messages, max_tokens, temperature, top_p, ...}
      ->  {"choices": [{"message": {"content": "..."}}]}
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

import httpx

from ..config import ChatConfig
from ..errors import BookvecError, ParseFailure, TransportFailure, check_response, transport_failure
from ..types import Outcome
from .base import get_registry, request_headers

logger = logging.getLogger(__name__)


def system_prompt(role: str) -> str:
    """System message for a named assistant role."""
    return f"你是一個{role}，請提供準確且有用的回答。"


class ChatCompletions:
    """
    Chat provider for an OpenAI-compatible ``/chat/completions`` endpoint.

    Requires: PERPLEXITY_API_KEY environment variable (name configurable),
    or ``api_key`` in the ChatConfig.

    The bearer token is attached per request; the shared HTTP client is
    never modified, so this provider can be used from concurrent tasks.
    """

    def __init__(
        self,
        config: Optional[ChatConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or ChatConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)

    def _payload(
        self,
        system: str,
        user: str,
        max_tokens: Optional[int],
        temperature: Optional[float],
        top_p: Optional[float],
        extra: Optional[Mapping[str, Any]],
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens if max_tokens is not None else self.config.max_tokens,
            "temperature": temperature if temperature is not None else self.config.temperature,
            "top_p": top_p if top_p is not None else self.config.top_p,
        }
        if extra:
            payload.update(extra)
        return payload

    async def complete(
        self,
        system: str,
        user: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        top_p: Optional[float] = None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> Outcome[str]:
        """Send a system+user prompt and return the message content."""
        try:
            text = await self._request(
                self._payload(system, user, max_tokens, temperature, top_p, extra)
            )
        except BookvecError as e:
            logger.warning("Chat completion unavailable: %s", e)
            return e.to_outcome("")
        return Outcome.success(text)

    async def _request(self, payload: dict[str, Any]) -> str:
        api_key = self.config.resolve_api_key()
        if not api_key:
            raise TransportFailure(
                f"No API key for chat service (set {self.config.api_key_env})"
            )
        try:
            response = await self._client.post(
                self.config.url,
                json=payload,
                headers=request_headers(api_key),
                timeout=self.config.timeout,
            )
        except httpx.HTTPError as e:
            raise transport_failure(e, "Chat completion") from e
        check_response(response, "Chat completion")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ParseFailure(f"Chat response missing choices[0].message.content: {e}") from e
        if not isinstance(content, str):
            raise ParseFailure("Chat response content is not text")
        return content

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()


# Register providers
_registry = get_registry()
_registry.register_chat("perplexity", ChatCompletions)
_registry.register_chat("openai-compatible", ChatCompletions)
