"""
Base provider protocols and shared helpers.

These define the interfaces that concrete providers must implement.
Using Protocol for structural subtyping - no explicit inheritance required.
"""

import json
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Optional, Protocol, runtime_checkable

from ..types import ExternalCandidate, Outcome, Vector

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Per-request transport metadata
# -----------------------------------------------------------------------------

def request_headers(api_key: Optional[str] = None, **extra: str) -> Mapping[str, str]:
    """
    Build an immutable header mapping for one outbound request.

    Headers are passed to each ``client.post(..., headers=...)`` call and
    never set on the shared client, so concurrent calls to different
    services cannot see each other's credentials.
    """
    headers = {"Accept": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    headers.update(extra)
    return MappingProxyType(headers)


# -----------------------------------------------------------------------------
# Best-effort JSON extraction
# -----------------------------------------------------------------------------

def extract_json_object(text: Optional[str]) -> Optional[dict[str, Any]]:
    """
    Extract a JSON object embedded in free text.

    Parses the substring from the first ``{`` to the last ``}``. Returns
    None when there is no brace pair, the substring is not valid JSON, or
    it is not an object.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        logger.debug("Embedded JSON did not parse: %s", e)
        return None
    return data if isinstance(data, dict) else None


# -----------------------------------------------------------------------------
# Embedding Generation
# -----------------------------------------------------------------------------

@runtime_checkable
class EmbeddingProvider(Protocol):
    """
    Generates vector embeddings from text.

    The same provider must be used for items and queries so vectors are
    comparable. Failures are returned as degraded outcomes with an empty
    vector, never raised.
    """

    @property
    def dimension(self) -> int:
        """The dimensionality of the embedding vectors."""
        ...

    async def embed_outcome(self, text: str) -> Outcome[Vector]:
        """Embed ``text``, reporting how the call went."""
        ...

    async def embed(self, text: str) -> Vector:
        """Embed ``text``; an empty list means the embedding is unavailable."""
        ...


# -----------------------------------------------------------------------------
# Chat completion
# -----------------------------------------------------------------------------

@runtime_checkable
class ChatProvider(Protocol):
    """
    Sends a system + user prompt to a generative text service.

    Example implementation:
        class EchoChat:
            async def complete(self, system, user, **options):
                return Outcome.success(user)
    """

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
        """
        Generate text.

        Args:
            system: System role prompt
            user: User prompt
            max_tokens, temperature, top_p: Sampling overrides
            extra: Additional request fields (e.g. search filters)

        Returns:
            Outcome with the raw message content; "" on failure
        """
        ...


# -----------------------------------------------------------------------------
# External discovery
# -----------------------------------------------------------------------------

@runtime_checkable
class DiscoveryTier(Protocol):
    """One source in the external discovery fallback chain."""

    name: str

    async def search(self, query: str) -> Outcome[list[ExternalCandidate]]:
        """Find candidates for ``query``; failures degrade to an empty list."""
        ...


# -----------------------------------------------------------------------------
# Provider Registry
# -----------------------------------------------------------------------------

class ProviderRegistry:
    """
    Registry for discovering and instantiating providers by name.

    Example:
        registry = ProviderRegistry()
        registry.register_embedding("jina", JinaEmbedding)
        provider = registry.create_embedding("jina", {"config": EmbeddingConfig()})
    """

    def __init__(self):
        self._embedding_providers: dict[str, type] = {}
        self._chat_providers: dict[str, type] = {}
        self._lazy_loaded = False

    def _ensure_providers_loaded(self) -> None:
        """Lazily import provider modules so they register themselves."""
        if self._lazy_loaded:
            return
        self._lazy_loaded = True
        from . import embeddings, llm  # noqa: F401

    def register_embedding(self, name: str, provider_class: type) -> None:
        """Register an embedding provider class."""
        self._embedding_providers[name] = provider_class

    def register_chat(self, name: str, provider_class: type) -> None:
        """Register a chat provider class."""
        self._chat_providers[name] = provider_class

    @staticmethod
    def _create_provider(kind: str, name: str, providers: dict, params: dict | None):
        """Shared factory logic for all provider types."""
        if name not in providers:
            available = ", ".join(providers.keys()) or "none"
            raise ValueError(
                f"Unknown {kind} provider: '{name}'. "
                f"Available providers: {available}."
            )
        try:
            return providers[name](**(params or {}))
        except Exception as e:
            raise RuntimeError(
                f"Failed to create {kind} provider '{name}': {e}"
            ) from e

    def create_embedding(self, name: str, params: dict | None = None) -> EmbeddingProvider:
        """Create an embedding provider instance."""
        self._ensure_providers_loaded()
        return self._create_provider("embedding", name, self._embedding_providers, params)

    def create_chat(self, name: str, params: dict | None = None) -> ChatProvider:
        """Create a chat provider instance."""
        self._ensure_providers_loaded()
        return self._create_provider("chat", name, self._chat_providers, params)

    def list_embedding_providers(self) -> list[str]:
        self._ensure_providers_loaded()
        return list(self._embedding_providers.keys())

    def list_chat_providers(self) -> list[str]:
        self._ensure_providers_loaded()
        return list(self._chat_providers.keys())


# Global registry instance
# Concrete providers register themselves on import
_registry = ProviderRegistry()


def get_registry() -> ProviderRegistry:
    """Get the global provider registry."""
    return _registry
