"""
Shared pytest fixtures for bookvec tests.

Provides mock providers and wire-level HTTP fakes so no test touches the
network.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any, Callable, Optional

import httpx
import pytest

from bookvec.catalog import CatalogVectorStore
from bookvec.catalog_store import SQLiteCatalogStore
from bookvec.types import Failure, FailureKind, Outcome


class MockEmbeddingProvider:
    """
    Deterministic mock embedding provider for testing.

    Generates consistent embeddings based on text hash - no network access.
    Texts listed in ``vectors`` get exactly that vector instead.
    """

    dimension = 16
    model_name = "mock-model"

    def __init__(self, vectors: Optional[dict[str, list[float]]] = None, fail: bool = False):
        self.vectors = vectors or {}
        self.fail = fail
        self.calls: list[str] = []

    async def embed_outcome(self, text: str) -> Outcome[list[float]]:
        if not text or not text.strip():
            return Outcome.degraded([], FailureKind.DEGRADED_INPUT, "empty text")
        self.calls.append(text)
        if self.fail:
            return Outcome.degraded([], FailureKind.TRANSPORT, "embedding service down")
        if text in self.vectors:
            return Outcome.success(list(self.vectors[text]))
        h = hashlib.md5(text.encode()).hexdigest()
        return Outcome.success([int(h[i:i+2], 16) / 255.0 for i in range(0, 32, 2)])

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_outcome(text)).value


class MockChatProvider:
    """
    Chat provider returning canned replies.

    ``replies`` is consumed in order; a None entry simulates a failed call.
    Every request is recorded in ``requests``.
    """

    def __init__(self, *replies: Optional[str]):
        self.replies = list(replies)
        self.requests: list[dict[str, Any]] = []

    async def complete(
        self,
        system: str,
        user: str,
        *,
        max_tokens=None,
        temperature=None,
        top_p=None,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> Outcome[str]:
        self.requests.append({
            "system": system,
            "user": user,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "top_p": top_p,
            "extra": dict(extra or {}),
        })
        reply = self.replies.pop(0) if self.replies else None
        if reply is None:
            return Outcome("", Failure(FailureKind.TRANSPORT, "chat unavailable"))
        return Outcome.success(reply)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: list[httpx.Request] = []

        async def record(request: httpx.Request):
            self.requests.append(request)
            result = handler(request)
            if hasattr(result, "__await__"):
                result = await result
            return result

        super().__init__(record)


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(data).encode(),
                          headers={"Content-Type": "application/json"})


def chat_body(content: str) -> dict:
    """A chat-completions response body with one choice."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.fixture
def mock_embedding_provider():
    """Create a fresh MockEmbeddingProvider instance."""
    return MockEmbeddingProvider()


@pytest.fixture
def catalog_store():
    """In-memory SQLite catalog store."""
    store = SQLiteCatalogStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def catalog(catalog_store, mock_embedding_provider):
    """CatalogVectorStore over the in-memory store and mock embeddings."""
    return CatalogVectorStore(catalog_store, mock_embedding_provider)


@pytest.fixture(autouse=True)
def _clear_api_keys(monkeypatch):
    """Tests set the keys they need; ambient credentials never leak in."""
    for name in ("JINA_API_KEY", "PERPLEXITY_API_KEY", "GOOGLE_BOOKS_API_KEY", "BOOKVEC_VERBOSE"):
        monkeypatch.delenv(name, raising=False)
