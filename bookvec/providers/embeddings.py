"""
Embedding provider backed by a remote embeddings endpoint.

Speaks the Jina / OpenAI-style contract:
    POST {model, task, input: [text]}  ->  {"data": [{"embedding": [...]}]}
"""

import logging
import math
from typing import Optional

import httpx

from ..config import EmbeddingConfig
from ..errors import BookvecError, DegradedInput, ParseFailure, TransportFailure, check_response, transport_failure
from ..types import Outcome, Vector, to_float32
from .base import get_registry, request_headers

logger = logging.getLogger(__name__)


class JinaEmbedding:
    """
    Embedding client for the Jina embeddings API.

    Requires: JINA_API_KEY environment variable (name configurable), or
    ``api_key`` in the EmbeddingConfig.

    Every call sends exactly one request: no retry and no caching. Any
    failure comes back as an empty vector.
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or EmbeddingConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)

    @property
    def dimension(self) -> int:
        return self.config.dimension

    @property
    def model_name(self) -> str:
        return self.config.model

    async def embed(self, text: str) -> Vector:
        """Embed ``text``; an empty list means the embedding is unavailable."""
        return (await self.embed_outcome(text)).value

    async def embed_outcome(self, text: str) -> Outcome[Vector]:
        """Embed ``text``, reporting transport/parse failures as a degraded outcome."""
        try:
            return Outcome.success(await self._request(text))
        except DegradedInput as e:
            return e.to_outcome([])
        except BookvecError as e:
            logger.warning("Embedding unavailable: %s", e)
            return e.to_outcome([])

    async def _request(self, text: str) -> Vector:
        if text is None or not text.strip():
            raise DegradedInput("empty text")

        api_key = self.config.resolve_api_key()
        if not api_key:
            raise TransportFailure(
                f"No API key for embedding service (set {self.config.api_key_env})"
            )

        payload = {
            "model": self.config.model,
            "task": self.config.task,
            "input": [text],
        }
        try:
            response = await self._client.post(
                self.config.url,
                json=payload,
                headers=request_headers(api_key),
                timeout=self.config.timeout,
            )
        except httpx.HTTPError as e:
            raise transport_failure(e, "Embedding") from e
        check_response(response, "Embedding")
        return self._parse(response)

    def _parse(self, response: httpx.Response) -> Vector:
        try:
            data = response.json()
            embedding = data["data"][0]["embedding"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ParseFailure(f"Embedding response missing data[0].embedding: {e}") from e
        if not isinstance(embedding, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in embedding
        ):
            raise ParseFailure("Embedding response is not a numeric array")
        vector = to_float32(embedding)
        if not all(math.isfinite(v) for v in vector):
            raise ParseFailure("Embedding response has values outside the float32 range")
        if vector and len(vector) != self.dimension:
            logger.warning(
                "Embedding dimension mismatch: configured=%d, received=%d",
                self.dimension, len(vector),
            )
        return vector

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()


# Register providers
_registry = get_registry()
_registry.register_embedding("jina", JinaEmbedding)
