"""
Provider interfaces for the catalog's external services.

Each provider type defines a protocol that concrete implementations must follow:
- Embedding generation (for semantic search)
- Chat completion (for AI discovery and the assistant)
- Discovery tiers (for finding books outside the catalog)

Concrete providers are auto-registered when this module is imported.
"""

from .base import (
    ChatProvider,
    DiscoveryTier,
    EmbeddingProvider,
    ProviderRegistry,
    extract_json_object,
    get_registry,
    request_headers,
)

# Import concrete providers to trigger registration
from . import embeddings
from . import llm
from .discovery import AIRankedDiscovery, PlaceholderDiscovery, StructuredBookSearch
from .embeddings import JinaEmbedding
from .llm import ChatCompletions, system_prompt

__all__ = [
    # Protocols
    "EmbeddingProvider",
    "ChatProvider",
    "DiscoveryTier",
    # Concrete providers
    "JinaEmbedding",
    "ChatCompletions",
    "AIRankedDiscovery",
    "StructuredBookSearch",
    "PlaceholderDiscovery",
    # Registry
    "ProviderRegistry",
    "get_registry",
    # Helpers
    "extract_json_object",
    "request_headers",
    "system_prompt",
]
