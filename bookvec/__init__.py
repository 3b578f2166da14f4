"""
bookvec

Semantic search and AI assistance for a library book catalog.

Quick Start:
    from bookvec import BookLibrary

    async with BookLibrary("./library") as lib:
        await lib.catalog.add_item("Dune", "Desert planet epic")
        results = await lib.catalog.search("space opera")
        candidates = await lib.discovery.discover("history")
        tags = await lib.assistant.generate_tags("A desert planet epic")

Environment Variables:
    JINA_API_KEY          - Embedding service
    PERPLEXITY_API_KEY    - Chat completions (AI discovery, assistant)
    GOOGLE_BOOKS_API_KEY  - Structured book search (optional)
    BOOKVEC_VERBOSE       - Set to 1 for debug logging

Importing bookvec leaves logging alone. Applications opt in with
bookvec.logging_config.configure_from_env(), which reads BOOKVEC_VERBOSE.

Configuration is persisted in bookvec.toml within the library directory.
"""

from .analytics import CompletenessPolicy, catalog_statistics, vector_quality_analysis
from .assistant import AssistantService
from .catalog import CatalogVectorStore
from .catalog_store import CatalogStore, SQLiteCatalogStore
from .config import ServiceConfig
from .discovery import DiscoveryResult, MultiTierSearchAggregator
from .errors import BookvecError, DegradedInput, ParseFailure, TransportFailure
from .service import BookLibrary
from .similarity import cosine_similarity, rank
from .types import ExternalCandidate, Failure, FailureKind, Item, Outcome, ScoredResult

__version__ = "0.1.0"
__all__ = [
    "BookLibrary",
    "CatalogVectorStore",
    "MultiTierSearchAggregator",
    "AssistantService",
    "CatalogStore",
    "SQLiteCatalogStore",
    "ServiceConfig",
    "DiscoveryResult",
    "Item",
    "ScoredResult",
    "ExternalCandidate",
    "Outcome",
    "Failure",
    "FailureKind",
    "BookvecError",
    "TransportFailure",
    "ParseFailure",
    "DegradedInput",
    "cosine_similarity",
    "rank",
    "catalog_statistics",
    "vector_quality_analysis",
    "CompletenessPolicy",
]
