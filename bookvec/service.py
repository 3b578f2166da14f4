"""
Wiring for a complete book library.

BookLibrary loads configuration, opens the catalog store and creates the
providers from the registry, all sharing one pooled HTTP client.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from .analytics import QualityPolicy, catalog_statistics, vector_quality_analysis
from .assistant import AssistantService
from .catalog import CatalogVectorStore
from .catalog_store import CatalogStore, SQLiteCatalogStore
from .config import ServiceConfig, load_or_create_config
from .discovery import MultiTierSearchAggregator
from .logging_config import configure_ops_log, remove_ops_log
from .providers import ChatProvider, EmbeddingProvider, get_registry

logger = logging.getLogger(__name__)

DATABASE_FILENAME = "catalog.db"


class BookLibrary:
    """
    A book catalog with semantic search, external discovery and an assistant.

    Example:
        async with BookLibrary("./library") as lib:
            await lib.catalog.add_item("Dune", "Desert planet epic", "A-12")
            results = await lib.catalog.search("space opera")
            candidates = await lib.discovery.discover("history")
    """

    def __init__(
        self,
        store_path: Optional[str | Path] = None,
        *,
        config: Optional[ServiceConfig] = None,
        store: Optional[CatalogStore] = None,
        embedder: Optional[EmbeddingProvider] = None,
        chat: Optional[ChatProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Args:
            store_path: Directory holding bookvec.toml and the catalog database
            config: Pre-loaded ServiceConfig (skips filesystem config discovery)
            store: Injected catalog store (skips the SQLite default)
            embedder: Injected embedding provider
            chat: Injected chat provider
            client: Shared HTTP client; created (and later closed) if omitted
        """
        # --- Config resolution ---
        if config is not None:
            self._config = config
            self._store_path = config.path
        elif store_path is not None:
            self._store_path = Path(store_path).resolve()
            self._config = load_or_create_config(self._store_path)
        else:
            self._store_path = None
            self._config = ServiceConfig()

        # --- Shared transport ---
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

        # --- Providers ---
        registry = get_registry()
        if embedder is None:
            embedder = registry.create_embedding(
                self._config.embedding.provider,
                {"config": self._config.embedding, "client": self._client},
            )
        if chat is None:
            chat = registry.create_chat(
                self._config.chat.provider,
                {"config": self._config.chat, "client": self._client},
            )
        self.embedder = embedder
        self.chat = chat

        # --- Persistent operations log ---
        self._ops_log_handler = None
        if self._store_path is not None:
            self._ops_log_handler = configure_ops_log(self._store_path)

        # --- Catalog store ---
        if store is None:
            db_path = self._store_path / DATABASE_FILENAME if self._store_path else ":memory:"
            store = SQLiteCatalogStore(db_path)
        self.store = store

        # --- Components ---
        self.catalog = CatalogVectorStore(self.store, self.embedder)
        self.discovery = MultiTierSearchAggregator(
            config=self._config.discovery, chat=self.chat, client=self._client
        )
        self.assistant = AssistantService(self.chat, self.store, self._config.assistant)

    @property
    def config(self) -> ServiceConfig:
        return self._config

    def statistics(self, policy: Optional[QualityPolicy] = None) -> dict[str, Any]:
        """Catalog statistics for the whole catalog."""
        return catalog_statistics(self.store.list_all(), policy)

    def vector_quality(self) -> dict[str, Any]:
        """Vector quality analysis for the whole catalog."""
        return vector_quality_analysis(self.store.list_all())

    async def aclose(self) -> None:
        """Close discovery tiers, the HTTP client (if owned), the store and the ops log."""
        await self.discovery.aclose()
        if self._owns_client:
            await self._client.aclose()

        if hasattr(self.store, "close"):
            self.store.close()

        remove_ops_log(self._ops_log_handler)
        self._ops_log_handler = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
