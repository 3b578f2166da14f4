"""
Catalog operations that keep each item's vector in step with its text.

Every mutation that touches title or description embeds the new text
before writing. A failed embedding never blocks the write: the item is
stored with an empty vector and simply scores 0 in semantic search.
"""

import asyncio
import logging
from typing import Iterable, Optional

from .catalog_store import CatalogStore
from .providers.base import EmbeddingProvider
from .similarity import rank, rank_uniform
from .types import (
    MAX_TITLE_LENGTH,
    ExternalCandidate,
    Item,
    ScoredResult,
    validate_location,
    validate_title,
)

logger = logging.getLogger(__name__)


def compose_description(candidate: ExternalCandidate) -> str:
    """Description for a promoted candidate: its text followed by author, ISBN and year lines."""
    return (
        f"{candidate.description}\n\n"
        f"作者：{candidate.author}\n"
        f"ISBN：{candidate.isbn}\n"
        f"出版年份：{candidate.publish_year}"
    )


class CatalogVectorStore:
    """
    Semantic catalog on top of a CatalogStore and an embedding provider.

    Store exceptions propagate unchanged; embedding failures degrade to an
    empty vector. Concurrent updates to one item are last-write-wins.
    """

    def __init__(self, store: CatalogStore, embedder: EmbeddingProvider):
        self.store = store
        self.embedder = embedder

    async def _embed_item(self, item: Item) -> Item:
        outcome = await self.embedder.embed_outcome(item.embedding_text)
        if not outcome.ok:
            logger.warning("Item %r stored without vector: %s", item.title[:60], outcome.failure)
        item.vector = list(outcome.value)
        return item

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_item(
        self,
        title: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Item:
        """
        Create an item with an embedding of its title and description.

        Raises:
            ValueError: Empty or over-long title, or over-long location
        """
        item = Item(
            title=validate_title(title),
            description=description,
            location=validate_location(location),
        )
        await self._embed_item(item)
        return self.store.create(item)

    async def update_item(self, item: Item) -> Item:
        """
        Write ``item``, recomputing its vector from the current text.

        Raises:
            ValueError: Empty or over-long title, or over-long location
            KeyError: If the store has no item with this id
        """
        updated = item.copy()
        updated.title = validate_title(item.title)
        validate_location(item.location)
        await self._embed_item(updated)
        return self.store.update(updated)

    def delete_item(self, item_id: int) -> bool:
        """Remove an item and its vector."""
        return self.store.delete(item_id)

    async def bulk_recompute_vectors(self, concurrency: int = 1) -> int:
        """
        Re-embed every item in the catalog.

        Items are processed one at a time unless ``concurrency`` is above 1,
        in which case at most that many embedding requests are in flight.
        The embedding service's rate limits are the caller's concern.

        Returns:
            Number of items processed, whatever their embedding outcome
        """
        items = self.store.list_all()
        if concurrency <= 1:
            for item in items:
                await self._embed_item(item)
                self.store.update(item)
            return len(items)

        semaphore = asyncio.Semaphore(concurrency)

        async def recompute(item: Item) -> None:
            async with semaphore:
                await self._embed_item(item)
            self.store.update(item)

        try:
            async with asyncio.TaskGroup() as group:
                for item in items:
                    group.create_task(recompute(item))
        except ExceptionGroup as eg:
            # Remaining tasks were cancelled; report the first error unwrapped
            raise eg.exceptions[0] from None
        return len(items)

    async def import_candidates(self, candidates: Iterable[ExternalCandidate]) -> int:
        """
        Promote external candidates into catalog items.

        Candidates without a title, or whose title is already in the catalog
        (case-insensitive), are skipped. Each promoted item is embedded.

        Returns:
            Number of items added
        """
        existing = {item.title.lower() for item in self.store.list_all()}
        added = 0
        for candidate in candidates:
            title = (candidate.title or "").strip()[:MAX_TITLE_LENGTH]
            if not title or title.lower() in existing:
                continue
            await self.add_item(title, compose_description(candidate), None)
            existing.add(title.lower())
            added += 1
        if added:
            logger.info("Imported %d external candidates", added)
        return added

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_item(self, item_id: int) -> Optional[Item]:
        return self.store.get(item_id)

    def list_items(self) -> list[Item]:
        return self.store.list_all()

    async def search(self, query: str, limit: Optional[int] = 10) -> list[ScoredResult]:
        """
        Rank the whole catalog by similarity to ``query``.

        An empty query returns nothing without calling the embedding
        service. If the query cannot be embedded, every item scores 0 and
        catalog order is kept.
        """
        if query is None or not query.strip():
            return []
        query_vector = await self.embedder.embed(query)
        return rank(query_vector, self.store.list_all(), limit)

    def search_by_title(self, fragment: str) -> list[ScoredResult]:
        """Items whose title contains ``fragment`` (case-insensitive)."""
        needle = (fragment or "").strip().lower()
        if not needle:
            return []
        return rank_uniform(self.store.query(lambda item: needle in item.title.lower()))

    def search_by_location(self, location: str) -> list[ScoredResult]:
        """Items whose location contains ``location`` (case-insensitive)."""
        needle = (location or "").strip().lower()
        if not needle:
            return []
        return rank_uniform(
            self.store.query(lambda item: needle in (item.location or "").lower())
        )

    def find_similar(self, item_id: int, limit: Optional[int] = 5) -> list[ScoredResult]:
        """
        Items most similar to a stored item, excluding the item itself.

        Raises:
            KeyError: If there is no item with ``item_id``
        """
        target = self.store.get(item_id)
        if target is None:
            raise KeyError(f"Item not found: {item_id}")
        others = [item for item in self.store.list_all() if item.id != item_id]
        return rank(target.vector, others, limit)
