"""
Catalog statistics and vector quality analysis.

Pure functions over a list of items; callers pass ``store.list_all()``.
"""

import logging
import statistics
from typing import Any, Optional, Protocol, Sequence

from .similarity import cosine_similarity
from .types import Item

logger = logging.getLogger(__name__)

# Pairwise similarity is sampled from the first N vectors
SIMILARITY_SAMPLE_SIZE = 10


class QualityPolicy(Protocol):
    """Scores a catalog's data quality on a 0-100 scale."""

    def score(self, items: Sequence[Item]) -> float:
        ...


class CompletenessPolicy:
    """
    Average per-item completeness, scaled to 100.

    Each item earns ``title_weight`` for a title, ``description_weight``
    for a non-empty description and ``vector_weight`` for a vector.
    """

    def __init__(
        self,
        title_weight: float = 0.5,
        description_weight: float = 0.3,
        vector_weight: float = 0.2,
    ):
        self.title_weight = title_weight
        self.description_weight = description_weight
        self.vector_weight = vector_weight

    def item_score(self, item: Item) -> float:
        score = 0.0
        if item.title:
            score += self.title_weight
        if item.description:
            score += self.description_weight
        if item.vector:
            score += self.vector_weight
        return score

    def score(self, items: Sequence[Item]) -> float:
        if not items:
            return 0.0
        total = self.title_weight + self.description_weight + self.vector_weight
        if total == 0:
            return 0.0
        mean = statistics.fmean(self.item_score(item) for item in items)
        return mean / total * 100


def catalog_statistics(
    items: Sequence[Item],
    policy: Optional[QualityPolicy] = None,
) -> dict[str, Any]:
    """
    Summary statistics for a catalog.

    Returns:
        Dict with counts, average lengths, vector dimension statistics,
        missing-field counts and the data quality score
    """
    policy = policy or CompletenessPolicy()
    dimensions = [len(item.vector) for item in items if item.vector]

    stats: dict[str, Any] = {
        "total_items": len(items),
        "avg_title_length": statistics.fmean(len(i.title or "") for i in items) if items else 0.0,
        "avg_description_length": (
            statistics.fmean(len(i.description or "") for i in items) if items else 0.0
        ),
        "unique_locations": len({i.location for i in items if i.location}),
        "items_with_vectors": len(dimensions),
    }

    if dimensions:
        stats["avg_vector_dimension"] = statistics.fmean(dimensions)
        stats["max_vector_dimension"] = max(dimensions)
        stats["min_vector_dimension"] = min(dimensions)
        stats["vector_dimensions_consistent"] = len(set(dimensions)) == 1
    else:
        stats["avg_vector_dimension"] = 0.0
        stats["max_vector_dimension"] = 0
        stats["min_vector_dimension"] = 0
        stats["vector_dimensions_consistent"] = None

    stats["items_without_description"] = sum(1 for i in items if not i.description)
    stats["items_without_location"] = sum(1 for i in items if not i.location)
    stats["data_quality_score"] = policy.score(items)

    logger.debug("Generated catalog statistics for %d items", len(items))
    return stats


def vector_quality_analysis(items: Sequence[Item]) -> dict[str, Any]:
    """
    Distribution of vector values and pairwise similarity.

    Similarity statistics cover pairs among the first ten vectors.
    """
    vectors = [item.vector for item in items if item.vector]
    if not vectors:
        return {"status": "no vectors"}

    values = [v for vector in vectors for v in vector]
    analysis: dict[str, Any] = {
        "total_vectors": len(vectors),
        "vector_dimension": len(vectors[0]),
        "value_stats": {
            "mean": statistics.fmean(values),
            "min": min(values),
            "max": max(values),
            "std_dev": statistics.pstdev(values),
        },
    }

    sample = vectors[:SIMILARITY_SAMPLE_SIZE]
    similarities = [
        cosine_similarity(sample[i], sample[j])
        for i in range(len(sample))
        for j in range(i + 1, len(sample))
    ]
    if similarities:
        analysis["similarity_stats"] = {
            "avg": statistics.fmean(similarities),
            "min": min(similarities),
            "max": max(similarities),
        }
    return analysis
