"""
Cosine similarity and ranking over the full catalog.

Zero-magnitude policy: when either vector has zero magnitude over the
compared components (including empty vectors) the score is exactly 0.0.
No epsilon is added to the denominator.
"""

import math
from collections.abc import Iterable, Sequence
from typing import Optional

from .types import Item, ScoredResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the first ``min(len(a), len(b))`` components.

    Vectors of different lengths are compared on their common prefix
    rather than rejected.
    """
    n = min(len(a), len(b))
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for i in range(n):
        x = a[i]
        y = b[i]
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    denominator = math.sqrt(norm_a) * math.sqrt(norm_b)
    if denominator == 0:
        return 0.0
    return dot / denominator


def rank(
    query_vector: Sequence[float],
    candidates: Iterable[Item],
    limit: Optional[int] = 10,
) -> list[ScoredResult]:
    """
    Score candidates against the query and return the top ``limit``.

    Sorting is stable, so equal scores keep input order. Ranks are 1-based
    and assigned after truncation. An empty query vector scores every
    candidate 0.0 and returns them in input order.

    Args:
        query_vector: Query embedding (may be empty)
        candidates: Items to score
        limit: Maximum results; None for all

    Returns:
        ScoredResult list, best first
    """
    if limit is not None and limit <= 0:
        return []
    scored = [(cosine_similarity(query_vector, item.vector), item) for item in candidates]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    if limit is not None:
        scored = scored[:limit]
    return [
        ScoredResult(item=item, score=score, rank=i + 1)
        for i, (score, item) in enumerate(scored)
    ]


def rank_uniform(items: Iterable[Item], score: float = 1.0) -> list[ScoredResult]:
    """Results for exact-match lookups: same score, ranks in input order."""
    return [ScoredResult(item=item, score=score, rank=i + 1) for i, item in enumerate(items)]
