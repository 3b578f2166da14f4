"""Tests for cosine similarity and ranking."""

import math

import pytest

from bookvec import codec
from bookvec.similarity import cosine_similarity, rank, rank_uniform
from bookvec.types import Item


def _item(n, vector):
    return Item(title=f"Book {n}", vector=vector, id=n)


class TestCosineSimilarity:
    def test_symmetric(self):
        a, b = [0.1, 0.7, -0.2], [0.4, -0.3, 0.9]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_self_similarity(self):
        v = [0.3, -1.2, 4.5, 0.01]
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_zero_vector_scores_exactly_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_empty_vector_scores_zero(self):
        assert cosine_similarity([], [1.0, 2.0]) == 0.0
        assert cosine_similarity([], []) == 0.0

    def test_mismatched_lengths_use_common_prefix(self):
        score = cosine_similarity([1.0, 0.0, 5.0], [1.0, 0.0])
        assert math.isfinite(score)
        assert score == pytest.approx(1.0)


class TestRank:
    def test_best_first_with_ranks(self):
        items = [_item(1, [0.0, 1.0]), _item(2, [1.0, 0.0]), _item(3, [0.7, 0.7])]
        results = rank([1.0, 0.0], items)
        assert [r.item.id for r in results] == [2, 3, 1]
        assert [r.rank for r in results] == [1, 2, 3]

    def test_ties_keep_input_order(self):
        items = [_item(n, [1.0, 1.0]) for n in range(1, 6)]
        results = rank([1.0, 1.0], items)
        assert [r.item.id for r in results] == [1, 2, 3, 4, 5]

    def test_truncates_before_ranking(self):
        items = [_item(n, [float(n), 1.0]) for n in range(1, 11)]
        results = rank([1.0, 0.0], items, limit=3)
        assert len(results) == 3
        assert [r.rank for r in results] == [1, 2, 3]

    def test_zero_or_negative_limit_returns_nothing(self):
        items = [_item(1, [1.0])]
        assert rank([1.0], items, limit=0) == []
        assert rank([1.0], items, limit=-1) == []

    def test_none_limit_returns_all(self):
        items = [_item(n, [1.0]) for n in range(25)]
        assert len(rank([1.0], items, limit=None)) == 25

    def test_empty_query_vector_keeps_catalog_order(self):
        items = [_item(n, [float(n), 2.0]) for n in range(1, 4)]
        results = rank([], items)
        assert [r.item.id for r in results] == [1, 2, 3]
        assert all(r.score == 0.0 for r in results)

    def test_items_without_vectors_score_zero(self):
        results = rank([1.0, 0.0], [_item(1, []), _item(2, [1.0, 0.0])])
        assert results[0].item.id == 2
        assert results[1].score == 0.0

    def test_out_of_range_stored_vector_does_not_disturb_order(self):
        items = [
            _item(1, [0.5, 0.5]),
            _item(2, codec.decode("[1e300, 0.1]")),
            _item(3, [1.0, 0.0]),
        ]
        results = rank([1.0, 0.0], items)
        assert [r.item.id for r in results] == [3, 1, 2]
        assert all(math.isfinite(r.score) for r in results)


class TestRankUniform:
    def test_sequential_ranks(self):
        results = rank_uniform([_item(5, []), _item(2, [])])
        assert [(r.item.id, r.rank, r.score) for r in results] == [(5, 1, 1.0), (2, 2, 1.0)]
