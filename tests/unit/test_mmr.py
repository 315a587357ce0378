"""Unit tests for the maximal marginal relevance re-ranker."""

from __future__ import annotations

import numpy as np
import pytest

from docassist.providers.vector_store.mmr import (
    cosine_similarity_matrix,
    maximal_marginal_relevance,
)


def test_zero_diversity_matches_relevance_order() -> None:
    relevance = [0.9, 0.8, 0.7, 0.6, 0.5]
    embeddings = [[1.0, 0.0], [1.0, 0.01], [0.0, 1.0], [1.0, 0.02], [0.5, 0.5]]

    assert maximal_marginal_relevance(relevance, embeddings, k=3, diversity=0.0) == [0, 1, 2]


def test_ties_go_to_better_ranked_candidate() -> None:
    relevance = [0.5, 0.5, 0.5]
    embeddings = [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]]

    assert maximal_marginal_relevance(relevance, embeddings, k=3, diversity=0.0) == [0, 1, 2]


def test_diversity_skips_near_duplicates() -> None:
    # Candidates 0 and 1 are identical; 2 is orthogonal and slightly less relevant.
    relevance = [0.9, 0.89, 0.8]
    embeddings = [[1.0, 0.0], [1.0, 0.0], [0.0, 1.0]]

    picked = maximal_marginal_relevance(relevance, embeddings, k=2, diversity=0.5)

    assert picked == [0, 2]


def test_k_larger_than_pool_returns_everything_once() -> None:
    picked = maximal_marginal_relevance([0.3, 0.2], [[1.0, 0.0], [0.0, 1.0]], k=5, diversity=0.3)

    assert sorted(picked) == [0, 1]


def test_empty_pool_and_zero_k() -> None:
    assert maximal_marginal_relevance([], [], k=3, diversity=0.3) == []
    assert maximal_marginal_relevance([0.5], [[1.0]], k=0, diversity=0.3) == []


def test_invalid_arguments() -> None:
    with pytest.raises(ValueError):
        maximal_marginal_relevance([0.5], [[1.0]], k=1, diversity=1.5)
    with pytest.raises(ValueError):
        maximal_marginal_relevance([0.5, 0.4], [[1.0]], k=1, diversity=0.3)


def test_cosine_matrix_handles_zero_vector() -> None:
    matrix = cosine_similarity_matrix(np.array([[1.0, 0.0], [0.0, 0.0], [2.0, 0.0]]))

    assert matrix[0, 2] == pytest.approx(1.0)
    assert matrix[0, 1] == pytest.approx(0.0)
    assert not np.isnan(matrix).any()
