"""Maximal marginal relevance (MMR) re-ranking.

Pure numpy helper used by the vector store after it has fetched a candidate
pool.  Greedy selection: at every step pick the candidate maximising

    (1 - diversity) * relevance(candidate)
        - diversity * max(cosine(candidate, s) for s in selected)

Ties are broken by the candidate's position in the pool (lower wins), so the
result is fully deterministic for a given pool order.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def cosine_similarity_matrix(vectors: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity of the rows of *vectors*."""
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    # Zero vectors get similarity 0 with everything instead of NaN.
    norms[norms == 0.0] = 1.0
    unit = vectors / norms
    return unit @ unit.T


def maximal_marginal_relevance(
    relevance: Sequence[float],
    candidate_embeddings: Sequence[Sequence[float]],
    k: int,
    diversity: float,
) -> list[int]:
    """Return the indices of the *k* candidates selected by MMR, in pick order.

    Parameters
    ----------
    relevance:
        Similarity of each candidate to the query, in pool order.
    candidate_embeddings:
        Embedding of each candidate, aligned with *relevance*.
    k:
        Number of candidates to select.
    diversity:
        Weight in [0, 1]. ``0`` reproduces plain relevance ranking,
        ``1`` only penalises redundancy with already-selected chunks.
    """
    if not 0.0 <= diversity <= 1.0:
        raise ValueError(f"diversity must be within [0, 1], got {diversity}")
    n = len(relevance)
    if n != len(candidate_embeddings):
        raise ValueError("relevance and candidate_embeddings must have the same length")
    if k <= 0 or n == 0:
        return []

    scores = np.asarray(relevance, dtype=float)
    pairwise = cosine_similarity_matrix(np.asarray(candidate_embeddings, dtype=float))

    selected: list[int] = []
    # Highest similarity of every candidate to anything picked so far.
    redundancy = np.full(n, -np.inf)
    remaining = np.ones(n, dtype=bool)

    while len(selected) < min(k, n):
        penalty = np.where(np.isneginf(redundancy), 0.0, redundancy)
        mmr = (1.0 - diversity) * scores - diversity * penalty
        mmr[~remaining] = -np.inf
        # np.argmax returns the first maximum, i.e. the better-ranked candidate.
        best = int(np.argmax(mmr))
        selected.append(best)
        remaining[best] = False
        redundancy = np.maximum(redundancy, pairwise[best])

    return selected
