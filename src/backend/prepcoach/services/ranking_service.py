"""Cosine-similarity ranking of document chunks against a query vector.

Ranking runs over the union of all supplied passages, not per document,
so one highly relevant document may take every slot.
"""

import numpy as np

from prepcoach.models.schemas import LabeledVector, RankedPassage


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Return (a . b) / (|a| |b|).

    Zero-magnitude or mismatched vectors are rejected with ValueError; the
    embedding service never produces them for non-empty input.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"dimension mismatch: {va.shape} vs {vb.shape}")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        raise ValueError("cosine similarity is undefined for a zero vector")

    similarity = float(np.dot(va, vb) / (norm_a * norm_b))
    # Clamp floating point drift so identical vectors score exactly 1.0
    return max(-1.0, min(1.0, similarity))


def rank_passages(
    query_vector: list[float],
    passages: list[LabeledVector],
    top_k: int | None = None,
) -> list[RankedPassage]:
    """Rank passages by descending similarity to the query.

    Ties keep input order, so for identical scores the earlier chunk wins.
    """
    scored = [
        RankedPassage(
            source=p.source,
            position=p.position,
            text=p.text,
            similarity=cosine_similarity(query_vector, p.embedding),
        )
        for p in passages
    ]
    # sorted() is stable
    ranked = sorted(scored, key=lambda r: r.similarity, reverse=True)

    if top_k is None:
        return ranked
    return ranked[: max(top_k, 0)]
