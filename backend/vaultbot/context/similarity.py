"""Cosine similarity ranking over stored context embeddings."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from ..db.models import ContextEntry

DEFAULT_THRESHOLD = 0.5
DEFAULT_TOP_K = 4


@dataclass(frozen=True)
class ScoredContext:
    """A context entry and its similarity to the query."""
    entry: ContextEntry
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|), or 0.0 when either vector has zero magnitude."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Embedding dimension mismatch: {va.shape[0]} != {vb.shape[0]}")

    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def rank_by_similarity(
    entries: Iterable[ContextEntry],
    query_embedding: Sequence[float],
    threshold: float = DEFAULT_THRESHOLD,
    top_k: int = DEFAULT_TOP_K,
) -> list[ScoredContext]:
    """
    Score entries against the query and keep the best matches.

    Entries scoring at or below threshold are dropped. The rest are sorted by
    score descending, ties going to the most recent entry, and cut to top_k.
    """
    if top_k <= 0:
        return []

    query = np.asarray(query_embedding, dtype=np.float64)
    scored = [
        ScoredContext(entry=entry, score=cosine_similarity(entry.embedding, query))
        for entry in entries
    ]
    relevant = [s for s in scored if s.score > threshold]
    relevant.sort(
        key=lambda s: (s.score, s.entry.created_at, s.entry.id),
        reverse=True,
    )
    return relevant[:top_k]
