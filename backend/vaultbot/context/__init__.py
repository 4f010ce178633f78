"""Semantic context memory."""

from .index import ContextIndex, ContextStore
from .similarity import ScoredContext, cosine_similarity, rank_by_similarity

__all__ = [
    "ContextIndex",
    "ContextStore",
    "ScoredContext",
    "cosine_similarity",
    "rank_by_similarity",
]
