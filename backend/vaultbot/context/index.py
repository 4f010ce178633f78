"""
Context index - stores text snippets with embeddings and ranks them against a query.

Storage is delegated to a repository (PostgreSQL or in-memory); ranking
always happens here so both backends behave identically.
"""

from collections.abc import Sequence
from typing import Optional, Protocol

from ..db.models import ContextEntry, Scope
from ..logging import get_logger
from .similarity import DEFAULT_THRESHOLD, DEFAULT_TOP_K, ScoredContext, rank_by_similarity

logger = get_logger("context")


class ContextStore(Protocol):
    async def add(
        self, scope: Scope, title: Optional[str], content: str, embedding: list[float]
    ) -> ContextEntry: ...

    async def list(
        self, scope: Scope, title_filter: Optional[str] = None
    ) -> list[ContextEntry]: ...


class ContextIndex:
    """Semantic memory per (chat, user) scope."""

    def __init__(self, repository: ContextStore):
        self.repository = repository

    async def insert(
        self,
        scope: Scope,
        title: Optional[str],
        content: str,
        embedding: Sequence[float],
    ) -> ContextEntry:
        """Append an entry. No dedup, and the embedding is stored as given."""
        entry = await self.repository.add(scope, title, content, list(embedding))
        logger.info(f"Stored context {entry.id} ({entry.dimension}d) for chat={scope.chat_id}")
        return entry

    async def list_by_title(
        self, scope: Scope, title_filter: Optional[str] = None
    ) -> list[ContextEntry]:
        """Entries most recent first, optionally filtered by case-insensitive title substring."""
        title_filter = (title_filter or "").strip() or None
        return await self.repository.list(scope, title_filter)

    async def query_similar(
        self,
        scope: Scope,
        query_embedding: Sequence[float],
        threshold: float = DEFAULT_THRESHOLD,
        top_k: int = DEFAULT_TOP_K,
    ) -> list[ScoredContext]:
        """Top-k entries whose cosine similarity to the query is above threshold.

        An empty list means "no relevant context", not an error.
        """
        entries = await self.repository.list(scope)

        dimension = len(query_embedding)
        comparable = [e for e in entries if e.dimension == dimension]
        if len(comparable) != len(entries):
            logger.warning(
                f"Skipped {len(entries) - len(comparable)} context(s) with embedding "
                f"dimension != {dimension} for chat={scope.chat_id}"
            )

        results = rank_by_similarity(comparable, query_embedding, threshold, top_k)
        logger.debug(f"Similarities: {[round(r.score, 4) for r in results]}")
        return results
