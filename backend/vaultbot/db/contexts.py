"""Context entry repositories for database operations."""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from .models import ContextEntry, Scope
from .connection import get_connection


def _row_to_context(row: asyncpg.Record) -> ContextEntry:
    """Convert a database row to a ContextEntry, validating its shape."""
    return ContextEntry(
        id=int(row["id"]),
        scope=Scope(int(row["chat_id"]), int(row["user_id"])),
        title=row["title"],
        content=str(row["content"]),
        embedding=list(row["embedding"]),
        created_at=row["created_at"],
    )


def _title_matches(title: Optional[str], title_filter: str) -> bool:
    return title_filter.lower() in (title or "").lower()


class ContextRepository:
    """Repository for context entries in PostgreSQL.

    Embeddings live in a DOUBLE PRECISION[] column and ranking happens in
    Python, so no vector extension is required on the server.
    """

    async def add(
        self,
        scope: Scope,
        title: Optional[str],
        content: str,
        embedding: list[float],
    ) -> ContextEntry:
        """Insert a new context entry."""
        chat_id, user_id = scope.to_db()
        async with get_connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO contexts (chat_id, user_id, title, content, embedding)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
                """,
                chat_id,
                user_id,
                title,
                content,
                [float(x) for x in embedding],
            )
            return _row_to_context(row)

    async def list(
        self,
        scope: Scope,
        title_filter: Optional[str] = None,
    ) -> list[ContextEntry]:
        """List the scope's entries, most recent first."""
        chat_id, user_id = scope.to_db()
        conditions = ["chat_id = $1", "user_id = $2"]
        params: list = [chat_id, user_id]

        if title_filter:
            conditions.append("title ILIKE $3")
            params.append(f"%{_escape_like(title_filter)}%")

        async with get_connection() as conn:
            rows = await conn.fetch(
                f"""
                SELECT * FROM contexts
                WHERE {" AND ".join(conditions)}
                ORDER BY created_at DESC, id DESC
                """,
                *params,
            )
            return [_row_to_context(row) for row in rows]


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the filter is a plain substring match."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class InMemoryContextRepository:
    """Process-local context store for tests and running without a database."""

    def __init__(self):
        self._entries: list[ContextEntry] = []
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def add(
        self,
        scope: Scope,
        title: Optional[str],
        content: str,
        embedding: list[float],
    ) -> ContextEntry:
        async with self._lock:
            entry = ContextEntry(
                id=self._next_id,
                scope=scope,
                title=title,
                content=content,
                embedding=list(embedding),
            )
            self._entries.append(entry)
            self._next_id += 1
            return entry

    async def list(
        self,
        scope: Scope,
        title_filter: Optional[str] = None,
    ) -> list[ContextEntry]:
        entries = [e for e in self._entries if e.scope == scope]
        if title_filter:
            entries = [e for e in entries if _title_matches(e.title, title_filter)]
        # Insertion order is creation order; ids break timestamp ties
        return sorted(entries, key=lambda e: (e.created_at, e.id), reverse=True)
