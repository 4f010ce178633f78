"""Credential repositories for database operations."""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from .models import CredentialRecord, Scope
from .connection import get_connection


def _row_to_credential(row: asyncpg.Record) -> CredentialRecord:
    """Convert a database row to a CredentialRecord, validating its shape."""
    return CredentialRecord(
        id=int(row["id"]),
        scope=Scope(int(row["chat_id"]), int(row["user_id"])),
        title=str(row["title"]),
        username=str(row["username"]),
        encrypted_password=str(row["encrypted_password"]),
        created_at=row["created_at"],
    )


class CredentialRepository:
    """Repository for credential CRUD operations in PostgreSQL."""

    async def create(
        self,
        scope: Scope,
        title: str,
        username: str,
        encrypted_password: str,
    ) -> CredentialRecord:
        """Insert a credential in a single statement; nothing is written on failure."""
        chat_id, user_id = scope.to_db()
        async with get_connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO credentials (chat_id, user_id, title, username, encrypted_password)
                VALUES ($1, $2, $3, $4, $5)
                RETURNING *
                """,
                chat_id,
                user_id,
                title,
                username,
                encrypted_password,
            )
            return _row_to_credential(row)

    async def get(self, scope: Scope, credential_id: int) -> Optional[CredentialRecord]:
        """Get a credential by ID, only if it belongs to the scope."""
        chat_id, user_id = scope.to_db()
        async with get_connection() as conn:
            row = await conn.fetchrow(
                """
                SELECT * FROM credentials
                WHERE chat_id = $1 AND user_id = $2 AND id = $3
                """,
                chat_id,
                user_id,
                credential_id,
            )
            return _row_to_credential(row) if row else None

    async def list(self, scope: Scope) -> list[CredentialRecord]:
        """List the scope's credentials ordered by ID."""
        chat_id, user_id = scope.to_db()
        async with get_connection() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM credentials
                WHERE chat_id = $1 AND user_id = $2
                ORDER BY id
                """,
                chat_id,
                user_id,
            )
            return [_row_to_credential(row) for row in rows]


class InMemoryCredentialRepository:
    """Process-local credential store for tests and running without a database."""

    def __init__(self):
        self._records: dict[int, CredentialRecord] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create(
        self,
        scope: Scope,
        title: str,
        username: str,
        encrypted_password: str,
    ) -> CredentialRecord:
        async with self._lock:
            record = CredentialRecord(
                id=self._next_id,
                scope=scope,
                title=title,
                username=username,
                encrypted_password=encrypted_password,
            )
            self._records[record.id] = record
            self._next_id += 1
            return record

    async def get(self, scope: Scope, credential_id: int) -> Optional[CredentialRecord]:
        record = self._records.get(credential_id)
        if record is None or record.scope != scope:
            return None
        return record

    async def list(self, scope: Scope) -> list[CredentialRecord]:
        return sorted(
            (r for r in self._records.values() if r.scope == scope),
            key=lambda r: r.id,
        )
