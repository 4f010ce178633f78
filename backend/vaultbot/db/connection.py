"""asyncpg pool and schema migrations for credentials and contexts."""

import os
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg

from ..logging import get_logger

logger = get_logger("database")
migration_logger = get_logger("migrations")

POOL_MIN_SIZE = 1
POOL_MAX_SIZE = 10

_pool: Optional[asyncpg.Pool] = None


def _host_of(database_url: str) -> str:
    """The part of a DSN after the credentials, safe to log."""
    return database_url.rsplit("@", 1)[-1]


async def init_db(database_url: Optional[str] = None) -> asyncpg.Pool:
    """Create the shared pool and bring the schema up to date.

    Calling it again returns the existing pool.
    """
    global _pool

    if _pool is not None:
        return _pool

    database_url = database_url or os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set")

    logger.info(f"Connecting to {_host_of(database_url)}")
    _pool = await asyncpg.create_pool(
        database_url,
        min_size=POOL_MIN_SIZE,
        max_size=POOL_MAX_SIZE,
    )
    logger.info(f"Connection pool ready (min={POOL_MIN_SIZE}, max={POOL_MAX_SIZE})")

    await run_migrations(_pool)
    return _pool


async def get_db_pool() -> asyncpg.Pool:
    if _pool is None:
        return await init_db()
    return _pool


async def close_db():
    global _pool
    if _pool is not None:
        logger.info("Closing connection pool")
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection():
    """Borrow a connection from the pool for the duration of the block."""
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        yield conn


MIGRATION_001_CREATE_CREDENTIALS = """
-- Passwords are only ever stored encrypted under the owner's passphrase
CREATE TABLE IF NOT EXISTS credentials (
    id SERIAL PRIMARY KEY,
    chat_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    username TEXT NOT NULL,
    encrypted_password TEXT NOT NULL,         -- base64 [v2 salt][nonce][ciphertext+tag]
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_credentials_scope ON credentials(chat_id, user_id);
"""

MIGRATION_002_CREATE_CONTEXTS = """
-- Embedding is computed once at insert time
CREATE TABLE IF NOT EXISTS contexts (
    id SERIAL PRIMARY KEY,
    chat_id TEXT NOT NULL,
    user_id TEXT NOT NULL,
    title TEXT,
    content TEXT NOT NULL,
    embedding DOUBLE PRECISION[] NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_contexts_scope ON contexts(chat_id, user_id, created_at DESC);
"""

# Applied in order; names are recorded in _migrations and must never change
MIGRATIONS = [
    ("001_create_credentials", MIGRATION_001_CREATE_CREDENTIALS),
    ("002_create_contexts", MIGRATION_002_CREATE_CONTEXTS),
]


async def run_migrations(pool: asyncpg.Pool):
    """Apply every migration not yet recorded, each in its own transaction."""
    async with pool.acquire() as conn:
        await conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id SERIAL PRIMARY KEY,
                name VARCHAR(255) NOT NULL UNIQUE,
                applied_at TIMESTAMPTZ DEFAULT NOW()
            )
        """)
        applied = {row["name"] for row in await conn.fetch("SELECT name FROM _migrations")}

        pending = [(name, sql) for name, sql in MIGRATIONS if name not in applied]
        if not pending:
            migration_logger.info("Schema up to date")
            return

        for name, sql in pending:
            migration_logger.info(f"Applying {name}")
            try:
                async with conn.transaction():
                    await conn.execute(sql)
                    await conn.execute("INSERT INTO _migrations (name) VALUES ($1)", name)
            except asyncpg.PostgresError as e:
                migration_logger.error(f"Migration {name} failed: {e}")
                raise
        migration_logger.info(f"Applied {len(pending)} migration(s)")
