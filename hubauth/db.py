"""
Database connection pool and connection manager.

All database access goes through system_conn().
Never use pool.acquire() directly outside this module.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

pool: asyncpg.Pool | None = None


async def init_pool(dsn: str) -> None:
    """
    Initialize the connection pool.
    Called once at application startup.
    """
    global pool
    pool = await asyncpg.create_pool(
        dsn=dsn,
        min_size=1,
        max_size=10,
        command_timeout=60,
        init=_init_connection,
    )


async def close_pool() -> None:
    """
    Close the connection pool.
    Called at application shutdown.
    """
    global pool
    if pool is not None:
        await pool.close()
        pool = None


async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode UUID columns to uuid.UUID."""
    await conn.set_type_codec(
        "uuid",
        encoder=str,
        decoder=lambda x: UUID(x),
        schema="pg_catalog",
    )


@asynccontextmanager
async def system_conn():
    """
    Acquire a pooled connection wrapped in a transaction.

    Everything executed inside the block commits or rolls back together,
    which is what makes a multi-row delete an atomic batch.

    Usage:
        async with system_conn() as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE email = $1", email)

    Yields:
        asyncpg.Connection inside an open transaction
    """
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn:
        async with conn.transaction():
            yield conn


def migration_url(dsn: str) -> str:
    """
    Turn the app's DATABASE_URL into a URL the sync SQLAlchemy engine accepts.

    Hosting providers hand out `postgres://`, which SQLAlchemy no longer
    recognises, and a DSN written for the async stack may name the
    asyncpg driver, which the sync engine cannot load. Both map to plain
    `postgresql://` so psycopg2 is used.

    Raises:
        RuntimeError: If the DSN is empty
    """
    if not dsn:
        raise RuntimeError("DATABASE_URL is required to run migrations")

    for prefix in ("postgres://", "postgresql+asyncpg://"):
        if dsn.startswith(prefix):
            return "postgresql://" + dsn[len(prefix):]
    return dsn
