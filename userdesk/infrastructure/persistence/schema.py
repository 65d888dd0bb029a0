"""Idempotent bootstrap of the ``users`` table."""

from __future__ import annotations

import logging

import asyncpg

from ...domain.errors import FatalStartupError, StoreError
from .pool import ConnectionPool

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id          BIGSERIAL PRIMARY KEY,
    name        VARCHAR(255) NOT NULL,
    email       VARCHAR(255) NOT NULL,
    phone       VARCHAR(20),
    message     TEXT,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT users_email_key UNIQUE (email)
);

CREATE INDEX IF NOT EXISTS idx_users_created_at
    ON users (created_at DESC, id DESC);
"""


async def ensure_schema(pool: ConnectionPool) -> None:
    """Create the users table if it is missing. Never alters an existing table.

    Raises:
        FatalStartupError: If the store is unreachable or rejects the DDL.
    """
    try:
        async with pool.connection() as conn:
            await conn.execute(SCHEMA_SQL)
    except StoreError as exc:
        raise FatalStartupError(f"Database init failed: {exc}") from exc
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        raise FatalStartupError(f"Database init failed: {exc}") from exc
    logger.info("Database schema initialized")
