"""Repository for User persistence."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator, List

import asyncpg
from asyncpg.exceptions import UniqueViolationError

from ...domain.errors import Conflict, NotFound, StoreError
from ...domain.models import User
from ...domain.validation import UserPayload
from ..persistence.pool import ConnectionPool

logger = logging.getLogger(__name__)

USER_COLUMNS = "id, name, email, phone, message, created_at, updated_at"

LIST_USERS = f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at DESC, id DESC"

GET_USER = f"SELECT {USER_COLUMNS} FROM users WHERE id = $1"

INSERT_USER = (
    "INSERT INTO users (name, email, phone, message) "
    f"VALUES ($1, $2, $3, $4) RETURNING {USER_COLUMNS}"
)

UPDATE_USER = (
    "UPDATE users SET name = $1, email = $2, phone = $3, message = $4, updated_at = NOW() "
    f"WHERE id = $5 RETURNING {USER_COLUMNS}"
)

DELETE_USER = "DELETE FROM users WHERE id = $1"

# Unique constraints on the users table and the payload field each guards.
_UNIQUE_FIELDS = {"users_email_key": "email"}


class PostgresUserRepository:
    """CRUD operations on the users table, one pooled connection per call.

    Every write is a single statement, so it is atomic at the store level.
    Existence for update/delete is decided by what the statement itself
    touched, never by a preceding read.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    async def list(self) -> List[User]:
        with _store_errors():
            async with self._pool.connection() as conn:
                rows = await conn.fetch(LIST_USERS)
        return [self._row_to_user(row) for row in rows]

    async def get(self, user_id: int) -> User:
        with _store_errors():
            async with self._pool.connection() as conn:
                row = await conn.fetchrow(GET_USER, user_id)
        if row is None:
            raise NotFound(user_id)
        return self._row_to_user(row)

    async def create(self, payload: UserPayload) -> User:
        with _store_errors():
            async with self._pool.connection() as conn:
                row = await conn.fetchrow(
                    INSERT_USER, payload.name, payload.email, payload.phone, payload.message
                )
        if row is None:
            raise StoreError("Insert returned no row")
        user = self._row_to_user(row)
        logger.info("Created user %s", user.id)
        return user

    async def update(self, user_id: int, payload: UserPayload) -> User:
        with _store_errors():
            async with self._pool.connection() as conn:
                row = await conn.fetchrow(
                    UPDATE_USER,
                    payload.name,
                    payload.email,
                    payload.phone,
                    payload.message,
                    user_id,
                )
        if row is None:
            raise NotFound(user_id)
        logger.info("Updated user %s", user_id)
        return self._row_to_user(row)

    async def delete(self, user_id: int) -> None:
        with _store_errors():
            async with self._pool.connection() as conn:
                status = await conn.execute(DELETE_USER, user_id)
        if _affected_rows(status) == 0:
            raise NotFound(user_id)
        logger.info("Deleted user %s", user_id)

    # Helpers ----------------------------------------------------------------
    @staticmethod
    def _row_to_user(row: Any) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            message=row["message"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )


@contextmanager
def _store_errors() -> Iterator[None]:
    """Map driver exceptions onto the domain taxonomy."""
    try:
        yield
    except UniqueViolationError as exc:
        field = _UNIQUE_FIELDS.get(getattr(exc, "constraint_name", None) or "", "email")
        logger.info("Store rejected duplicate %s", field)
        raise Conflict(field) from exc
    except asyncpg.PostgresError as exc:
        logger.error("Store statement failed: %s", exc)
        raise StoreError(str(exc)) from exc
    except (OSError, asyncio.TimeoutError, asyncpg.InterfaceError) as exc:
        logger.error("Store connection failed: %s", exc)
        raise StoreError(f"Store connection failed: {exc}") from exc


def _affected_rows(status: str) -> int:
    # asyncpg reports command tags such as "DELETE 1".
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
