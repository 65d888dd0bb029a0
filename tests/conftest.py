"""Pytest configuration and shared fixtures.

The store is emulated in memory: ``FakeStore`` understands exactly the
statements the repository and schema initializer issue, enforces the
unique email constraint and reports affected rows the way PostgreSQL
command tags do.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from asyncpg.exceptions import InterfaceError, UniqueViolationError
from fastapi.testclient import TestClient

from userdesk.core.app_factory import create_application
from userdesk.core.config import Settings
from userdesk.infrastructure.persistence.pool import ConnectionPool
from userdesk.infrastructure.persistence.schema import SCHEMA_SQL
from userdesk.infrastructure.repositories import user_repository as statements
from userdesk.infrastructure.repositories.user_repository import PostgresUserRepository


def unique_violation() -> UniqueViolationError:
    exc = UniqueViolationError('duplicate key value violates unique constraint "users_email_key"')
    exc.constraint_name = "users_email_key"
    return exc


class FakeStore:
    """In-memory stand-in for the users table."""

    def __init__(self) -> None:
        self.rows: Dict[int, Dict[str, Any]] = {}
        self.next_id = 1
        self.reachable = True
        self.schema_created = False
        self.frozen_at: Optional[datetime] = None
        self.connections: List["FakeConnection"] = []
        self.statements: List[str] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    async def connect(self) -> "FakeConnection":
        await asyncio.sleep(0)
        if not self.reachable:
            raise ConnectionRefusedError("store unreachable")
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn

    async def create_pool(self, *, min_size: int, max_size: int) -> "FakePool":
        pool = FakePool(self, max_size)
        for _ in range(min_size):
            pool.idle.append(await self.connect())
        return pool

    def go_down(self) -> None:
        self.reachable = False
        for conn in self.connections:
            conn.closed = True

    def now(self) -> datetime:
        if self.frozen_at is not None:
            return self.frozen_at
        self._clock += timedelta(seconds=1)
        return self._clock

    def email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        return any(
            row["email"] == email and row["id"] != exclude_id for row in self.rows.values()
        )


class FakeConnection:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.closed = False

    async def execute(self, query: str, *args: Any) -> str:
        await self._round_trip(query)
        if query == SCHEMA_SQL:
            self.store.schema_created = True
            return "CREATE INDEX"
        if query == statements.DELETE_USER:
            removed = self.store.rows.pop(args[0], None)
            return f"DELETE {1 if removed else 0}"
        raise AssertionError(f"unexpected statement: {query}")

    async def fetch(self, query: str, *args: Any) -> List[Dict[str, Any]]:
        await self._round_trip(query)
        assert query == statements.LIST_USERS
        rows = sorted(
            self.store.rows.values(),
            key=lambda row: (row["created_at"], row["id"]),
            reverse=True,
        )
        return [dict(row) for row in rows]

    async def fetchrow(self, query: str, *args: Any) -> Optional[Dict[str, Any]]:
        await self._round_trip(query)
        store = self.store
        if query == statements.GET_USER:
            row = store.rows.get(args[0])
            return dict(row) if row else None
        if query == statements.INSERT_USER:
            name, email, phone, message = args
            if store.email_taken(email):
                raise unique_violation()
            now = store.now()
            row = {
                "id": store.next_id,
                "name": name,
                "email": email,
                "phone": phone,
                "message": message,
                "created_at": now,
                "updated_at": now,
            }
            store.next_id += 1
            store.rows[row["id"]] = row
            return dict(row)
        if query == statements.UPDATE_USER:
            name, email, phone, message, user_id = args
            row = store.rows.get(user_id)
            if row is None:
                return None
            if store.email_taken(email, exclude_id=user_id):
                raise unique_violation()
            row.update(name=name, email=email, phone=phone, message=message, updated_at=store.now())
            return dict(row)
        raise AssertionError(f"unexpected statement: {query}")

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._round_trip(query)
        assert query == "SELECT 1"
        return 1

    async def close(self) -> None:
        self.closed = True

    def is_closed(self) -> bool:
        return self.closed

    async def _round_trip(self, query: str) -> None:
        if self.closed:
            raise ConnectionResetError("connection is closed")
        self.store.statements.append(query)
        await asyncio.sleep(0)


class FakePool:
    """Behaves like ``asyncpg.Pool``: bounded, lazy growth, broken connections replaced."""

    def __init__(self, store: FakeStore, max_size: int) -> None:
        self.store = store
        self.max_size = max_size
        self.idle: List[FakeConnection] = []
        self.closed = False
        self.terminated = False
        self.hang_on_close = False
        self._slots = asyncio.Semaphore(max_size)

    async def acquire(self, *, timeout: Optional[float] = None) -> FakeConnection:
        if self.closed:
            raise InterfaceError("pool is closing")
        await asyncio.wait_for(self._slots.acquire(), timeout=timeout)
        try:
            while self.idle:
                conn = self.idle.pop()
                if not conn.is_closed():
                    return conn
            return await self.store.connect()
        except BaseException:
            self._slots.release()
            raise

    async def release(self, conn: FakeConnection) -> None:
        if self.closed:
            await conn.close()
        elif not conn.is_closed():
            self.idle.append(conn)
        self._slots.release()

    async def close(self) -> None:
        self.closed = True
        for conn in self.idle:
            await conn.close()
        if self.hang_on_close:
            await asyncio.sleep(10)

    def terminate(self) -> None:
        self.terminated = True

    def get_size(self) -> int:
        return len([conn for conn in self.store.connections if not conn.closed])

    def get_idle_size(self) -> int:
        return len(self.idle)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def pool(store):
    return ConnectionPool(store.create_pool, max_size=3, queue_limit=50, acquire_timeout=1.0)


@pytest.fixture
def repository(pool):
    return PostgresUserRepository(pool)


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("CORS_ORIGIN", "http://localhost:3000")
    return Settings()


@pytest.fixture
def client(settings, pool):
    app = create_application(settings, pool=pool)
    with TestClient(app) as test_client:
        yield test_client
