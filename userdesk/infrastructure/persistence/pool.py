"""Bounded pool of store connections shared by every request.

The pooling itself is asyncpg's: ``asyncpg.create_pool`` opens ``min_size``
connections up front, grows lazily to ``max_size``, resets connections on
release and replaces the ones that broke. This wrapper adds what the
service needs on top: a cap on how many callers may queue for a busy pool
(``queue_limit``, 0 means reject immediately), translation of driver
failures into :class:`StoreError` / :class:`PoolExhausted`, and ``ping``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Protocol

import asyncpg

from ...domain.errors import PoolExhausted, StoreError

logger = logging.getLogger(__name__)

_DRIVER_ERRORS = (OSError, asyncpg.InterfaceError, asyncpg.PostgresError)


class Connection(Protocol):
    """The subset of :class:`asyncpg.Connection` the service relies on."""

    async def execute(self, query: str, *args: Any) -> str:
        ...

    async def fetch(self, query: str, *args: Any) -> List[Any]:
        ...

    async def fetchrow(self, query: str, *args: Any) -> Optional[Any]:
        ...

    async def fetchval(self, query: str, *args: Any) -> Any:
        ...

    def is_closed(self) -> bool:
        ...


class DriverPool(Protocol):
    """The subset of :class:`asyncpg.Pool` the wrapper drives."""

    def acquire(self, *, timeout: Optional[float] = None) -> Awaitable[Connection]:
        ...

    async def release(self, connection: Connection) -> None:
        ...

    async def close(self) -> None:
        ...

    def terminate(self) -> None:
        ...

    def get_size(self) -> int:
        ...

    def get_idle_size(self) -> int:
        ...


PoolFactory = Callable[..., Awaitable[DriverPool]]


class ConnectionPool:
    """Hands out at most ``max_size`` live connections, one operation at a time.

    ``create_pool`` is called as ``create_pool(min_size=1, max_size=max_size)``
    and must return an initialised driver pool.
    """

    def __init__(
        self,
        create_pool: PoolFactory,
        *,
        max_size: int = 10,
        queue_limit: int = 0,
        acquire_timeout: float = 10.0,
        connect_timeout: float = 10.0,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if queue_limit < 0:
            raise ValueError("queue_limit cannot be negative")
        self._create_pool = create_pool
        self.max_size = max_size
        self.queue_limit = queue_limit
        self.acquire_timeout = acquire_timeout
        self.connect_timeout = connect_timeout
        self._pool: Optional[DriverPool] = None
        self._opening = asyncio.Lock()
        self._checked_out = 0
        self._waiting = 0
        self._closed = False

    @classmethod
    def for_postgres(
        cls,
        *,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        database: Optional[str],
        max_size: int = 10,
        queue_limit: int = 0,
        acquire_timeout: float = 10.0,
        connect_timeout: float = 10.0,
    ) -> "ConnectionPool":
        create_pool = functools.partial(
            asyncpg.create_pool,
            host=host,
            port=port,
            user=user,
            password=password,
            database=database,
            timeout=connect_timeout,
        )
        return cls(
            create_pool,
            max_size=max_size,
            queue_limit=queue_limit,
            acquire_timeout=acquire_timeout,
            connect_timeout=connect_timeout,
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """Create the driver pool; its first connection opens eagerly so an unreachable store fails fast."""
        async with self._opening:
            if self._closed:
                raise StoreError("Connection pool is closed")
            if self._pool is not None:
                return
            try:
                self._pool = await asyncio.wait_for(
                    self._create_pool(min_size=1, max_size=self.max_size),
                    timeout=self.connect_timeout,
                )
            except asyncio.TimeoutError as exc:
                raise StoreError(
                    f"Timed out after {self.connect_timeout}s connecting to the store"
                ) from exc
            except _DRIVER_ERRORS as exc:
                raise StoreError(f"Could not connect to the store: {exc}") from exc
        logger.info(
            "Connection pool opened (max_size=%s, queue_limit=%s, acquire_timeout=%ss)",
            self.max_size,
            self.queue_limit,
            self.acquire_timeout,
        )

    async def acquire(self) -> Connection:
        if self._closed:
            raise StoreError("Connection pool is closed")
        if self._pool is None:
            await self.open()
        busy = self._checked_out >= self.max_size
        if busy:
            if self._waiting >= self.queue_limit:
                raise PoolExhausted(f"All {self.max_size} store connections are busy")
            self._waiting += 1
        self._checked_out += 1
        try:
            return await self._pool.acquire(timeout=self.acquire_timeout)
        except asyncio.TimeoutError as exc:
            self._checked_out -= 1
            if busy:
                raise PoolExhausted(
                    f"Timed out after {self.acquire_timeout}s waiting for a store connection"
                ) from exc
            raise StoreError(f"Timed out after {self.acquire_timeout}s connecting to the store") from exc
        except _DRIVER_ERRORS as exc:
            self._checked_out -= 1
            raise StoreError(f"Could not connect to the store: {exc}") from exc
        except BaseException:
            self._checked_out -= 1
            raise
        finally:
            if busy:
                self._waiting -= 1

    async def release(self, conn: Connection) -> None:
        """Return ``conn``; the driver pool resets it or replaces it if it broke."""
        if self._pool is None:
            return
        try:
            await self._pool.release(conn)
        finally:
            self._checked_out -= 1

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[Connection]:
        conn = await self.acquire()
        try:
            yield conn
        finally:
            await self.release(conn)

    async def ping(self) -> bool:
        if not self.is_open:
            return False
        try:
            async with self.connection() as conn:
                await conn.fetchval("SELECT 1")
        except StoreError as exc:
            logger.warning("Store ping failed: %s", exc)
            return False
        except (*_DRIVER_ERRORS, asyncio.TimeoutError) as exc:
            logger.warning("Store ping failed: %s", exc)
            return False
        return True

    async def close(self) -> None:
        """Close the driver pool, terminating it if in-use connections outlive ``acquire_timeout``."""
        if self._closed:
            return
        self._closed = True
        if self._pool is None:
            return
        in_use = self._checked_out
        try:
            await asyncio.wait_for(self._pool.close(), timeout=self.acquire_timeout)
        except asyncio.TimeoutError:
            logger.warning("Connection pool did not drain in %ss; terminating", self.acquire_timeout)
            self._pool.terminate()
        logger.info("Connection pool closed (%s connections were in use)", in_use)

    def stats(self) -> Dict[str, int]:
        size = self._pool.get_size() if self._pool is not None else 0
        idle = self._pool.get_idle_size() if self._pool is not None else 0
        return {
            "max_size": self.max_size,
            "size": size,
            "idle": idle,
            "in_use": self._checked_out,
            "waiting": self._waiting,
        }
