"""Startup and shutdown sequencing for the service.

Startup runs pool -> schema before the listener takes traffic; shutdown
closes the pool once the server has drained in-flight requests.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import Settings
from .container import ApplicationContainer
from ..domain.errors import FatalStartupError, StoreError
from ..infrastructure.persistence.pool import ConnectionPool
from ..infrastructure.persistence.schema import ensure_schema
from ..infrastructure.repositories.user_repository import PostgresUserRepository

logger = logging.getLogger(__name__)


def build_container(settings: Settings, pool: Optional[ConnectionPool] = None) -> ApplicationContainer:
    if pool is None:
        pool = ConnectionPool.for_postgres(
            host=settings.db_host,
            port=settings.db_port,
            user=settings.db_user,
            password=settings.db_password,
            database=settings.db_name,
            max_size=settings.db_pool_max,
            queue_limit=settings.db_pool_queue_limit,
            acquire_timeout=settings.db_acquire_timeout,
            connect_timeout=settings.db_connect_timeout,
        )
    return ApplicationContainer(
        settings=settings,
        pool=pool,
        user_repository=PostgresUserRepository(pool),
    )


async def startup(container: ApplicationContainer) -> None:
    """Open the pool and bootstrap the schema.

    Raises:
        FatalStartupError: If either step fails. The pool is closed first.
    """
    pool = container.pool
    try:
        await pool.open()
    except StoreError as exc:
        await pool.close()
        raise FatalStartupError(f"Connection pool could not be initialised: {exc}") from exc
    try:
        await ensure_schema(pool)
    except FatalStartupError:
        await pool.close()
        raise
    logger.info("Startup complete (environment=%s)", container.settings.environment)


async def shutdown(container: ApplicationContainer) -> None:
    pool = container.pool
    if pool.is_closed:
        logger.debug("Shutdown already completed")
        return
    logger.info("Shutting down, pool state: %s", pool.stats())
    await pool.close()
