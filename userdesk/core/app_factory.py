from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .lifecycle import build_container, shutdown, startup
from .logging import configure_logging
from ..infrastructure.persistence.pool import ConnectionPool
from ..presentation.api.errors import register_exception_handlers
from ..presentation.api.routers import health as health_router
from ..presentation.api.routers import users as users_router


def create_application(
    settings: Optional[Settings] = None,
    pool: Optional[ConnectionPool] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="userdesk", lifespan=_create_lifespan(settings, pool))

    register_exception_handlers(app, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials="*" not in settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router.router)
    app.include_router(users_router.router)

    return app


def _create_lifespan(settings: Settings, pool: Optional[ConnectionPool]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        container = build_container(settings, pool)
        await startup(container)
        app.state.container = container  # type: ignore[attr-defined]
        try:
            yield
        finally:
            await shutdown(container)

    return lifespan
