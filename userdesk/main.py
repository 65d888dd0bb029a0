"""FastAPI ASGI application entrypoint and server runner."""

from __future__ import annotations

import logging
from types import FrameType
from typing import Optional

import uvicorn

from .core.app_factory import create_application
from .core.config import Settings
from .core.logging import configure_logging

logger = logging.getLogger(__name__)

# uvicorn's exit code when the application fails to start.
STARTUP_FAILURE = 3

# Served by run() and by `uvicorn userdesk.main:app`.
app = create_application()


class GracefulServer(uvicorn.Server):
    """uvicorn server that treats repeated termination signals as a no-op."""

    def handle_exit(self, sig: int, frame: Optional[FrameType]) -> None:
        if self.should_exit:
            logger.info("Shutdown already in progress, ignoring signal %s", sig)
            return
        logger.info("Signal %s received, shutting down...", sig)
        super().handle_exit(sig, frame)


def run() -> None:
    settings = Settings()
    configure_logging(settings.log_level)
    logger.info("Backend starting on %s:%s", settings.host, settings.port)
    logger.info("Environment: %s", settings.environment)
    logger.info("CORS origin: %s", ", ".join(settings.cors_allow_origins))

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        lifespan="on",
        log_level=settings.log_level.lower(),
    )
    server = GracefulServer(config)
    server.run()
    if not server.started:
        raise SystemExit(STARTUP_FAILURE)


__all__ = ("app", "run")
