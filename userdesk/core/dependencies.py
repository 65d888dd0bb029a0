from typing import Optional

from fastapi import Depends, Request

from .container import ApplicationContainer
from ..infrastructure.persistence.pool import ConnectionPool


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_pool(request: Request) -> Optional[ConnectionPool]:
    """The shared pool, or ``None`` while startup has not built the container yet."""
    container = getattr(request.app.state, "container", None)
    return container.pool if container else None


def get_user_repository(container: ApplicationContainer = Depends(get_container)):
    return container.user_repository
