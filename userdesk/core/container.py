from dataclasses import dataclass

from .config import Settings
from ..domain.ports.persistence import UserRepository
from ..infrastructure.persistence.pool import ConnectionPool


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    pool: ConnectionPool
    user_repository: UserRepository
