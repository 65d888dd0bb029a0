"""Domain models for the userdesk service."""

from .user import User

__all__ = [
    "User",
]
