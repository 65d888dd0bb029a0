"""Domain error taxonomy shared by the repository and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, List


class UserdeskError(Exception):
    """Base class for every error raised by the service."""


class ValidationError(UserdeskError):
    """Client input is malformed; never retried."""

    def __init__(self, violations: List[Dict[str, str]]) -> None:
        self.violations = violations
        summary = "; ".join(f"{item['field']}: {item['message']}" for item in violations)
        super().__init__(summary or "invalid payload")

    def as_details(self) -> List[Dict[str, Any]]:
        return [dict(item) for item in self.violations]


class NotFound(UserdeskError):
    """No record matches the requested id."""

    def __init__(self, user_id: Any) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class Conflict(UserdeskError):
    """The store rejected a write because a unique column would be duplicated."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field.capitalize()} already exists")


class StoreError(UserdeskError):
    """The relational store failed or could not be reached."""


class PoolExhausted(StoreError):
    """No connection became available within the configured bounds."""


class FatalStartupError(UserdeskError):
    """The pool or the schema could not be initialised; the service must not start."""
