from __future__ import annotations

from typing import List, Protocol

from ..models import User
from ..validation import UserPayload


class UserRepository(Protocol):
    """Persistence operations over user records."""

    async def list(self) -> List[User]:
        ...

    async def get(self, user_id: int) -> User:
        ...

    async def create(self, payload: UserPayload) -> User:
        ...

    async def update(self, user_id: int, payload: UserPayload) -> User:
        ...

    async def delete(self, user_id: int) -> None:
        ...

