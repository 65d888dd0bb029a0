"""API router for user record CRUD."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from ....core.dependencies import get_user_repository
from ....domain.errors import NotFound
from ....domain.ports.persistence import UserRepository
from ....domain.validation import validate_create, validate_update
from ..schemas.user_schemas import (
    ErrorResponse,
    SuccessResponse,
    UserCreatedResponse,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
)

router = APIRouter(prefix="/api/users", tags=["users"])

# Largest value a BIGSERIAL id can hold.
_MAX_ID = 2**63 - 1

_NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get("", response_model=UserListResponse)
async def list_users(
    repository: UserRepository = Depends(get_user_repository),
) -> UserListResponse:
    users = await repository.list()
    return UserListResponse(data=[UserResponse.model_validate(user) for user in users])


@router.get("/{user_id}", response_model=UserDetailResponse, responses=_NOT_FOUND)
async def get_user(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> UserDetailResponse:
    user = await repository.get(_parse_id(user_id))
    return UserDetailResponse(data=UserResponse.model_validate(user))


@router.post(
    "",
    response_model=UserCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_user(
    payload: Any = Body(default=None),
    repository: UserRepository = Depends(get_user_repository),
) -> UserCreatedResponse:
    user = await repository.create(validate_create(payload))
    return UserCreatedResponse(id=user.id, data=UserResponse.model_validate(user))


@router.put(
    "/{user_id}",
    response_model=UserDetailResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_user(
    user_id: str,
    payload: Any = Body(default=None),
    repository: UserRepository = Depends(get_user_repository),
) -> UserDetailResponse:
    target = _parse_id(user_id)
    user = await repository.update(target, validate_update(payload))
    return UserDetailResponse(data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=SuccessResponse, responses=_NOT_FOUND)
async def delete_user(
    user_id: str,
    repository: UserRepository = Depends(get_user_repository),
) -> SuccessResponse:
    await repository.delete(_parse_id(user_id))
    return SuccessResponse()


def _parse_id(raw: str) -> int:
    # Ids that cannot exist in the table are reported the same way as missing rows.
    # Only plain ASCII digits count; int() alone would take "1_0", " 1" or "١".
    if not (raw.isascii() and raw.isdigit()):
        raise NotFound(raw)
    value = int(raw)
    if value < 1 or value > _MAX_ID:
        raise NotFound(raw)
    return value
