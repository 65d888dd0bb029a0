"""Pydantic schemas for user API endpoints."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Response schema for a stored user record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    success: bool = True
    data: List[UserResponse]


class UserDetailResponse(BaseModel):
    success: bool = True
    data: UserResponse


class UserCreatedResponse(BaseModel):
    success: bool = True
    id: int
    data: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None
