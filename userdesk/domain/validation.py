"""Validation and normalisation of user payloads.

Validation is pure: it never touches the store and runs before any
repository call. Create and update share the same rules because an update
replaces every mutable field.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@.]+(\.[^\s@.]+)+$")


class UserPayload(BaseModel):
    """Normalised create/update payload handed to the repository."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = Field(..., max_length=255)
    email: str = Field(..., max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    message: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("is required")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _normalise_email(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        value = value.strip().lower()
        if not value:
            raise ValueError("is required")
        if not value.isascii() or not EMAIL_PATTERN.match(value):
            raise ValueError("must look like local@domain.tld")
        return value

    @field_validator("phone", "message")
    @classmethod
    def _blank_as_missing(cls, value: Optional[str]) -> Optional[str]:
        return value or None


def validate_create(payload: Any) -> UserPayload:
    return _validate(payload)


def validate_update(payload: Any) -> UserPayload:
    return _validate(payload)


def _validate(payload: Any) -> UserPayload:
    if not isinstance(payload, dict):
        raise ValidationError([{"field": "payload", "message": "must be a JSON object"}])
    try:
        return UserPayload.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_violations(exc)) from None


def _violations(exc: PydanticValidationError) -> List[Dict[str, str]]:
    violations: List[Dict[str, str]] = []
    for error in exc.errors():
        loc = error.get("loc") or ("payload",)
        field = str(loc[0])
        if error["type"] == "missing":
            message = "is required"
        elif error["type"] == "value_error":
            message = str(error["ctx"]["error"])
        else:
            message = error["msg"]
        violations.append({"field": field, "message": message})
    return violations
