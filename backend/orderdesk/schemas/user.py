"""
OrderDesk Backend: User Request/Response Schemas
================================================

What:  API contract for /users.
How:   Request models validate shape and ranges; business rules (email
       uniqueness, existence) stay in UserService.

Partial updates:
    A field counts as supplied when it is present in the body with a
    non-null value (`supplied_fields()`). Empty strings fail validation, so
    "" never silently means "leave unchanged".
"""

import re
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from orderdesk.schemas.common import CamelModel

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise ValueError("must be a valid email address")
    return value


def supplied_fields(model: BaseModel) -> Dict[str, Any]:
    """Fields the client actually sent with a non-null value."""
    return model.model_dump(exclude_unset=True, exclude_none=True)


class CreateUserRequest(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class UpdateUserRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, min_length=3, max_length=255)
    status: Optional[Literal[0, 1]] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_email(v)


class UserResponse(CamelModel):
    id: str
    name: str
    email: str
    status: int
    created_at: datetime
    updated_at: datetime
