from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .errors import ValidationError, errors_from_pydantic
from .models import Category

TITLE_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 4

ModelT = TypeVar("ModelT", bound=BaseModel)


def _normalize_title(v: str) -> str:
    s = v.strip()
    if not s:
        raise ValueError("title must not be empty")
    if len(s) > TITLE_MAX_LENGTH:
        raise ValueError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    return s


def _as_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Interpret naive datetimes as UTC so all stored timestamps are comparable."""
    if v is None:
        return None
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


class _CamelModel(BaseModel):
    # Wire format is camelCase (createdAt, completedAt); snake_case is accepted too.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# PUBLIC_INTERFACE
class TodoCreate(_CamelModel):
    """
    Schema for creating a new Todo item.

    `category` is required; no default is inferred.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Two litres, semi-skimmed",
                "category": "personal",
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    category: Category = Field(..., description="Either 'work' or 'personal'")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip whitespace and reject empty titles."""
        return _normalize_title(v)


# PUBLIC_INTERFACE
class TodoUpdate(_CamelModel):
    """
    Schema for partially updating a Todo item.

    All fields are optional and only the fields present in the payload are
    applied. `description` and `completedAt` may be explicitly set to null;
    `title` and `category` may not. Setting `completedAt` here is an
    alternative to the toggle endpoint.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy oat milk",
                "category": "personal",
                "completedAt": "2025-02-02T09:30:00Z",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    category: Optional[Category] = Field(default=None, description="Either 'work' or 'personal'")
    completed_at: Optional[datetime] = Field(
        default=None, description="Completion timestamp, or null to reopen the todo"
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        # Only runs when the field was supplied, so None here is an explicit null.
        if v is None:
            raise ValueError("title must not be null")
        return _normalize_title(v)

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[Category]) -> Category:
        if v is None:
            raise ValueError("category must not be null")
        return v

    @field_validator("completed_at")
    @classmethod
    def normalize_completed_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually supplied."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# PUBLIC_INTERFACE
class TodoOut(_CamelModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy milk",
                "description": None,
                "category": "personal",
                "createdAt": "2025-01-25T10:15:30.123456+00:00",
                "updatedAt": "2025-01-26T09:00:00.000001+00:00",
                "completedAt": None,
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    category: Category = Field(..., description="Either 'work' or 'personal'")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    completed_at: Optional[datetime] = Field(default=None, description="Completion timestamp or null")


# PUBLIC_INTERFACE
class LoginRequest(BaseModel):
    """Username/password pair submitted to the login endpoint."""

    # Missing or blank credentials are an authentication failure, not a
    # validation error, so nothing is required here.
    username: str = ""
    password: str = ""


# PUBLIC_INTERFACE
class RegisterRequest(BaseModel):
    """Username/password pair submitted to the registration endpoint."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "alice", "password": "s3cret"}}
    )

    username: str = Field(..., max_length=USERNAME_MAX_LENGTH)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("username must not be empty")
        return s


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """Public view of a user; the password hash is never serialized."""

    id: int
    username: str


class MessageOut(BaseModel):
    message: str


# PUBLIC_INTERFACE
def parse_payload(model: Type[ModelT], payload: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """
    Validate a raw mapping against `model`, collecting every failing field
    into a single ValidationError. Already-validated instances pass through.
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(errors_from_pydantic(exc.errors())) from exc
