from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class Category(str, Enum):
    """The two fixed groupings a todo can belong to."""

    WORK = "work"
    PERSONAL = "personal"


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Storage-level representation of a Todo item shared by all repository
    backends.

    Fields:
    - id: Unique integer identifier, never reused after deletion
    - title: Non-empty title (trimmed on input via schemas)
    - description: Optional description; None is distinct from ""
    - category: Category value
    - created_at: Creation timestamp (UTC), never mutated
    - updated_at: Last mutation timestamp (UTC)
    - completed_at: Completion timestamp (UTC) or None while open
    """

    id: int
    title: str
    description: Optional[str]
    category: Category
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime]


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """A registered user. `password` holds the bcrypt hash, never plain text."""

    id: int
    username: str
    password: str


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Principal:
    """Authenticated identity attached to a request."""

    id: int
    username: str
