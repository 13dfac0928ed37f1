from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional

from .models import Category, TodoEntity, UserEntity
from .settings import Settings, get_settings
from .views import filter_by_category

logger = logging.getLogger(__name__)

# Columns a todo update may touch; id and created_at are immutable.
MUTABLE_TODO_FIELDS = frozenset({"title", "description", "category", "updated_at", "completed_at"})


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract storage contract for todos and users.

    Backends persist exactly the values they are given: timestamps are
    stamped by the service layer, not here.
    """

    @abstractmethod
    def insert_todo(self, values: Mapping[str, Any]) -> TodoEntity:
        """Store a new todo (all fields except id) and return it with its assigned id."""

    @abstractmethod
    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update_todo(self, todo_id: int, values: Mapping[str, Any]) -> Optional[TodoEntity]:
        """Apply `values` to an existing todo. Return the updated entity or None if not found."""

    @abstractmethod
    def delete_todo(self, todo_id: int) -> bool:
        """Delete a todo by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list_todos(self, category: Optional[Category] = None) -> List[TodoEntity]:
        """
        Return all todos, or those in `category`, ordered by created_at
        descending (ties broken by id descending).
        """

    @abstractmethod
    def create_user(self, username: str, password_hash: str) -> UserEntity:
        """Store a new user. Raises DuplicateUsername if the name is taken."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[UserEntity]:
        """Return a user by id, or None."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[UserEntity]:
        """Return a user by exact username, or None."""


class DuplicateUsername(Exception):
    """Raised by a repository when a username is already registered."""


def _check_todo_fields(values: Mapping[str, Any]) -> None:
    unknown = set(values) - MUTABLE_TODO_FIELDS
    if unknown:
        raise KeyError(f"Unknown or immutable todo fields: {sorted(unknown)}")


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._todos: Dict[int, TodoEntity] = {}
        self._users: Dict[int, UserEntity] = {}
        self._next_todo_id = 1
        self._next_user_id = 1

    def insert_todo(self, values: Mapping[str, Any]) -> TodoEntity:
        with self._lock:
            entity: TodoEntity = {
                "id": self._next_todo_id,
                "title": values["title"],
                "description": values.get("description"),
                "category": Category(values["category"]),
                "created_at": values["created_at"],
                "updated_at": values["updated_at"],
                "completed_at": values.get("completed_at"),
            }
            # Ids are never handed out twice, even after deletes
            self._next_todo_id += 1
            self._todos[entity["id"]] = entity
            return entity.copy()

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._todos.get(todo_id)
            return None if item is None else item.copy()

    def update_todo(self, todo_id: int, values: Mapping[str, Any]) -> Optional[TodoEntity]:
        _check_todo_fields(values)
        with self._lock:
            existing = self._todos.get(todo_id)
            if existing is None:
                return None
            updated = existing.copy()
            updated.update(values)  # type: ignore[typeddict-item]
            self._todos[todo_id] = updated
            return updated.copy()

    def delete_todo(self, todo_id: int) -> bool:
        with self._lock:
            return self._todos.pop(todo_id, None) is not None

    def list_todos(self, category: Optional[Category] = None) -> List[TodoEntity]:
        with self._lock:
            items = [t.copy() for t in self._todos.values()]
        if category is not None:
            items = filter_by_category(items, category)
        return sorted(items, key=lambda t: (t["created_at"], t["id"]), reverse=True)

    def create_user(self, username: str, password_hash: str) -> UserEntity:
        with self._lock:
            if any(u["username"] == username for u in self._users.values()):
                raise DuplicateUsername(username)
            user: UserEntity = {"id": self._next_user_id, "username": username, "password": password_hash}
            self._next_user_id += 1
            self._users[user["id"]] = user
            return user.copy()

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        with self._lock:
            user = self._users.get(user_id)
            return None if user is None else user.copy()

    def get_user_by_username(self, username: str) -> Optional[UserEntity]:
        with self._lock:
            for user in self._users.values():
                if user["username"] == username:
                    return user.copy()
            return None


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (stdlib sqlite3)
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using SQLite repository at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory repository")
    return InMemoryRepository()
