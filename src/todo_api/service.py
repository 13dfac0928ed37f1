"""
Todo business rules: validation, timestamp bookkeeping and the completion
toggle. Persistence is delegated to a Repository.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from .errors import NotFound, ValidationError
from .models import Category, TodoEntity
from .repositories import Repository
from .schemas import TodoCreate, TodoUpdate, parse_payload

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_stamp(now: datetime, previous: Optional[datetime]) -> datetime:
    """Return `now`, nudged forward if needed so it is strictly after `previous`."""
    if previous is not None and now <= previous:
        return previous + _TICK
    return now


# PUBLIC_INTERFACE
def toggle_completion(todo: TodoEntity, now: datetime) -> TodoEntity:
    """
    Flip a todo's completion state.

    An open todo becomes completed at `now`; a completed todo is reopened.
    `updated_at` moves forward in both cases. The input is not modified.
    """
    toggled = todo.copy()
    stamp = next_stamp(now, todo["updated_at"])
    if todo["completed_at"] is None:
        toggled["completed_at"] = max(stamp, todo["created_at"])
    else:
        toggled["completed_at"] = None
    toggled["updated_at"] = stamp
    return toggled


# PUBLIC_INTERFACE
class TodoService:
    """CRUD orchestration over a Repository."""

    def __init__(self, repository: Repository, clock: Clock = utcnow) -> None:
        self._repo = repository
        self._clock = clock

    def list(self, category: Optional[Union[Category, str]] = None) -> List[TodoEntity]:
        """All todos, or those in `category`, newest first."""
        if category is not None and not isinstance(category, Category):
            try:
                category = Category(category)
            except ValueError:
                raise ValidationError(
                    [{"field": "category", "message": "category must be 'work' or 'personal'"}]
                ) from None
        return self._repo.list_todos(category)

    def get(self, todo_id: int) -> TodoEntity:
        todo = self._repo.get_todo(todo_id)
        if todo is None:
            raise NotFound()
        return todo

    def create(self, payload: Union[TodoCreate, Mapping[str, Any]]) -> TodoEntity:
        data = parse_payload(TodoCreate, payload)
        now = self._clock()
        created = self._repo.insert_todo(
            {
                "title": data.title,
                "description": data.description,
                "category": data.category,
                "created_at": now,
                "updated_at": now,
                "completed_at": None,
            }
        )
        logger.info("Created todo id=%s category=%s", created["id"], created["category"].value)
        return created

    def update(self, todo_id: int, payload: Union[TodoUpdate, Mapping[str, Any]]) -> TodoEntity:
        """
        Merge the supplied fields onto an existing todo.

        A payload with no recognized fields is a no-op and returns the record
        unchanged. `completed_at` is only touched when the payload names it.
        """
        data = parse_payload(TodoUpdate, payload)
        existing = self.get(todo_id)
        changes = data.changes()
        if not changes:
            return existing

        completed_at = changes.get("completed_at")
        if completed_at is not None and completed_at < existing["created_at"]:
            raise ValidationError(
                [{"field": "completedAt", "message": "completedAt must not be earlier than createdAt"}]
            )

        changes["updated_at"] = next_stamp(self._clock(), existing["updated_at"])
        updated = self._repo.update_todo(todo_id, changes)
        if updated is None:
            # Deleted between the read and the write
            raise NotFound()
        logger.info("Updated todo id=%s fields=%s", todo_id, sorted(data.model_fields_set))
        return updated

    def delete(self, todo_id: int) -> bool:
        deleted = self._repo.delete_todo(todo_id)
        if deleted:
            logger.info("Deleted todo id=%s", todo_id)
        return deleted

    def toggle_completion(self, todo_id: int) -> TodoEntity:
        existing = self.get(todo_id)
        toggled = toggle_completion(existing, self._clock())
        updated = self._repo.update_todo(
            todo_id,
            {"completed_at": toggled["completed_at"], "updated_at": toggled["updated_at"]},
        )
        if updated is None:
            raise NotFound()
        logger.info(
            "Toggled todo id=%s completed=%s", todo_id, updated["completed_at"] is not None
        )
        return updated
