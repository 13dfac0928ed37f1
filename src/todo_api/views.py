"""
Pure view helpers over collections of todos: ordering and category scoping.

Both functions accept any sequence of todo-like records (TodoEntity dicts or
TodoOut models), never mutate their input, and return new lists.
"""
from __future__ import annotations

import unicodedata
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union

from .models import Category

T = TypeVar("T")


# PUBLIC_INTERFACE
class SortCriterion(str, Enum):
    """Recognized orderings. Values are the descriptive names."""

    NEWEST_FIRST = "newest-first"
    OLDEST_FIRST = "oldest-first"
    COMPLETION_STATUS = "completion-status"
    ALPHABETICAL = "alphabetical"


# Values sent by the browser client's sort dropdown.
_WIRE_ALIASES: Dict[str, SortCriterion] = {
    "datecreated-desc": SortCriterion.NEWEST_FIRST,
    "datecreated-asc": SortCriterion.OLDEST_FIRST,
    "completed": SortCriterion.COMPLETION_STATUS,
    "title": SortCriterion.ALPHABETICAL,
}


# PUBLIC_INTERFACE
def parse_sort_criterion(value: Union[str, SortCriterion, None]) -> Optional[SortCriterion]:
    """Map a descriptive name or client wire value to a criterion; None if unrecognized."""
    if value is None:
        return None
    if isinstance(value, SortCriterion):
        return value
    key = value.strip().lower()
    try:
        return SortCriterion(key)
    except ValueError:
        return _WIRE_ALIASES.get(key)


def _field(todo: Any, name: str) -> Any:
    if isinstance(todo, dict):
        return todo[name]
    return getattr(todo, name)


def _category_value(todo: Any) -> str:
    value = _field(todo, "category")
    return value.value if isinstance(value, Category) else value


def _title_key(todo: Any) -> str:
    return unicodedata.normalize("NFKC", _field(todo, "title")).casefold()


# PUBLIC_INTERFACE
def sort_todos(todos: Sequence[T], criterion: Union[str, SortCriterion, None]) -> List[T]:
    """
    Return a new list holding the same todos ordered by `criterion`.

    - newest-first / dateCreated-desc: created_at descending
    - oldest-first / dateCreated-asc: created_at ascending
    - completion-status / completed: open todos first, each group newest-first
    - alphabetical / title: title ascending, case-insensitive

    Sorting is stable, so equal-ranked todos keep their input order. An
    unrecognized criterion returns the input order unchanged.
    """
    items = list(todos)
    parsed = parse_sort_criterion(criterion)
    created: Callable[[Any], datetime] = lambda t: _field(t, "created_at")

    if parsed is SortCriterion.NEWEST_FIRST:
        # reverse=True keeps stability in Python's sort
        return sorted(items, key=created, reverse=True)
    if parsed is SortCriterion.OLDEST_FIRST:
        return sorted(items, key=created)
    if parsed is SortCriterion.COMPLETION_STATUS:
        newest = sorted(items, key=created, reverse=True)
        return sorted(newest, key=lambda t: _field(t, "completed_at") is not None)
    if parsed is SortCriterion.ALPHABETICAL:
        return sorted(items, key=_title_key)
    return items


# PUBLIC_INTERFACE
def filter_by_category(todos: Sequence[T], category: Union[str, Category]) -> List[T]:
    """Return the todos whose category equals `category`, preserving order."""
    wanted = category.value if isinstance(category, Category) else category
    return [t for t in todos if _category_value(t) == wanted]
