from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generator, List, Mapping, Optional

from .models import Category, TodoEntity, UserEntity
from .repositories import DuplicateUsername, Repository, _check_todo_fields


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    category: str = "category"
    created_at: str = "created_at"
    updated_at: str = "updated_at"
    completed_at: str = "completed_at"


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    id: str = "id"
    username: str = "username"
    password: str = "password"


_COLS = _Cols()
_USER_COLS = _UserCols()


def _dt_to_str(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="microseconds") if value is not None else None


def _str_to_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_USER_COLS.table} (
                    {_USER_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_USER_COLS.username} TEXT NOT NULL UNIQUE,
                    {_USER_COLS.password} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.category} TEXT NOT NULL
                        CHECK ({_COLS.category} IN ('work', 'personal')),
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL,
                    {_COLS.completed_at} TEXT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_category ON {_COLS.table}({_COLS.category})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_created_at ON {_COLS.table}({_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "category": Category(row[_COLS.category]),
            "created_at": _str_to_dt(row[_COLS.created_at]),  # type: ignore[typeddict-item]
            "updated_at": _str_to_dt(row[_COLS.updated_at]),  # type: ignore[typeddict-item]
            "completed_at": _str_to_dt(row[_COLS.completed_at]),
        }

    def _row_to_user(self, row: sqlite3.Row) -> UserEntity:
        return {
            "id": int(row[_USER_COLS.id]),
            "username": str(row[_USER_COLS.username]),
            "password": str(row[_USER_COLS.password]),
        }

    def _select_todo(self, conn: sqlite3.Connection, todo_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()

    def insert_todo(self, values: Mapping[str, Any]) -> TodoEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.category},
                    {_COLS.created_at}, {_COLS.updated_at}, {_COLS.completed_at})
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    values["title"],
                    values.get("description"),
                    Category(values["category"]).value,
                    _dt_to_str(values["created_at"]),
                    _dt_to_str(values["updated_at"]),
                    _dt_to_str(values.get("completed_at")),
                ),
            )
            row = self._select_todo(conn, int(cur.lastrowid))
            assert row is not None
            return self._row_to_entity(row)

    def get_todo(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._select_todo(conn, todo_id)
            return self._row_to_entity(row) if row else None

    def update_todo(self, todo_id: int, values: Mapping[str, Any]) -> Optional[TodoEntity]:
        _check_todo_fields(values)
        with self._conn() as conn:
            if self._select_todo(conn, todo_id) is None:
                return None
            if values:
                assignments = ", ".join(f"{name} = ?" for name in values)
                params: List[Any] = []
                for name, value in values.items():
                    if isinstance(value, datetime):
                        params.append(_dt_to_str(value))
                    elif isinstance(value, Category):
                        params.append(value.value)
                    else:
                        params.append(value)
                conn.execute(
                    f"UPDATE {_COLS.table} SET {assignments} WHERE {_COLS.id} = ?",
                    [*params, todo_id],
                )
            row = self._select_todo(conn, todo_id)
            assert row is not None
            return self._row_to_entity(row)

    def delete_todo(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            return cur.rowcount > 0

    def list_todos(self, category: Optional[Category] = None) -> List[TodoEntity]:
        where_sql = ""
        params: List[Any] = []
        if category is not None:
            where_sql = f"WHERE {_COLS.category} = ?"
            params.append(Category(category).value)

        # ISO-8601 UTC strings with a fixed offset sort chronologically as text
        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                {where_sql}
                ORDER BY {_COLS.created_at} DESC, {_COLS.id} DESC
                """,
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def create_user(self, username: str, password_hash: str) -> UserEntity:
        with self._conn() as conn:
            try:
                cur = conn.execute(
                    f"INSERT INTO {_USER_COLS.table} ({_USER_COLS.username}, {_USER_COLS.password}) VALUES (?, ?)",
                    (username, password_hash),
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateUsername(username) from exc
            return {"id": int(cur.lastrowid), "username": username, "password": password_hash}

    def get_user(self, user_id: int) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_USER_COLS.table} WHERE {_USER_COLS.id} = ?", (user_id,)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[UserEntity]:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT * FROM {_USER_COLS.table} WHERE {_USER_COLS.username} = ?", (username,)
            ).fetchone()
            return self._row_to_user(row) if row else None
