"""
Server-side session storage and signed session cookies.

The cookie carries only an opaque session id, signed with itsdangerous so a
tampered or forged id is rejected before the store is consulted. The user a
session belongs to lives in the store.
"""
from __future__ import annotations

import secrets
import time
from abc import ABC, abstractmethod
from threading import RLock
from typing import Callable, Dict, Optional, Tuple

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

SESSION_COOKIE_NAME = "todo_session"

# Expired entries are swept at most this often (seconds).
PRUNE_INTERVAL = 60 * 60


# PUBLIC_INTERFACE
class SessionStore(ABC):
    """Narrow interface over a server-side session store."""

    @abstractmethod
    def create(self, user_id: int) -> str:
        """Open a session for `user_id` and return its id."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[int]:
        """Return the user id of a live session, or None."""

    @abstractmethod
    def destroy(self, session_id: str) -> bool:
        """End a session. Return True if it existed."""


class InMemorySessionStore(SessionStore):
    """
    Thread-safe in-process session store with expiry.

    Sessions expire `max_age` seconds after creation. Expired entries are
    pruned lazily on access, at most once per PRUNE_INTERVAL.
    """

    def __init__(self, max_age: int, clock: Callable[[], float] = time.monotonic) -> None:
        self._lock = RLock()
        self._sessions: Dict[str, Tuple[int, float]] = {}
        self._max_age = max_age
        self._clock = clock
        self._last_prune = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, user_id: int) -> str:
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self._maybe_prune()
            self._sessions[session_id] = (user_id, self._clock() + self._max_age)
        return session_id

    def get(self, session_id: str) -> Optional[int]:
        with self._lock:
            self._maybe_prune()
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            user_id, expires_at = entry
            if expires_at <= self._clock():
                del self._sessions[session_id]
                return None
            return user_id

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def prune(self) -> int:
        """Drop every expired session and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [sid for sid, (_, exp) in self._sessions.items() if exp <= now]
            for sid in expired:
                del self._sessions[sid]
            self._last_prune = now
            return len(expired)

    def _maybe_prune(self) -> None:
        if self._clock() - self._last_prune >= PRUNE_INTERVAL:
            self.prune()


# PUBLIC_INTERFACE
class SessionSigner:
    """Signs session ids for the cookie and verifies them on the way back in."""

    def __init__(self, secret_key: str, max_age: int) -> None:
        self.serializer = URLSafeTimedSerializer(secret_key, salt="todo-session")
        self.max_age = max_age

    def sign(self, session_id: str) -> str:
        return self.serializer.dumps(session_id)

    def unsign(self, token: str) -> Optional[str]:
        """Return the session id, or None if the token is forged or expired."""
        try:
            value = self.serializer.loads(token, max_age=self.max_age)
        except (BadSignature, SignatureExpired):
            return None
        return value if isinstance(value, str) else None
