from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

DEFAULT_SESSION_SECRET = "super-secret-key-change-in-production"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SESSION_SECRET: key used to sign session cookies
    - SESSION_MAX_AGE: session lifetime in seconds (default: 86400)
    - SESSION_COOKIE_SECURE: 'true' to mark the session cookie Secure
      (default: true only when APP_ENV=production)
    - LOG_LEVEL: root logging level name (default: INFO)
    """

    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/todos.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    session_secret: str = DEFAULT_SESSION_SECRET
    session_max_age: int = 24 * 60 * 60
    session_cookie_secure: bool = False
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    sqlite_path = _get_env("SQLITE_DB_PATH", "./data/todos.db").strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    production = _get_env("APP_ENV", "development").strip().lower() == "production"
    secure_cookie = _parse_bool(_get_env("SESSION_COOKIE_SECURE", ""), production)

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=sqlite_path,
        cors_allow_origins=origins,
        session_secret=_get_env("SESSION_SECRET", DEFAULT_SESSION_SECRET),
        session_max_age=_parse_int(_get_env("SESSION_MAX_AGE", "86400"), 86400),
        session_cookie_secure=secure_cookie,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
