from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .auth import AuthService
from .errors import (
    TodoAppError,
    request_validation_error_handler,
    todo_app_error_handler,
    unhandled_error_handler,
)
from .logging_config import setup_logging
from .repositories import Repository, get_repository
from .routers import auth as auth_router
from .routers import todos as todos_router
from .service import TodoService
from .sessions import InMemorySessionStore, SessionSigner
from .settings import DEFAULT_SESSION_SECRET, Settings, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "auth", "description": "Registration and cookie-session login/logout."},
    {
        "name": "todos",
        "description": "CRUD operations for work and personal todos, plus completion toggling.",
    },
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted.
        repository: Storage backend; chosen from settings when omitted.

    Returns:
        A FastAPI app whose state carries the settings, TodoService and
        AuthService used by the route dependencies.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    if settings.session_secret == DEFAULT_SESSION_SECRET:
        logger.warning("SESSION_SECRET is not set; using the development default")

    app = FastAPI(
        title="Todo Categories API",
        description="Backend API for a work/personal todo list with session authentication.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )

    repo = repository or get_repository(settings)
    app.state.settings = settings
    app.state.todo_service = TodoService(repo)
    app.state.auth_service = AuthService(
        repo,
        InMemorySessionStore(settings.session_max_age),
        SessionSigner(settings.session_secret, settings.session_max_age),
    )

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TodoAppError, todo_app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(auth_router.router)
    app.include_router(todos_router.router)
    return app


app = create_app()
