"""Domain errors and their JSON response mapping."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TodoAppError(Exception):
    """Base class for errors surfaced to API callers verbatim."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "InternalError"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


# PUBLIC_INTERFACE
class ValidationError(TodoAppError):
    """
    Raised when a payload fails validation.

    `errors` enumerates every failing field as `{"field": ..., "message": ...}`
    so callers can surface all problems at once.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    code = "ValidationError"

    def __init__(self, errors: Sequence[Dict[str, str]]) -> None:
        self.errors: List[Dict[str, str]] = list(errors)
        super().__init__(format_validation_message(self.errors))

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]

    def payload(self) -> Dict[str, Any]:
        body = super().payload()
        body["detail"] = self.errors
        return body


# PUBLIC_INTERFACE
class NotFound(TodoAppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NotFound"
    default_message = "Todo not found"


# PUBLIC_INTERFACE
class Unauthorized(TodoAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "Unauthorized"
    default_message = "Authentication required"


# PUBLIC_INTERFACE
class Conflict(TodoAppError):
    """Duplicate resource; reported as a plain 400 like other invalid input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "Conflict"
    default_message = "Username already exists"


def format_validation_message(errors: Sequence[Dict[str, str]]) -> str:
    parts = [f"{e['field']}: {e['message']}" for e in errors]
    return "Validation error: " + "; ".join(parts) if parts else "Validation error"


def errors_from_pydantic(raw_errors: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
    """
    Flatten pydantic/FastAPI error dicts into `{field, message}` pairs.

    The request location prefix ("body", "path", "query") is dropped so that a
    body field is named exactly as the client sent it.
    """
    out: List[Dict[str, str]] = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in {"body", "path", "query"}:
            loc = loc[1:]
        # a JSON decode error locates a character offset, not a field
        field = "body" if err.get("type") == "json_invalid" else ".".join(loc) or "body"
        message = str(err.get("msg", "Invalid value"))
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        out.append({"field": field, "message": message})
    return out


async def todo_app_error_handler(request: Request, exc: TodoAppError) -> JSONResponse:
    if isinstance(exc, (NotFound, Unauthorized)):
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return the ValidationError shape for framework-level validation failures
    (bad JSON bodies, non-numeric ids, unknown query enum values).
    """
    error = ValidationError(errors_from_pydantic(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.payload())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "InternalError", "message": "Internal server error"},
    )
