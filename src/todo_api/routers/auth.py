from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request, Response, status

from ..auth import AuthService, current_principal, get_auth_service
from ..errors import Unauthorized
from ..models import Principal
from ..schemas import MessageOut, RegisterRequest, UserOut
from ..sessions import SESSION_COOKIE_NAME

router = APIRouter(prefix="/api", tags=["auth"])


def _set_session_cookie(request: Request, response: Response, token: str) -> None:
    settings = request.app.state.settings
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


def _user_out(principal: Principal) -> UserOut:
    return UserOut(id=principal.id, username=principal.username)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and start a session for it.",
    responses={400: {"description": "Invalid payload or username already exists"}},
)
def register(
    payload: RegisterRequest,
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> UserOut:
    principal = auth.register(payload)
    _set_session_cookie(request, response, auth.start_session(principal))
    return _user_out(principal)


# PUBLIC_INTERFACE
@router.post(
    "/auth/login",
    response_model=UserOut,
    summary="Login",
    description="Start a session. Missing, blank or wrong credentials all yield 401.",
    responses={401: {"description": "Invalid username or password"}},
)
def login(
    request: Request,
    response: Response,
    payload: Dict[str, Any] = Body(default={}, examples=[{"username": "alice", "password": "s3cret"}]),
    auth: AuthService = Depends(get_auth_service),
) -> UserOut:
    principal, token = auth.login(payload)
    _set_session_cookie(request, response, token)
    return _user_out(principal)


# PUBLIC_INTERFACE
@router.post("/auth/logout", response_model=MessageOut, summary="Logout")
def logout(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
) -> MessageOut:
    """Ends the current session, if any. Logging out twice is not an error."""
    auth.logout(request.cookies.get(SESSION_COOKIE_NAME))
    response.delete_cookie(SESSION_COOKIE_NAME)
    return MessageOut(message="Logged out successfully")


# PUBLIC_INTERFACE
@router.get(
    "/auth/user",
    response_model=UserOut,
    summary="Current User",
    responses={401: {"description": "Not authenticated"}},
)
def current_user(principal: Optional[Principal] = Depends(current_principal)) -> UserOut:
    if principal is None:
        raise Unauthorized("Not authenticated")
    return _user_out(principal)
