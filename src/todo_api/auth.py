from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple, Union

from fastapi import Depends, Request

from .errors import Conflict, Unauthorized, ValidationError
from .models import Principal, UserEntity
from .repositories import DuplicateUsername, Repository
from .schemas import LoginRequest, RegisterRequest, parse_payload
from .security import hash_password, verify_password
from .sessions import SESSION_COOKIE_NAME, SessionSigner, SessionStore

logger = logging.getLogger(__name__)


def _principal(user: UserEntity) -> Principal:
    return Principal(id=user["id"], username=user["username"])


# PUBLIC_INTERFACE
class AuthService:
    """
    Username/password authentication backed by a server-side session store.

    Session tokens handed to clients are signed session ids; see sessions.py.
    """

    def __init__(self, repository: Repository, sessions: SessionStore, signer: SessionSigner) -> None:
        self._repo = repository
        self._sessions = sessions
        self._signer = signer

    def register(self, payload: Union[RegisterRequest, Mapping[str, Any]]) -> Principal:
        """Create a user with a bcrypt-hashed password. Duplicate names raise Conflict."""
        data = parse_payload(RegisterRequest, payload)
        if self._repo.get_user_by_username(data.username) is not None:
            raise Conflict()
        try:
            user = self._repo.create_user(data.username, hash_password(data.password))
        except DuplicateUsername:
            raise Conflict() from None
        logger.info("Registered user id=%s", user["id"])
        return _principal(user)

    def authenticate(self, payload: Union[LoginRequest, Mapping[str, Any]]) -> Optional[Principal]:
        """Return the principal for valid credentials, None otherwise."""
        try:
            data = parse_payload(LoginRequest, payload)
        except ValidationError:
            logger.warning("Rejected malformed login payload")
            return None
        if not data.username or not data.password:
            return None
        user = self._repo.get_user_by_username(data.username)
        if user is None or not verify_password(data.password, user["password"]):
            logger.warning("Failed login for username=%r", data.username)
            return None
        return _principal(user)

    def start_session(self, principal: Principal) -> str:
        """Open a session and return the signed token to place in the cookie."""
        return self._signer.sign(self._sessions.create(principal.id))

    def login(self, payload: Union[LoginRequest, Mapping[str, Any]]) -> Tuple[Principal, str]:
        principal = self.authenticate(payload)
        if principal is None:
            raise Unauthorized("Invalid username or password")
        return principal, self.start_session(principal)

    def current_principal(self, token: Optional[str]) -> Optional[Principal]:
        if not token:
            return None
        session_id = self._signer.unsign(token)
        if session_id is None:
            return None
        user_id = self._sessions.get(session_id)
        if user_id is None:
            return None
        user = self._repo.get_user(user_id)
        return _principal(user) if user is not None else None

    def logout(self, token: Optional[str]) -> bool:
        if not token:
            return False
        session_id = self._signer.unsign(token)
        return session_id is not None and self._sessions.destroy(session_id)


# PUBLIC_INTERFACE
def get_auth_service(request: Request) -> AuthService:
    """Dependency returning the AuthService built for this app."""
    return request.app.state.auth_service


# PUBLIC_INTERFACE
def current_principal(
    request: Request, auth: AuthService = Depends(get_auth_service)
) -> Optional[Principal]:
    """Resolve the session cookie to a Principal, or None when not logged in."""
    return auth.current_principal(request.cookies.get(SESSION_COOKIE_NAME))


# PUBLIC_INTERFACE
def require_principal(principal: Optional[Principal] = Depends(current_principal)) -> Principal:
    """
    Gate for protected routers, composed ahead of every handler:

        router = APIRouter(dependencies=[Depends(require_principal)])

    Raises:
        Unauthorized: no live session is attached to the request.
    """
    if principal is None:
        raise Unauthorized()
    return principal
