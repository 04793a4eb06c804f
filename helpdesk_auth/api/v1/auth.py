"""Session login/logout, password reset, and auth dependencies (get_current_principal, require_admin)."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from helpdesk_auth.core.config import Settings, get_settings
from helpdesk_auth.core.database import get_db
from helpdesk_auth.core.errors import (
    AccountInactiveError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    PermissionDeniedError,
    ResetTokenAlreadyUsedError,
    ResetTokenExpiredError,
    ServiceUnavailableError,
    UnauthenticatedError,
)
from helpdesk_auth.core.security import token_prefix
from helpdesk_auth.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    Principal,
    ResetPasswordRequest,
    SessionsListResponse,
    UserResponse,
)
from helpdesk_auth.services.credentials import authenticate
from helpdesk_auth.services.gate import authenticate_session, extract_token, require_role
from helpdesk_auth.services.password_reset import (
    RESET_SUCCESS_MESSAGE,
    LoggingResetDelivery,
    ResetTokenDelivery,
    consume_reset,
    request_reset,
)
from helpdesk_auth.services.sessions import SessionStore

router = APIRouter()
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

LOGOUT_MESSAGE = "Successfully logged out"


def unavailable(e: ServiceUnavailableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)


def unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_reset_delivery(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ResetTokenDelivery:
    """Dependency for the reset-link delivery channel; override to plug in email."""
    return LoggingResetDelivery(settings)


def set_session_cookie(
    response: Response, settings: Settings, token: str, expires_at: datetime
) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        expires=expires_at,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _request_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> str | None:
    header = f"Bearer {credentials.credentials}" if credentials is not None else None
    return extract_token(header, request.cookies.get(settings.SESSION_COOKIE_NAME))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Authenticate with username and password; returns a session token and sets
    it as an HttpOnly cookie. Send it back as: Authorization: Bearer <token>
    """
    try:
        user = authenticate(db, body.username, body.password)
        issued = SessionStore(db, settings).issue(user)
    except InvalidCredentialsError as e:
        raise unauthenticated(e.message) from e
    except AccountInactiveError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e
    except ServiceUnavailableError as e:
        raise unavailable(e) from e

    set_session_cookie(response, settings, issued.token, issued.expires_at)
    logger.info("Login succeeded for user_id=%s", user.id)
    return LoginResponse(
        token=issued.token,
        expires_at=issued.expires_at,
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Revoke the presented session. Always succeeds; revoking twice is a no-op."""
    token = _request_token(request, credentials, settings)
    if token:
        try:
            SessionStore(db, settings).revoke(token)
        except ServiceUnavailableError as e:
            raise unavailable(e) from e
    else:
        logger.info("Logout called without token")
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return MessageResponse(message=LOGOUT_MESSAGE)


def get_current_principal(
    request: Request,
    response: Response,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Principal:
    """
    Dependency: require a live session (header or cookie) and return its principal. 401 otherwise.

    When validation extends the session the cookie is re-issued with the new expiry.
    """
    token = _request_token(request, credentials, settings)
    try:
        validated = authenticate_session(db, settings, token)
    except UnauthenticatedError as e:
        raise unauthenticated(e.message) from e
    except ServiceUnavailableError as e:
        logger.error("Rejecting request for token=%s: session store unavailable", token_prefix(token))
        raise unavailable(e) from e
    if validated.extended:
        set_session_cookie(response, settings, token, validated.expires_at)
    return validated.principal


def require_roles(*roles: str) -> Callable[..., Principal]:
    """Dependency factory: authenticated principal with one of roles, else 403."""

    def dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        try:
            return require_role(principal, *roles)
        except PermissionDeniedError as e:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e

    return dependency


require_admin = require_roles("admin")


@router.get("/me", response_model=Principal)
def get_me(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> Principal:
    """Current principal; validating the token may extend the session."""
    return principal


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    delivery: Annotated[ResetTokenDelivery, Depends(get_reset_delivery)],
) -> MessageResponse:
    """Start a password reset. The response is identical whether or not the email exists."""
    try:
        message = request_reset(db, settings, body.email, delivery)
    except ServiceUnavailableError as e:
        raise unavailable(e) from e
    return MessageResponse(message=message)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Redeem a reset token and set a new password. Signs the user out everywhere."""
    try:
        consume_reset(db, body.token, body.new_password)
    except (InvalidResetTokenError, ResetTokenAlreadyUsedError, ResetTokenExpiredError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e
    except ServiceUnavailableError as e:
        raise unavailable(e) from e
    return MessageResponse(message=RESET_SUCCESS_MESSAGE)


@router.get("/sessions", response_model=SessionsListResponse)
def list_sessions(
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionsListResponse:
    """List active sessions with truncated tokens (admin only)."""
    try:
        return SessionsListResponse(sessions=SessionStore(db, settings).list_active())
    except ServiceUnavailableError as e:
        raise unavailable(e) from e
