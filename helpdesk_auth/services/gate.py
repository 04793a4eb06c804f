"""
Authorization gate: bearer token -> Principal, plus the role check callers apply.

The gate only answers "who is this"; which roles an operation needs is up to
the caller (see require_role).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from helpdesk_auth.core.errors import (
    PermissionDeniedError,
    SessionRejectedError,
    UnauthenticatedError,
)
from helpdesk_auth.core.security import token_prefix
from helpdesk_auth.models.base import utcnow
from helpdesk_auth.schemas.auth import Principal
from helpdesk_auth.services.sessions import SessionStore, ValidatedSession

if TYPE_CHECKING:
    from helpdesk_auth.core.config import Settings

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_token(authorization: str | None, cookie_value: str | None) -> str | None:
    """Token from an Authorization header ("Bearer <token>") or, failing that, the session cookie."""
    if authorization and authorization.strip():
        scheme, _, rest = authorization.strip().partition(" ")
        if scheme.lower() == BEARER_SCHEME:
            value = rest.strip()
        elif rest:
            value = None
        else:
            value = scheme
        if value:
            return value
    if cookie_value and cookie_value.strip():
        return cookie_value.strip()
    return None


def authenticate_token(
    db: Session,
    settings: "Settings",
    token: str | None,
    clock: Callable[[], datetime] = utcnow,
) -> Principal:
    """
    Validate token through the session store.

    Raises UnauthenticatedError for a missing, unknown or expired token.
    ServiceUnavailableError from the store is not caught: the gate fails closed.
    """
    return authenticate_session(db, settings, token, clock=clock).principal


def authenticate_session(
    db: Session,
    settings: "Settings",
    token: str | None,
    clock: Callable[[], datetime] = utcnow,
) -> ValidatedSession:
    """authenticate_token plus the session expiry, for callers that refresh the cookie."""
    if not token:
        raise UnauthenticatedError("Missing authentication token")
    try:
        return SessionStore(db, settings, clock=clock).validate_session(token)
    except SessionRejectedError as e:
        logger.info("Rejected token=%s reason=%s", token_prefix(token), e.reason.value)
        raise UnauthenticatedError("Invalid or expired session") from e


def require_role(principal: Principal, *roles: str) -> Principal:
    """Raise PermissionDeniedError unless principal has one of roles."""
    if principal.role not in roles:
        raise PermissionDeniedError(
            f"Requires role: {', '.join(roles)}" if roles else "Permission denied."
        )
    return principal
