"""Exceptions raised by the auth services; API routes map them to HTTP responses."""

from enum import Enum


class AuthError(Exception):
    """Base class for all credential, session and reset-token failures."""

    default_message = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password (deliberately indistinguishable)."""

    default_message = "Invalid username or password."


class AccountInactiveError(AuthError):
    """Password matched but the account is deactivated."""

    default_message = "Account is inactive."


class UnauthenticatedError(AuthError):
    """Missing, unknown or expired bearer token."""

    default_message = "Not authenticated"


class SessionRejectReason(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


class SessionRejectedError(AuthError):
    """Raised by the session store when a token does not resolve to a live session."""

    def __init__(self, reason: SessionRejectReason) -> None:
        self.reason = reason
        message = "Session expired" if reason is SessionRejectReason.EXPIRED else "Invalid session"
        super().__init__(message)


class InvalidResetTokenError(AuthError):
    default_message = "Invalid or expired reset token."


class ResetTokenAlreadyUsedError(AuthError):
    default_message = "Reset token has already been used."


class ResetTokenExpiredError(AuthError):
    default_message = "Reset token has expired."


class PermissionDeniedError(AuthError):
    """Authenticated principal lacks the role an operation requires."""

    default_message = "Permission denied."


class ConflictError(AuthError):
    """Duplicate username or email."""

    default_message = "Username or email already exists."


class NotFoundError(AuthError):
    default_message = "Not found."


class ServiceUnavailableError(AuthError):
    """Backing store failed; callers must fail closed."""

    default_message = "Authentication service temporarily unavailable."
