"""One-time password reset tokens: request (forgot password) and consume (reset)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk_auth.core.errors import (
    InvalidResetTokenError,
    ResetTokenAlreadyUsedError,
    ResetTokenExpiredError,
    ServiceUnavailableError,
)
from helpdesk_auth.core.security import (
    generate_token,
    hash_password,
    token_digest,
)
from helpdesk_auth.models import PasswordResetToken, User, UserSession
from helpdesk_auth.models.base import utcnow

if TYPE_CHECKING:
    from helpdesk_auth.core.config import Settings

logger = logging.getLogger(__name__)

# Same text whether or not the email matched an account.
FORGOT_PASSWORD_MESSAGE = "If the email exists, a password reset link has been sent."
RESET_SUCCESS_MESSAGE = "Password has been reset successfully."


class ResetTokenDelivery(Protocol):
    """Out-of-band channel (usually email) that gets the raw token to the user."""

    def send(self, user: User, token: str, expires_at: datetime) -> None: ...


class LoggingResetDelivery:
    """Default delivery: records that a link was issued; the link itself only in dev."""

    def __init__(self, settings: "Settings") -> None:
        self.settings = settings

    def send(self, user: User, token: str, expires_at: datetime) -> None:
        if self.settings.APP_ENV == "dev":
            logger.info(
                "Password reset link for user_id=%s: %s?token=%s",
                user.id,
                self.settings.RESET_URL_BASE,
                token,
            )
        else:
            logger.info(
                "Password reset link issued for user_id=%s (expires %s)",
                user.id,
                expires_at.isoformat(),
            )


def request_reset(
    db: Session,
    settings: "Settings",
    email: str,
    delivery: ResetTokenDelivery,
    clock: Callable[[], datetime] = utcnow,
) -> str:
    """
    Issue a reset token for the active user owning email, if any.

    Any outstanding unused tokens for that user are marked used first, so at
    most one token is redeemable at a time. The user row is locked for the
    duration so concurrent requests for the same account serialise.
    Always returns FORGOT_PASSWORD_MESSAGE.
    """
    now = clock()
    try:
        user = (
            db.query(User)
            .filter(User.email == email.strip(), User.status == "active")
            .with_for_update()
            .first()
        )
        if user is None:
            logger.info("Password reset requested for unknown or inactive email")
            return FORGOT_PASSWORD_MESSAGE

        db.query(PasswordResetToken).filter(
            PasswordResetToken.user_id == user.id,
            PasswordResetToken.used.is_(False),
        ).update({PasswordResetToken.used: True}, synchronize_session=False)

        raw_token = generate_token()
        expires_at = now + timedelta(minutes=settings.RESET_TOKEN_TTL_MINUTES)
        db.add(
            PasswordResetToken(
                user_id=user.id,
                token_hash=token_digest(raw_token),
                expires_at=expires_at,
                used=False,
                created_at=now,
            )
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to issue password reset token")
        raise ServiceUnavailableError() from e

    logger.info("Password reset token issued for user_id=%s", user.id)
    try:
        delivery.send(user, raw_token, expires_at)
    except Exception:
        # The response must not reveal delivery problems either.
        logger.exception("Password reset delivery failed for user_id=%s", user.id)
    return FORGOT_PASSWORD_MESSAGE


def consume_reset(
    db: Session,
    token: str,
    new_password: str,
    clock: Callable[[], datetime] = utcnow,
) -> None:
    """
    Redeem a reset token and set the new password.

    The password update, the used flag and the revocation of the user's
    sessions are committed in one transaction; on failure none of them apply.
    """
    now = clock()
    try:
        row = (
            db.query(PasswordResetToken)
            .filter(PasswordResetToken.token_hash == token_digest(token))
            .with_for_update()
            .first()
        )
        if row is None:
            raise InvalidResetTokenError()
        if row.used:
            raise ResetTokenAlreadyUsedError()
        if now > row.expires_at:
            raise ResetTokenExpiredError()

        user = db.get(User, row.user_id)
        if user is None:
            raise InvalidResetTokenError()

        user.password_hash = hash_password(new_password)
        user.updated_at = now
        row.used = True
        revoked = (
            db.query(UserSession)
            .filter(UserSession.user_id == user.id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Password reset failed")
        raise ServiceUnavailableError() from e
    except (InvalidResetTokenError, ResetTokenAlreadyUsedError, ResetTokenExpiredError):
        db.rollback()
        raise

    logger.info(
        "Password reset completed for user_id=%s; revoked %s session(s)",
        user.id,
        revoked,
    )


def purge_stale_tokens(db: Session, now: datetime) -> int:
    """Delete reset tokens past their expiry (used or not)."""
    deleted = (
        db.query(PasswordResetToken)
        .filter(PasswordResetToken.expires_at < now)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
