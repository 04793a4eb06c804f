"""Persistent session store: issue, validate (with auto-extension), revoke, sweep."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk_auth.core.errors import (
    SessionRejectedError,
    SessionRejectReason,
    ServiceUnavailableError,
)
from helpdesk_auth.core.security import generate_token, token_prefix
from helpdesk_auth.models import User, UserSession
from helpdesk_auth.models.base import utcnow
from helpdesk_auth.schemas.auth import Principal, SessionInfo

if TYPE_CHECKING:
    from helpdesk_auth.core.config import Settings

logger = logging.getLogger(__name__)

# Token collisions are astronomically unlikely; bail out rather than loop forever.
TOKEN_GENERATION_ATTEMPTS = 5


@dataclass(frozen=True)
class IssuedSession:
    token: str
    expires_at: datetime


@dataclass(frozen=True)
class ValidatedSession:
    principal: Principal
    expires_at: datetime
    extended: bool


class SessionStore:
    """
    Sessions live in the database so they survive restarts and are shared by
    every server instance. All store failures surface as ServiceUnavailableError.

    Auto-extension: once a session is past the midpoint of its current
    lifetime, a successful validation pushes expires_at to now + TTL. Idle
    sessions therefore lapse between 1x and 1.5x TTL after their last use.
    """

    def __init__(
        self,
        db: Session,
        settings: "Settings",
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.db = db
        self.ttl = timedelta(hours=settings.SESSION_TTL_HOURS)
        self.clock = clock

    def issue(self, user: User) -> IssuedSession:
        """Create a session for user; a token collision is retried, never updated."""
        for attempt in range(1, TOKEN_GENERATION_ATTEMPTS + 1):
            now = self.clock()
            token = generate_token()
            expires_at = now + self.ttl
            user_id = user.id
            row = UserSession(
                token=token,
                user_id=user_id,
                username=user.username,
                role=user.role,
                created_at=now,
                expires_at=expires_at,
                last_accessed=now,
            )
            try:
                self.db.add(row)
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.warning("Session token collision (attempt %s); regenerating", attempt)
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception("Failed to persist session for user_id=%s", user_id)
                raise ServiceUnavailableError() from e
            logger.info(
                "Session issued: user_id=%s token=%s expires_at=%s",
                user_id,
                token_prefix(token),
                expires_at.isoformat(),
            )
            return IssuedSession(token=token, expires_at=expires_at)
        raise ServiceUnavailableError("Could not allocate a unique session token.")

    def validate(self, token: str) -> Principal:
        """
        Resolve token to a Principal, extending or touching the session.

        Raises SessionRejectedError (NOT_FOUND or EXPIRED); an expired row is
        deleted before raising.
        """
        return self.validate_session(token).principal

    def validate_session(self, token: str) -> ValidatedSession:
        """Like validate, but also reports the (possibly extended) expiry."""
        try:
            row = self.db.get(UserSession, token)
            if row is None:
                raise SessionRejectedError(SessionRejectReason.NOT_FOUND)

            now = self.clock()
            if now >= row.expires_at:
                self.db.delete(row)
                self.db.commit()
                logger.info("Session expired and removed: token=%s", token_prefix(token))
                raise SessionRejectedError(SessionRejectReason.EXPIRED)

            extended = False
            midpoint = row.created_at + (row.expires_at - row.created_at) / 2
            if now > midpoint:
                row.expires_at = now + self.ttl
                extended = True
                logger.debug(
                    "Session extended: token=%s expires_at=%s",
                    token_prefix(token),
                    row.expires_at.isoformat(),
                )
            if now > row.last_accessed:
                row.last_accessed = now
            result = ValidatedSession(
                principal=Principal(user_id=row.user_id, username=row.username, role=row.role),
                expires_at=row.expires_at,
                extended=extended,
            )
            self.db.commit()
            return result
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Session validation failed for token=%s", token_prefix(token))
            raise ServiceUnavailableError() from e

    def revoke(self, token: str) -> bool:
        """Delete the session; idempotent. Returns True if a row existed."""
        try:
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.token == token)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Session revoke failed for token=%s", token_prefix(token))
            raise ServiceUnavailableError() from e
        logger.info("Session revoked: token=%s existed=%s", token_prefix(token), bool(deleted))
        return bool(deleted)

    def revoke_user_sessions(self, user_id: int, commit: bool = True) -> int:
        """Delete every session owned by user_id. With commit=False the caller owns the transaction."""
        try:
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.user_id == user_id)
                .delete(synchronize_session=False)
            )
            if commit:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to revoke sessions for user_id=%s", user_id)
            raise ServiceUnavailableError() from e
        if deleted:
            logger.info("Revoked %s session(s) for user_id=%s", deleted, user_id)
        return deleted

    def sweep(self) -> int:
        """Delete all sessions whose expires_at is in the past. Idempotent."""
        now = self.clock()
        try:
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.expires_at < now)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Session sweep failed")
            raise ServiceUnavailableError() from e
        return deleted

    def list_active(self) -> list[SessionInfo]:
        """Unexpired sessions, most recently used first, with truncated tokens."""
        now = self.clock()
        try:
            rows = (
                self.db.query(UserSession)
                .filter(UserSession.expires_at > now)
                .order_by(UserSession.last_accessed.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to list sessions")
            raise ServiceUnavailableError() from e
        return [
            SessionInfo(
                token=token_prefix(r.token),
                user_id=r.user_id,
                username=r.username,
                role=r.role,
                created_at=r.created_at,
                expires_at=r.expires_at,
                last_accessed=r.last_accessed,
            )
            for r in rows
        ]
