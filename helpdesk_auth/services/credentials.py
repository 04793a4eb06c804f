"""Credential verification: username/password against the stored bcrypt hash."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk_auth.core.errors import (
    AccountInactiveError,
    InvalidCredentialsError,
    ServiceUnavailableError,
)
from helpdesk_auth.core.security import (
    burn_password_check,
    hash_password,
    needs_rehash,
    verify_password,
)
from helpdesk_auth.models import User
from helpdesk_auth.models.base import utcnow

logger = logging.getLogger(__name__)


def authenticate(db: Session, username: str, password: str) -> User:
    """
    Return the user for a valid (username, password) pair.

    Unknown username and wrong password both raise InvalidCredentialsError with
    the same message. AccountInactiveError is only raised after the password
    has matched, so it does not help enumerate usernames.
    """
    try:
        user = db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Credential lookup failed")
        raise ServiceUnavailableError() from e

    if user is None:
        burn_password_check(password)
        logger.warning("Login rejected: unknown username")
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        logger.warning("Login rejected: bad password for user_id=%s", user.id)
        raise InvalidCredentialsError()
    if not user.is_active:
        logger.warning("Login rejected: inactive account user_id=%s", user.id)
        raise AccountInactiveError()

    if needs_rehash(user.password_hash):
        _upgrade_hash(db, user, password)
    return user


def _upgrade_hash(db: Session, user: User, password: str) -> None:
    """Re-hash with the configured cost; failure keeps the old (still valid) hash."""
    try:
        user.password_hash = hash_password(password)
        user.updated_at = utcnow()
        db.commit()
        logger.info("Upgraded password hash cost for user_id=%s", user.id)
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Password hash upgrade failed for user_id=%s", user.id, exc_info=True)
