"""User management operations used by the admin endpoints and the create_user script."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk_auth.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
)
from helpdesk_auth.core.security import hash_password
from helpdesk_auth.models import PasswordResetToken, User
from helpdesk_auth.models.base import utcnow
from helpdesk_auth.schemas.users import CreateUserRequest, UpdateUserRequest
from helpdesk_auth.services.sessions import SessionStore

if TYPE_CHECKING:
    from helpdesk_auth.core.config import Settings

logger = logging.getLogger(__name__)


def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("User store write failed")
        raise ServiceUnavailableError() from e


def _find_existing(db: Session, criterion) -> User | None:
    try:
        return db.query(User).filter(criterion).first()
    except SQLAlchemyError as e:
        db.rollback()
        raise ServiceUnavailableError() from e


def get_user(db: Session, user_id: int) -> User:
    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        raise ServiceUnavailableError() from e
    if user is None:
        raise NotFoundError("User not found.")
    return user


def list_users(db: Session) -> list[User]:
    try:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    except SQLAlchemyError as e:
        db.rollback()
        raise ServiceUnavailableError() from e


def create_user(db: Session, body: CreateUserRequest) -> User:
    """Create an active user; ConflictError on duplicate username or email."""
    username = body.username.strip()
    email = body.email.strip()
    existing = _find_existing(db, or_(User.username == username, User.email == email))
    if existing is not None:
        raise ConflictError("Username or email already exists.")

    now = utcnow()
    user = User(
        username=username,
        password_hash=hash_password(body.password),
        email=email,
        full_name=body.full_name.strip(),
        role=body.role,
        status="active",
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    _commit(db, "Username or email already exists.")
    db.refresh(user)
    logger.info("User created: user_id=%s role=%s", user.id, user.role)
    return user


def update_user(
    db: Session,
    settings: "Settings",
    user_id: int,
    body: UpdateUserRequest,
) -> User:
    """
    Apply a partial update. Deactivating a user revokes all of its sessions in
    the same transaction. A role change does not touch existing sessions: their
    role snapshot applies until the user logs in again.
    """
    user = get_user(db, user_id)

    if body.username is not None and body.username.strip() != user.username:
        taken = _find_existing(db, User.username == body.username.strip())
        if taken is not None:
            raise ConflictError("Username already exists.")
        user.username = body.username.strip()
    if body.email is not None and body.email.strip() != user.email:
        taken = _find_existing(db, User.email == body.email.strip())
        if taken is not None:
            raise ConflictError("Email already exists.")
        user.email = body.email.strip()
    if body.full_name is not None:
        user.full_name = body.full_name.strip()
    if body.role is not None:
        user.role = body.role

    deactivated = body.status == "inactive" and user.status != "inactive"
    if body.status is not None:
        user.status = body.status
    user.updated_at = utcnow()

    if deactivated:
        SessionStore(db, settings).revoke_user_sessions(user.id, commit=False)
    _commit(db, "Username or email already exists.")
    db.refresh(user)
    logger.info("User updated: user_id=%s deactivated=%s", user.id, deactivated)
    return user


def set_password(db: Session, user_id: int, new_password: str) -> None:
    """Admin password change; existing sessions stay valid."""
    user = get_user(db, user_id)
    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()
    _commit(db, "Conflict while updating password.")
    logger.info("Password changed by admin for user_id=%s", user_id)


def delete_user(db: Session, settings: "Settings", user_id: int, acting_user_id: int) -> None:
    """Delete a user along with its sessions and reset tokens."""
    if user_id == acting_user_id:
        raise PermissionDeniedError("Cannot delete your own account.")
    user = get_user(db, user_id)

    SessionStore(db, settings).revoke_user_sessions(user_id, commit=False)
    try:
        db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user_id).delete(
            synchronize_session=False
        )
        db.delete(user)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to delete user_id=%s", user_id)
        raise ServiceUnavailableError() from e
    _commit(db, "Conflict while deleting user.")
    logger.info("User deleted: user_id=%s", user_id)
