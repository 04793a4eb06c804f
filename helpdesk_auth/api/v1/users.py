"""Admin user management: create, list, update, set password, delete."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from helpdesk_auth.api.v1.auth import require_admin, unavailable
from helpdesk_auth.core.config import Settings, get_settings
from helpdesk_auth.core.database import get_db
from helpdesk_auth.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
)
from helpdesk_auth.schemas.auth import MessageResponse, Principal, UserResponse
from helpdesk_auth.schemas.users import (
    CreateUserRequest,
    SetPasswordRequest,
    UpdateUserRequest,
    UsersListResponse,
)
from helpdesk_auth.services import users as user_service

router = APIRouter()


def _translate(e: Exception) -> HTTPException:
    if isinstance(e, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, PermissionDeniedError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return unavailable(e)


UserErrors = (ConflictError, NotFoundError, PermissionDeniedError, ServiceUnavailableError)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    try:
        user = user_service.create_user(db, body)
    except UserErrors as e:
        raise _translate(e) from e
    return UserResponse.model_validate(user)


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users, newest first (admin only)."""
    try:
        users = user_service.list_users(db)
    except UserErrors as e:
        raise _translate(e) from e
    return UsersListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    try:
        user = user_service.get_user(db, user_id)
    except UserErrors as e:
        raise _translate(e) from e
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserResponse:
    """
    Update profile, role or status. Deactivation signs the user out; a role
    change takes effect at the user's next login.
    """
    try:
        user = user_service.update_user(db, settings, user_id, body)
    except UserErrors as e:
        raise _translate(e) from e
    return UserResponse.model_validate(user)


@router.post("/{user_id}/password", response_model=MessageResponse)
def set_password(
    user_id: int,
    body: SetPasswordRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    try:
        user_service.set_password(db, user_id, body.new_password)
    except UserErrors as e:
        raise _translate(e) from e
    return MessageResponse(message="Password updated.")


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    try:
        user_service.delete_user(db, settings, user_id, acting_user_id=admin.user_id)
    except UserErrors as e:
        raise _translate(e) from e
