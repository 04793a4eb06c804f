"""Pydantic schemas for request/response models."""

from helpdesk_auth.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    Principal,
    ResetPasswordRequest,
    SessionInfo,
    SessionsListResponse,
    UserResponse,
)
from helpdesk_auth.schemas.health import HealthResponse
from helpdesk_auth.schemas.users import (
    CreateUserRequest,
    SetPasswordRequest,
    UpdateUserRequest,
    UsersListResponse,
)

__all__ = [
    "CreateUserRequest",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "Principal",
    "ResetPasswordRequest",
    "SessionInfo",
    "SessionsListResponse",
    "SetPasswordRequest",
    "UpdateUserRequest",
    "UserResponse",
    "UsersListResponse",
]
