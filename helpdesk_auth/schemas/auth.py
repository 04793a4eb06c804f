"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["admin", "engineer", "reporter"]
Status = Literal["active", "inactive"]


class LoginRequest(BaseModel):
    """Credentials for login."""

    username: str = Field(..., min_length=1, max_length=255, description="Username")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class Principal(BaseModel):
    """Identity resolved from a validated session token."""

    user_id: int
    username: str
    role: Role


class UserResponse(BaseModel):
    """Public view of a user (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    role: Role
    status: Status
    created_at: datetime
    updated_at: datetime


class LoginResponse(BaseModel):
    """Session token returned after successful login (also set as a cookie)."""

    token: str = Field(..., description="Opaque session token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="Session expiry (UTC)")
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=8, max_length=128)


class SessionInfo(BaseModel):
    """Active session entry for the admin listing; token is truncated."""

    token: str
    user_id: int
    username: str
    role: Role
    created_at: datetime
    expires_at: datetime
    last_accessed: datetime


class SessionsListResponse(BaseModel):
    sessions: list[SessionInfo]
