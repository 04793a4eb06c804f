"""Request/response schemas for admin user management."""

from pydantic import BaseModel, Field

from helpdesk_auth.schemas.auth import Role, Status, UserResponse


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: Role


class UpdateUserRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    username: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Role | None = None
    status: Status | None = None


class SetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=8, max_length=128)


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserResponse]
