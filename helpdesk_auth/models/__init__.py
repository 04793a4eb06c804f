"""SQLAlchemy ORM models."""

from helpdesk_auth.models.base import Base
from helpdesk_auth.models.password_reset import PasswordResetToken
from helpdesk_auth.models.session import UserSession
from helpdesk_auth.models.user import User

__all__ = ["Base", "PasswordResetToken", "User", "UserSession"]
