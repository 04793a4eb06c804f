"""ORM model for one-time password reset tokens."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from helpdesk_auth.models.base import Base, UTCDateTime, utcnow


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # SHA-256 hex digest of the raw token; the raw token is never stored
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(UTCDateTime(), nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
