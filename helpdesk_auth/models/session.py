"""ORM model for persisted login sessions."""

from sqlalchemy import Column, ForeignKey, Integer, String

from helpdesk_auth.models.base import Base, UTCDateTime


class UserSession(Base):
    """
    One live authentication grant, keyed by its opaque token.

    username and role are snapshotted at login and are not re-read from the
    users table on validation; a role change applies from the next login.
    """

    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    username = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False)
    created_at = Column(UTCDateTime(), nullable=False)
    expires_at = Column(UTCDateTime(), nullable=False, index=True)
    last_accessed = Column(UTCDateTime(), nullable=False)
