"""ORM model for helpdesk users (credentials, role and account status)."""

from sqlalchemy import CheckConstraint, Column, Integer, String

from helpdesk_auth.models.base import Base, UTCDateTime, utcnow

ROLES = ("admin", "engineer", "reporter")
STATUSES = ("active", "inactive")


class User(Base):
    """
    User account for session authentication and role-based access control.

    role: 'admin', 'engineer' or 'reporter'
    status: 'active' or 'inactive' (inactive users cannot log in)
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'engineer', 'reporter')", name="ck_users_role"),
        CheckConstraint("status IN ('active', 'inactive')", name="ck_users_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False)
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == "active"
