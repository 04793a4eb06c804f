"""Shared builders for the test suite: SQLite engine, settings, users, frozen clock."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from helpdesk_auth.core.config import Settings
from helpdesk_auth.core.security import hash_password
from helpdesk_auth.models import Base, User

T0 = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> datetime:
        self.now = self.now + delta
        return self.now


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": 4,
        "SWEEP_IN_PROCESS": False,
        "SESSION_TTL_HOURS": 168,
        "RESET_TOKEN_TTL_MINUTES": 60,
    }
    values.update(overrides)
    return Settings(**values)


def make_session_factory() -> sessionmaker:
    """Fresh in-memory database with all tables; one connection shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def add_user(
    db: Session,
    username: str,
    password: str = "correct-horse",
    role: str = "engineer",
    status: str = "active",
    email: str | None = None,
) -> User:
    user = User(
        username=username,
        password_hash=hash_password(password, rounds=4),
        email=email or f"{username}@helpdesk.test",
        full_name=username.title(),
        role=role,
        status=status,
        created_at=T0,
        updated_at=T0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
