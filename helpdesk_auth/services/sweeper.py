"""Cleanup sweeper: delete expired sessions and stale reset tokens on a timer."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpdesk_auth.core.errors import ServiceUnavailableError
from helpdesk_auth.models.base import utcnow
from helpdesk_auth.services.password_reset import purge_stale_tokens
from helpdesk_auth.services.sessions import SessionStore

if TYPE_CHECKING:
    from helpdesk_auth.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepResult:
    sessions_deleted: int = 0
    reset_tokens_deleted: int = 0


def run_sweep(
    session: Session,
    settings: "Settings",
    now: datetime | None = None,
) -> SweepResult:
    """
    Delete sessions with expires_at < now and, when SWEEP_RESET_TOKENS is set,
    reset tokens past their expiry. Idempotent: safe to run repeatedly.
    """
    if not settings.SWEEP_ENABLED:
        logger.info("Sweep is disabled (SWEEP_ENABLED=false); skipping.")
        return SweepResult()

    now = now or utcnow()
    sessions_deleted = SessionStore(session, settings, clock=lambda: now).sweep()

    tokens_deleted = 0
    if settings.SWEEP_RESET_TOKENS:
        try:
            tokens_deleted = purge_stale_tokens(session, now)
        except SQLAlchemyError as e:
            session.rollback()
            raise ServiceUnavailableError() from e

    if sessions_deleted or tokens_deleted:
        logger.info(
            "Sweep run: now=%s, sessions_deleted=%s, reset_tokens_deleted=%s",
            now.isoformat(),
            sessions_deleted,
            tokens_deleted,
        )
    return SweepResult(sessions_deleted=sessions_deleted, reset_tokens_deleted=tokens_deleted)


class SessionSweeper:
    """
    Background thread that calls run_sweep every SWEEP_INTERVAL_SECONDS,
    independent of request traffic. A failed run is logged and the loop continues.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: "Settings",
    ) -> None:
        self.session_factory = session_factory
        self.settings = settings
        self.interval = settings.SWEEP_INTERVAL_SECONDS
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_once(self) -> SweepResult | None:
        db = self.session_factory()
        try:
            return run_sweep(db, self.settings)
        except Exception as e:
            logger.exception("Sweep run failed: %s", e)
            return None
        finally:
            db.close()

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="session-sweeper", daemon=True)
        self._thread.start()
        logger.info("Session sweeper started (interval=%ss)", self.interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Session sweeper stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
