"""Tests for helpdesk_auth.services.sessions: issue, validate/auto-extend, revoke, sweep."""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import IntegrityError, OperationalError

from helpdesk_auth.core.errors import (
    ServiceUnavailableError,
    SessionRejectedError,
    SessionRejectReason,
)
from helpdesk_auth.models import UserSession
from helpdesk_auth.services.sessions import SessionStore

from support import FrozenClock, T0, add_user, make_session_factory, make_settings

TTL = timedelta(hours=168)


class SessionStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = make_session_factory()
        self.db = self.factory()
        self.settings = make_settings()
        self.clock = FrozenClock()
        self.store = SessionStore(self.db, self.settings, clock=self.clock)
        self.user = add_user(self.db, "alice", role="engineer")

    def tearDown(self) -> None:
        self.db.close()

    def _row(self, token: str) -> UserSession | None:
        self.db.expire_all()
        return self.db.get(UserSession, token)


class TestIssue(SessionStoreTestCase):
    def test_issue_persists_row(self) -> None:
        issued = self.store.issue(self.user)
        self.assertEqual(len(issued.token), 64)
        self.assertEqual(issued.expires_at, T0 + TTL)
        row = self._row(issued.token)
        self.assertIsNotNone(row)
        self.assertEqual(row.user_id, self.user.id)
        self.assertEqual(row.username, "alice")
        self.assertEqual(row.role, "engineer")
        self.assertEqual(row.created_at, T0)
        self.assertEqual(row.last_accessed, T0)
        self.assertGreater(row.expires_at, row.created_at)

    def test_multiple_sessions_per_user(self) -> None:
        first = self.store.issue(self.user)
        second = self.store.issue(self.user)
        self.assertNotEqual(first.token, second.token)
        self.assertEqual(
            self.db.query(UserSession).filter(UserSession.user_id == self.user.id).count(), 2
        )

    def test_collision_regenerates_instead_of_updating(self) -> None:
        # Row written by another instance; not in this session's identity map.
        other = self.factory()
        other.add(
            UserSession(
                token="a" * 64,
                user_id=self.user.id,
                username="alice",
                role="engineer",
                created_at=T0 - timedelta(hours=1),
                expires_at=T0 + TTL,
                last_accessed=T0,
            )
        )
        other.commit()
        other.close()
        with patch(
            "helpdesk_auth.services.sessions.generate_token",
            side_effect=["a" * 64, "f" * 64],
        ):
            issued = self.store.issue(self.user)
        self.assertEqual(issued.token, "f" * 64)
        self.assertEqual(self._row("a" * 64).created_at, T0 - timedelta(hours=1))

    def test_persistent_collisions_fail_closed(self) -> None:
        db = MagicMock()
        db.commit.side_effect = IntegrityError("INSERT", {}, Exception("duplicate"))
        store = SessionStore(db, self.settings, clock=self.clock)
        with self.assertRaises(ServiceUnavailableError):
            store.issue(self.user)

    def test_store_failure_raises_service_unavailable(self) -> None:
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))
        store = SessionStore(db, self.settings, clock=self.clock)
        with self.assertRaises(ServiceUnavailableError):
            store.issue(self.user)
        db.rollback.assert_called_once()

    def test_result_does_not_need_store_after_commit(self) -> None:
        real_commit = self.db.commit

        def commit_then_lose_store() -> None:
            real_commit()
            self.db.execute = MagicMock(side_effect=OperationalError("SELECT", {}, Exception("down")))

        with patch.object(self.db, "commit", side_effect=commit_then_lose_store):
            issued = self.store.issue(self.user)
        del self.db.execute
        self.assertEqual(issued.expires_at, T0 + TTL)
        self.assertIsNotNone(self._row(issued.token))


class TestValidate(SessionStoreTestCase):
    def test_returns_principal(self) -> None:
        issued = self.store.issue(self.user)
        principal = self.store.validate(issued.token)
        self.assertEqual(principal.user_id, self.user.id)
        self.assertEqual(principal.username, "alice")
        self.assertEqual(principal.role, "engineer")

    def test_unknown_token(self) -> None:
        with self.assertRaises(SessionRejectedError) as ctx:
            self.store.validate("nope")
        self.assertIs(ctx.exception.reason, SessionRejectReason.NOT_FOUND)

    def test_expired_is_deleted_then_not_found(self) -> None:
        issued = self.store.issue(self.user)
        self.clock.advance(TTL)
        with self.assertRaises(SessionRejectedError) as ctx:
            self.store.validate(issued.token)
        self.assertIs(ctx.exception.reason, SessionRejectReason.EXPIRED)
        self.assertIsNone(self._row(issued.token))
        with self.assertRaises(SessionRejectedError) as ctx:
            self.store.validate(issued.token)
        self.assertIs(ctx.exception.reason, SessionRejectReason.NOT_FOUND)

    def test_past_midpoint_extends(self) -> None:
        issued = self.store.issue(self.user)
        now = self.clock.advance(TTL * 0.6)
        self.store.validate(issued.token)
        row = self._row(issued.token)
        self.assertEqual(row.expires_at, now + TTL)
        self.assertEqual(row.last_accessed, now)

    def test_before_midpoint_only_touches(self) -> None:
        issued = self.store.issue(self.user)
        now = self.clock.advance(TTL * 0.3)
        self.store.validate(issued.token)
        row = self._row(issued.token)
        self.assertEqual(row.expires_at, issued.expires_at)
        self.assertEqual(row.last_accessed, now)

    def test_validate_session_reports_extension(self) -> None:
        issued = self.store.issue(self.user)
        self.clock.advance(TTL * 0.3)
        touched = self.store.validate_session(issued.token)
        self.assertFalse(touched.extended)
        self.assertEqual(touched.expires_at, issued.expires_at)

        now = self.clock.advance(TTL * 0.3)
        extended = self.store.validate_session(issued.token)
        self.assertTrue(extended.extended)
        self.assertEqual(extended.expires_at, now + TTL)
        self.assertEqual(extended.principal.username, "alice")

    def test_extension_uses_current_lifetime_midpoint(self) -> None:
        issued = self.store.issue(self.user)
        first = self.clock.advance(TTL * 0.6)
        self.store.validate(issued.token)
        # New lifetime spans created_at .. first + TTL; its midpoint is later than before.
        self.clock.advance(TTL * 0.1)
        self.store.validate(issued.token)
        self.assertEqual(self._row(issued.token).expires_at, first + TTL)

    def test_last_accessed_never_decreases(self) -> None:
        issued = self.store.issue(self.user)
        later = self.clock.advance(timedelta(hours=2))
        self.store.validate(issued.token)
        self.clock.now = later - timedelta(hours=1)
        self.store.validate(issued.token)
        self.assertEqual(self._row(issued.token).last_accessed, later)

    def test_role_snapshot_not_reread(self) -> None:
        issued = self.store.issue(self.user)
        self.user.role = "admin"
        self.db.commit()
        self.assertEqual(self.store.validate(issued.token).role, "engineer")

    def test_store_failure_fails_closed(self) -> None:
        db = MagicMock()
        db.get.side_effect = OperationalError("SELECT", {}, Exception("down"))
        store = SessionStore(db, self.settings, clock=self.clock)
        with self.assertRaises(ServiceUnavailableError):
            store.validate("any-token")


class TestRevoke(SessionStoreTestCase):
    def test_revoke_is_idempotent(self) -> None:
        issued = self.store.issue(self.user)
        self.assertTrue(self.store.revoke(issued.token))
        self.assertFalse(self.store.revoke(issued.token))
        with self.assertRaises(SessionRejectedError):
            self.store.validate(issued.token)

    def test_revoke_user_sessions(self) -> None:
        bob = add_user(self.db, "bob")
        self.store.issue(self.user)
        self.store.issue(self.user)
        kept = self.store.issue(bob)
        self.assertEqual(self.store.revoke_user_sessions(self.user.id), 2)
        self.assertIsNotNone(self._row(kept.token))


class TestSweepAndList(SessionStoreTestCase):
    def test_sweep_deletes_only_expired(self) -> None:
        old = self.store.issue(self.user)
        self.clock.advance(TTL - timedelta(hours=1))
        fresh = self.store.issue(self.user)
        self.clock.advance(timedelta(hours=2))
        self.assertEqual(self.store.sweep(), 1)
        self.assertIsNone(self._row(old.token))
        self.assertIsNotNone(self._row(fresh.token))
        self.assertEqual(self.store.sweep(), 0)

    def test_list_active_truncates_tokens(self) -> None:
        issued = self.store.issue(self.user)
        sessions = self.store.list_active()
        self.assertEqual(len(sessions), 1)
        self.assertEqual(sessions[0].token, issued.token[:8] + "...")
        self.assertEqual(sessions[0].username, "alice")


if __name__ == "__main__":
    unittest.main()
