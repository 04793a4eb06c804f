"""Tests for helpdesk_auth.services.credentials.authenticate."""

import unittest
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import OperationalError

from helpdesk_auth.core import security
from helpdesk_auth.core.errors import (
    AccountInactiveError,
    InvalidCredentialsError,
    ServiceUnavailableError,
)
from helpdesk_auth.core.security import hash_rounds, verify_password
from helpdesk_auth.services.credentials import authenticate

from support import add_user, make_session_factory


class TestAuthenticate(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.admin = add_user(self.db, "admin", password="admin123", role="admin")

    def tearDown(self) -> None:
        self.db.close()

    def test_valid_credentials(self) -> None:
        user = authenticate(self.db, "admin", "admin123")
        self.assertEqual(user.id, self.admin.id)
        self.assertEqual(user.role, "admin")

    def test_wrong_password_and_unknown_user_look_the_same(self) -> None:
        with self.assertRaises(InvalidCredentialsError) as wrong:
            authenticate(self.db, "admin", "wrong-pw")
        with self.assertRaises(InvalidCredentialsError) as unknown:
            authenticate(self.db, "ghost", "admin123")
        self.assertEqual(wrong.exception.message, unknown.exception.message)

    def test_unknown_user_still_runs_a_hash_check(self) -> None:
        with patch("helpdesk_auth.services.credentials.burn_password_check") as burn:
            with self.assertRaises(InvalidCredentialsError):
                authenticate(self.db, "ghost", "whatever")
        burn.assert_called_once_with("whatever")

    def test_inactive_with_correct_password(self) -> None:
        add_user(self.db, "retired", password="pw-retired", status="inactive")
        with self.assertRaises(AccountInactiveError):
            authenticate(self.db, "retired", "pw-retired")

    def test_inactive_with_wrong_password_is_invalid_credentials(self) -> None:
        add_user(self.db, "retired", password="pw-retired", status="inactive")
        with self.assertRaises(InvalidCredentialsError):
            authenticate(self.db, "retired", "nope")

    def test_weak_hash_is_upgraded_on_login(self) -> None:
        self.assertEqual(hash_rounds(self.admin.password_hash), 4)
        with patch.object(security.settings, "BCRYPT_ROUNDS", 5):
            user = authenticate(self.db, "admin", "admin123")
        self.assertEqual(hash_rounds(user.password_hash), 5)
        self.assertTrue(verify_password("admin123", user.password_hash))

    def test_store_failure_is_service_unavailable(self) -> None:
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with self.assertRaises(ServiceUnavailableError):
            authenticate(db, "admin", "admin123")


if __name__ == "__main__":
    unittest.main()
