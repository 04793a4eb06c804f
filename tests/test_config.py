"""Unit tests for helpdesk_auth.core.config: Settings validators."""

import unittest

from pydantic import ValidationError

from support import make_settings


class TestSettingsDefaults(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.SESSION_TTL_HOURS, 168)
        self.assertEqual(settings.RESET_TOKEN_TTL_MINUTES, 60)
        self.assertEqual(settings.SESSION_COOKIE_NAME, "session")
        self.assertTrue(settings.SESSION_COOKIE_SECURE)
        self.assertEqual(settings.SWEEP_INTERVAL_SECONDS, 3600)


class TestSettingsValidation(unittest.TestCase):
    def test_rejects_non_sql_database_url(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://localhost/helpdesk")

    def test_accepts_postgres_url(self) -> None:
        settings = make_settings(DATABASE_URL=" postgresql://u:p@db:5432/helpdesk ")
        self.assertEqual(settings.DATABASE_URL, "postgresql://u:p@db:5432/helpdesk")

    def test_session_ttl_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(SESSION_TTL_HOURS=0)
        with self.assertRaises(ValidationError):
            make_settings(SESSION_TTL_HOURS=9000)

    def test_reset_ttl_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(RESET_TOKEN_TTL_MINUTES=1)

    def test_bcrypt_rounds_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(BCRYPT_ROUNDS=3)
        with self.assertRaises(ValidationError):
            make_settings(BCRYPT_ROUNDS=20)

    def test_reset_url_must_be_http(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(RESET_URL_BASE="ftp://example.com/reset")
        settings = make_settings(RESET_URL_BASE="https://helpdesk.example.com/reset-password/")
        self.assertEqual(settings.RESET_URL_BASE, "https://helpdesk.example.com/reset-password")

    def test_sweep_interval_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(SWEEP_INTERVAL_SECONDS=10)

    def test_blank_cookie_name(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(SESSION_COOKIE_NAME="  ")


if __name__ == "__main__":
    unittest.main()
