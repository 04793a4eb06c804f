"""Core app configuration, database and security primitives."""

from helpdesk_auth.core.config import get_settings, settings
from helpdesk_auth.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
