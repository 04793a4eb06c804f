"""Password hashing and opaque token generation."""

import hashlib
import re
import secrets
from functools import lru_cache

import bcrypt

from helpdesk_auth.core.config import settings

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# bcrypt only looks at the first 72 bytes of the input.
BCRYPT_MAX_BYTES = 72

# 32 random bytes -> 64 hex chars (256 bits of entropy).
TOKEN_BYTES = 32

# Modular crypt prefix, e.g. $2b$10$...; carries the algorithm and cost.
_BCRYPT_PREFIX = re.compile(r"^\$(2[abxy]?)\$(\d{2})\$")


def _encode(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    cost = rounds if rounds is not None else settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(_encode(plain_password), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash (constant-time in bcrypt)."""
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def hash_rounds(hashed: str) -> int | None:
    """Return the cost factor embedded in a bcrypt hash, or None if unrecognised."""
    match = _BCRYPT_PREFIX.match(hashed or "")
    if match is None:
        return None
    return int(match.group(2))


def needs_rehash(hashed: str, rounds: int | None = None) -> bool:
    """
    True when a stored hash was produced with a weaker cost than configured
    (or with an unknown scheme), so it should be replaced after a successful login.
    """
    target = rounds if rounds is not None else settings.BCRYPT_ROUNDS
    current = hash_rounds(hashed)
    return current is None or current < target


@lru_cache
def _dummy_hash(rounds: int) -> str:
    return hash_password("dummy-password", rounds=rounds)


def burn_password_check(plain_password: str) -> None:
    """Run a throwaway bcrypt check so unknown usernames cost about as much as known ones."""
    verify_password(plain_password, _dummy_hash(settings.BCRYPT_ROUNDS))


def generate_token() -> str:
    """Return a fresh unguessable token (hex, 256 bits)."""
    return secrets.token_hex(TOKEN_BYTES)


def token_digest(token: str) -> str:
    """SHA-256 hex digest of a token; reset tokens are stored only as digests."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_prefix(token: str | None) -> str:
    """Short, non-secret prefix of a token for log lines."""
    if not token:
        return "<none>"
    return token[:8] + "..."
