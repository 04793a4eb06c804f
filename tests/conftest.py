"""Test environment: in-memory SQLite, cheap bcrypt, no background sweeper."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SWEEP_IN_PROCESS", "false")
os.environ.setdefault("APP_ENV", "dev")
