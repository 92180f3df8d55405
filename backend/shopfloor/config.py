# backend/shopfloor/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopfloor.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Held sales older than this are expired and eligible for cleanup
    HELD_SALE_TTL_HOURS = _int_env("HELD_SALE_TTL_HOURS", 24)

    # Tenant provisioning defaults
    TENANT_TRIAL_DAYS = _int_env("TENANT_TRIAL_DAYS", 50)
    TENANT_DEFAULT_MAX_USERS = _int_env("TENANT_DEFAULT_MAX_USERS", 10)
    TENANT_SLUG_MAX_ATTEMPTS = _int_env("TENANT_SLUG_MAX_ATTEMPTS", 100)

    # bcrypt cost factor for owner passwords
    BCRYPT_ROUNDS = _int_env("BCRYPT_ROUNDS", 12)
