"""
Shared configuration for FeedGate core.
"""

from __future__ import annotations

import logging
import os

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("feedgate")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/feedgate.db")
DATABASE_URL = os.environ.get("DATABASE_URL")
DB_BACKEND_EFFECTIVE = DB_BACKEND if DB_BACKEND in {"postgres", "sqlite"} else "postgres"
SQLITE_BUSY_TIMEOUT_SECONDS = _get_int("SQLITE_BUSY_TIMEOUT_SECONDS", 30)

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# Identity is asserted upstream; the API layer reads it from this header
IDENTITY_HEADER = os.environ.get("FEEDGATE_IDENTITY_HEADER", "X-Identity-Id")

# HTTP surface
REQUEST_ID_HEADER = os.environ.get("FEEDGATE_REQUEST_ID_HEADER", "X-Request-Id")
TRUSTED_HOSTS = [host.strip() for host in os.environ.get("TRUSTED_HOSTS", "").split(",") if host.strip()]
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Stories without an explicit expiry live this long
STORY_TTL_SECONDS = _get_int("FEEDGATE_STORY_TTL_SECONDS", 24 * 60 * 60)

# Request/input limits
MAX_RESULT_LIMIT = _get_int("FEEDGATE_MAX_RESULT_LIMIT", 100)
DEFAULT_RESULT_LIMIT = _get_int("FEEDGATE_DEFAULT_RESULT_LIMIT", 20)
MAX_IDENTITY_LENGTH = _get_int("FEEDGATE_MAX_IDENTITY_LENGTH", 255)
MAX_USERNAME_LENGTH = _get_int("FEEDGATE_MAX_USERNAME_LENGTH", 30)
MAX_FULL_NAME_LENGTH = _get_int("FEEDGATE_MAX_FULL_NAME_LENGTH", 100)
MAX_BIO_LENGTH = _get_int("FEEDGATE_MAX_BIO_LENGTH", 500)
MAX_URL_LENGTH = _get_int("FEEDGATE_MAX_URL_LENGTH", 1000)
MAX_CAPTION_LENGTH = _get_int("FEEDGATE_MAX_CAPTION_LENGTH", 2200)
MAX_COMMENT_LENGTH = _get_int("FEEDGATE_MAX_COMMENT_LENGTH", 2200)
MAX_MESSAGE_LENGTH = _get_int("FEEDGATE_MAX_MESSAGE_LENGTH", 4000)
MAX_OBJECT_KEY_LENGTH = _get_int("FEEDGATE_MAX_OBJECT_KEY_LENGTH", 1024)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL, DB_BACKEND_EFFECTIVE

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        url_lower = DATABASE_URL.lower()
        is_sqlite_url = url_lower.startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if STORY_TTL_SECONDS <= 0:
        errors.append("FEEDGATE_STORY_TTL_SECONDS must be positive")
    if DEFAULT_RESULT_LIMIT <= 0 or DEFAULT_RESULT_LIMIT > MAX_RESULT_LIMIT:
        errors.append("FEEDGATE_DEFAULT_RESULT_LIMIT must be between 1 and FEEDGATE_MAX_RESULT_LIMIT")
    if not IDENTITY_HEADER.strip():
        errors.append("FEEDGATE_IDENTITY_HEADER must not be empty")

    DB_BACKEND_EFFECTIVE = DB_BACKEND if DB_BACKEND in {"postgres", "sqlite"} else "postgres"

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
