"""Runtime configuration read from environment variables.

Environment variables are loaded from a ``.env`` file (if present) at import
time, then read once into a frozen :class:`Settings` instance returned by
:func:`get_settings`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SHARE_BASE_URL = "https://localhost:8081"


def _default_database_url() -> str:
    project_root = Path(__file__).resolve().parents[2]
    return f"sqlite+aiosqlite:///{(project_root / 'showcase.db').as_posix()}"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        database_url: Async SQLAlchemy URL.
        pool_size: Number of persistent connections kept by the pool.
        max_overflow: Extra connections allowed above ``pool_size``.
        query_timeout: Default time budget (seconds) for a database session.
        share_query_timeout: Time budget for each step of share issuance.
        share_issue_timeout: Time budget for the whole share issuance.
        share_token_attempts: Insert attempts before a token collision is fatal.
        share_base_url: Base URL that share tokens are appended to.
        jwt_secret: Signing secret for bearer credentials.
        jwt_algorithm: Signing algorithm for bearer credentials.
        access_token_expire_minutes: Lifetime of issued credentials.
        cors_origins: Allowed CORS origins.
        log_level: Root log level name.
        password_hash_iterations: PBKDF2 work factor for new password hashes.
    """

    database_url: str
    pool_size: int
    max_overflow: int
    query_timeout: float
    share_query_timeout: float
    share_issue_timeout: float
    share_token_attempts: int
    share_base_url: str
    jwt_secret: str | None
    jwt_algorithm: str
    access_token_expire_minutes: int
    cors_origins: tuple[str, ...]
    log_level: str
    password_hash_iterations: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings, reading the environment on first call."""
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DB_URL") or _default_database_url(),
        pool_size=_env_int("DB_POOL_SIZE", 5),
        max_overflow=_env_int("DB_MAX_OVERFLOW", 10),
        query_timeout=_env_float("DB_QUERY_TIMEOUT", 3.0),
        share_query_timeout=_env_float("SHARE_QUERY_TIMEOUT", 2.0),
        share_issue_timeout=_env_float("SHARE_ISSUE_TIMEOUT", 5.0),
        share_token_attempts=_env_int("SHARE_TOKEN_ATTEMPTS", 3),
        share_base_url=os.getenv("SHARE_BASE_URL", DEFAULT_SHARE_BASE_URL),
        jwt_secret=os.getenv("JWT_SECRET"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        password_hash_iterations=_env_int("PASSWORD_HASH_ITERATIONS", 600_000),
    )
