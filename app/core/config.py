"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required on admin endpoints",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for admin endpoints",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable the user and IP rate limit tiers on the purchase path",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    purchase_rate_limit_requests: int = Field(
        5,
        description="Maximum purchase attempts per user per window",
        ge=1,
    )
    purchase_rate_limit_window_seconds: int = Field(
        60,
        description="User tier window size in seconds",
        ge=1,
    )
    ip_rate_limit_requests: int = Field(
        10,
        description="Maximum purchase attempts per client IP per window",
        ge=1,
    )
    ip_rate_limit_window_seconds: int = Field(
        60,
        description="IP tier window size in seconds",
        ge=1,
    )
    anonymous_user_id: str = Field(
        "anonymous",
        description="Identifier used for rate limiting when no user id is supplied",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Transactional record store configuration.

    PostgreSQL (``postgresql+asyncpg://``) is the production backend. SQLite
    (``sqlite+aiosqlite://``) is supported for local development and tests.
    """

    url: str = Field(
        "sqlite+aiosqlite:///./flash_sale.db",
        description="SQLAlchemy async database URL",
    )
    pool_size: int = Field(
        20,
        description="Number of pooled connections kept open (ignored for SQLite)",
        ge=1,
    )
    pool_timeout_seconds: float = Field(
        2.0,
        description="Seconds to wait for a pooled connection before failing",
    )
    pool_recycle_seconds: int = Field(
        1800,
        description="Recycle pooled connections older than this many seconds",
    )
    echo: bool = Field(
        False,
        description="Log every SQL statement (debugging only)",
    )
    auto_create_schema: bool = Field(
        True,
        description="Create tables and indexes on startup if they do not exist",
    )
    sqlite_busy_timeout_seconds: float = Field(
        15.0,
        description="How long a SQLite connection waits for the write lock",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class CounterStoreSettings(BaseSettings):
    """Atomic counter store used by the rate limiter."""

    backend: Literal["redis", "memory"] = Field(
        "redis",
        description="Counter backend: redis (shared) or memory (single process only)",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    max_connections: int = Field(
        100,
        description="Maximum pooled Redis connections",
        ge=1,
    )
    socket_timeout_seconds: float = Field(
        5.0,
        description="Redis socket and connect timeout in seconds",
    )
    key_prefix: str = Field(
        "rate_limit",
        description="Namespace prepended to every rate limit counter key",
    )

    model_config = SettingsConfigDict(
        env_prefix="COUNTER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    counter: CounterStoreSettings = Field(default_factory=CounterStoreSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
