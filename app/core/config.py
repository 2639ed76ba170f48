"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

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
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys (memory identity backend)",
    )
    auth_realm: str = Field(
        "Application",
        description="Realm announced in the WWW-Authenticate challenge",
    )
    auth_exempt_routes: str = Field(
        "/",
        description="Comma-separated list of route paths that skip token authentication",
    )
    identity_backend: str = Field(
        "memory",
        description="Identity store backend: memory or redis",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable fixed-window rate limiting per token",
    )
    rate_limit_requests: int = Field(
        60,
        description="Maximum number of counted requests per window (per token)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        900,
        description="Fixed window length in seconds",
        ge=1,
    )
    rate_limit_backend: str = Field(
        "memory",
        description="Counter store backend: memory or redis",
    )
    rate_limit_fail_open: bool = Field(
        False,
        description="Admit requests when the counter store is unreachable (default: reject with 503)",
    )
    rate_limit_include_headers: bool = Field(
        False,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    throttle_exempt_by_ip: bool = Field(
        False,
        description="Throttle auth-exempt routes by client IP",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Connection parameters for the shared Redis stores."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL",
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Per-operation socket timeout",
        gt=0,
    )
    connect_timeout_seconds: float = Field(
        2.0,
        description="Connection establishment timeout",
        gt=0,
    )
    counter_key_prefix: str = Field(
        "count:",
        description="Namespace prepended to every rate limit counter key",
    )
    identity_key: str = Field(
        "api_keys",
        description="Name of the Redis set holding valid API keys",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format: json or plain",
    )
    output: str = Field(
        "stdout",
        description="Log destination: stdout or file",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output=file",
    )
    max_bytes: int = Field(
        10_485_760,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
        ge=0,
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("/, /health ,")
        ['/', '/health']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
