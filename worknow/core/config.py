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

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("/health, /api/redis")
        ['/health', '/api/redis']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class LLMSettings(BaseSettings):
    """LLM provider configuration used for job-title generation.

    Without an API key the title service runs on its rule-based fallback.
    """

    provider: str = Field(
        "openai",
        description="LLM provider name (only 'openai' is wired)",
    )
    model: str = Field(
        "gpt-3.5-turbo",
        description="Model name used for job title generation",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider; unset disables AI titles",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required on protected routes",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable the Redis fixed-window rate limiter",
    )
    rate_limit_requests: int = Field(
        100,
        description="Maximum number of requests allowed per window (per identifier)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on responses",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Connection settings for the shared Redis instance."""

    url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL (redis:// or rediss://)",
    )
    socket_timeout_seconds: float = Field(
        5.0,
        description="Per-command socket timeout",
    )
    socket_connect_timeout_seconds: float = Field(
        5.0,
        description="Connection establishment timeout",
    )
    retry_on_timeout: bool = Field(
        True,
        description="Retry a command once when it times out",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class CacheSettings(BaseSettings):
    """TTLs and toggles for the cache, session and activity helpers."""

    default_ttl_seconds: int = Field(3600, ge=1)
    response_cache_enabled: bool = Field(
        True,
        description="Cache GET JSON responses by URL",
    )
    response_ttl_seconds: int = Field(300, ge=1)
    response_key_prefix: str = Field("api:")
    response_exclude_prefixes: str = Field(
        "/health,/api/health,/api/redis,/docs,/openapi.json",
        description="Comma-separated path prefixes never served from cache",
    )
    jobs_ttl_seconds: int = Field(300, ge=1)
    session_ttl_seconds: int = Field(86400, ge=1)
    activity_max_entries: int = Field(100, ge=1)
    activity_ttl_seconds: int = Field(86400, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO")
    format: str = Field(
        "json",
        description="'json' for structured logs, 'plain' for human-readable lines",
    )
    output: str = Field(
        "stdout",
        description="'stdout' or 'file'",
    )
    file_path: str | None = Field(None)
    max_bytes: int = Field(10_485_760, description="Rotate file logs at this size; 0 disables")
    backup_count: int = Field(5)
    request_id_header: str = Field("X-Request-ID")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=LLMSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
