"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Per-token scopes are not fixed fields: they are discovered from variables named
``RATE_LIMIT_TOKEN_<TOKEN>_REQUESTS`` (plus optional ``_WINDOW`` and
``_BLOCK_TIME``), see :func:`load_token_scopes`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.durations import parse_duration


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

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Token scopes are read straight from os.environ, so the file has to be
# loaded into the process environment rather than handed to BaseSettings.
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


TOKEN_ENV_PREFIX = "RATE_LIMIT_TOKEN_"
TOKEN_REQUESTS_SUFFIX = "_REQUESTS"
DEFAULT_WINDOW = "1s"
DEFAULT_BLOCK_TIME = "5m"


def _build_redis_settings() -> "RedisSettings":
    """Build Redis settings from environment."""

    return RedisSettings()


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment."""

    return RateLimitSettings()


def _build_server_settings() -> "ServerSettings":
    """Build HTTP server settings from environment."""

    return ServerSettings()


def _build_log_settings() -> "LogSettings":
    """Build logging settings from environment."""

    return LogSettings()


class ServerSettings(BaseSettings):
    """Where uvicorn binds when the app is started as a module."""

    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(8080, description="Bind port", ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Connection settings for the Redis counter store."""

    addr: str = Field(
        "localhost:6379",
        description="Redis address as host:port",
    )
    password: str | None = Field(
        None,
        description="Redis password (empty for none)",
    )
    db: int = Field(
        0,
        description="Redis logical database index",
        ge=0,
    )
    socket_timeout_seconds: float = Field(
        2.0,
        description="Socket connect/read timeout for every Redis call",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )

    @property
    def host(self) -> str:
        host, _, _ = self.addr.rpartition(":")
        return host or self.addr

    @property
    def port(self) -> int:
        _, sep, port = self.addr.rpartition(":")
        return int(port) if sep and port.isdigit() else 6379


class RateLimitSettings(BaseSettings):
    """Rate limiter configuration for the default (address) scope and the gate."""

    enabled: bool = Field(
        True,
        description="Enable rate limiting on protected routes",
    )
    storage: str = Field(
        "redis",
        description="Counter store backend: redis or memory",
    )
    ip_requests: int = Field(
        10,
        description="Maximum requests per window for a client address",
        ge=1,
    )
    ip_window: float = Field(
        1.0,
        description="Counting window for a client address (e.g. 1s, 500ms)",
        gt=0,
    )
    ip_block_time: float = Field(
        300.0,
        description="Block duration once an address exceeds its limit (e.g. 5m)",
        ge=0,
    )
    token_header: str = Field(
        "API_KEY",
        description="Request header carrying the access token",
    )
    trust_forwarded_headers: bool = Field(
        True,
        description="Resolve client address from X-Forwarded-For / X-Real-IP",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-Limit and Retry-After headers when throttling",
    )
    fail_open: bool = Field(
        False,
        description="Allow requests through when the counter store is unavailable",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    @field_validator("ip_window", "ip_block_time", mode="before")
    @classmethod
    def _parse_duration(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value


class TokenScopeSettings(BaseModel):
    """Limits configured for a single access token."""

    requests: int = Field(..., ge=1)
    window: float = Field(..., gt=0)
    block_time: float = Field(..., ge=0)

    @field_validator("window", "block_time", mode="before")
    @classmethod
    def _parse_duration(cls, value: object) -> object:
        if isinstance(value, str):
            return parse_duration(value)
        return value


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate log file at this size (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _parse_positive_int(raw: str | None) -> int:
    try:
        return int(raw) if raw else 0
    except ValueError:
        return 0


def load_token_scopes(environ: Mapping[str, str] | None = None) -> dict[str, TokenScopeSettings]:
    """Discover per-token limits from environment variables.

    For every ``RATE_LIMIT_TOKEN_<TOKEN>_REQUESTS`` holding a positive integer,
    a scope for ``<TOKEN>`` is built from it and the optional
    ``RATE_LIMIT_TOKEN_<TOKEN>_WINDOW`` / ``_BLOCK_TIME`` variables.

    Args:
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Mapping of token to its scope settings.

    Raises:
        ValidationAppError: If a window or block time is not a valid duration.

    Examples:
        >>> load_token_scopes({"RATE_LIMIT_TOKEN_abc123_REQUESTS": "100"})["abc123"].requests
        100
    """
    env = os.environ if environ is None else environ
    scopes: dict[str, TokenScopeSettings] = {}

    for name in env:
        if not name.startswith(TOKEN_ENV_PREFIX) or not name.endswith(TOKEN_REQUESTS_SUFFIX):
            continue
        token = name[len(TOKEN_ENV_PREFIX):-len(TOKEN_REQUESTS_SUFFIX)]
        if not token:
            continue

        requests = _parse_positive_int(env.get(name))
        if requests <= 0:
            continue

        prefix = f"{TOKEN_ENV_PREFIX}{token}"
        scopes[token] = TokenScopeSettings(
            requests=requests,
            window=parse_duration(env.get(f"{prefix}_WINDOW") or DEFAULT_WINDOW),
            block_time=parse_duration(env.get(f"{prefix}_BLOCK_TIME") or DEFAULT_BLOCK_TIME),
        )

    return scopes


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    server: ServerSettings = Field(default_factory=_build_server_settings)
    redis: RedisSettings = Field(default_factory=_build_redis_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
