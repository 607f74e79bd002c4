"""Runtime configuration.

Three groups, each read from its own environment prefix:
- ``STORE_*``: backend selection, Redis URL, key namespace
- ``APP_*``: TTLs, payload bounds, code lengths, rate-limit budgets
- ``LOG_*``: level, format and destination

``APP_ENV`` (development, testing, staging, production) picks an optional
``.env.<env>`` file at the project root that is loaded before the groups.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_path = PROJECT_ROOT / ENV_FILE_MAP.get(APP_ENV, ".env.development")

# Deployments may rely on real environment variables only
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested settings groups don't see env_file, so push the file into os.environ
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_store_settings() -> "StoreSettings":
    # Fields come from the environment, not from constructor arguments
    return StoreSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class StoreSettings(BaseSettings):
    """Key-value store connection configuration."""

    backend: str = Field(
        "redis",
        description="Store backend: 'redis' for shared deployments, 'memory' for local runs and tests",
    )
    redis_url: str = Field(
        "redis://localhost:6379/0",
        description="Redis connection URL (redis:// or rediss://)",
    )
    socket_timeout_seconds: float = Field(
        5.0,
        description="Per-command network timeout in seconds",
        gt=0,
    )
    connect_timeout_seconds: float = Field(
        5.0,
        description="Connection establishment timeout in seconds",
        gt=0,
    )
    key_prefix: str = Field(
        "clipcode:",
        description="Namespace prepended to every key written by the service",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )

    default_ttl_seconds: int = Field(
        300,
        description="Clip lifetime used when a share request omits ttlSeconds",
    )
    allowed_ttl_seconds: list[int] = Field(
        default_factory=lambda: [180, 300, 600, 1800, 3600],
        description="Clip lifetimes a share request may ask for",
    )
    max_links: int = Field(10, description="Maximum number of links per clip", ge=1)
    max_link_chars: int = Field(2000, description="Maximum length of a single link", ge=1)
    max_text_chars: int = Field(5000, description="Maximum clip text length in characters", ge=1)
    max_label_chars: int = Field(40, description="Device labels are cut to this length", ge=1)
    max_fetch_code_chars: int = Field(
        12,
        description="Fetch rejects codes longer than this before touching the store",
    )

    share_code_length: int = Field(4, description="Length of clip codes", ge=3)
    share_code_attempts: int = Field(5, description="Attempts before giving up on a clip code", ge=1)
    pair_code_length: int = Field(6, description="Length of numeric pairing codes", ge=4)
    pair_code_attempts: int = Field(5, description="Attempts before giving up on a pairing code", ge=1)
    room_code_length: int = Field(6, description="Length of numeric room codes", ge=4)
    room_code_attempts: int = Field(10, description="Attempts before giving up on a room code", ge=1)

    pair_code_ttl_seconds: int = Field(600, description="Pairing code lifetime", ge=1)
    pairing_ttl_seconds: int = Field(
        60 * 60 * 24 * 30,
        description="Sender pairing lifetime, reset on every share that uses it",
        ge=1,
    )
    room_ttl_seconds: int = Field(60 * 60 * 2, description="Room lifetime", ge=1)

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-IP rate limiting",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers next to Retry-After when throttling",
    )
    rate_limit_share: tuple[int, int] = Field((20, 60), description="(limit, window_seconds) for share")
    rate_limit_fetch: tuple[int, int] = Field((60, 60), description="(limit, window_seconds) for fetch")
    rate_limit_pair_create: tuple[int, int] = Field((10, 60), description="(limit, window_seconds) for pair create")
    rate_limit_pair_confirm: tuple[int, int] = Field((20, 60), description="(limit, window_seconds) for pair confirm")
    rate_limit_pair_unlink: tuple[int, int] = Field((20, 60), description="(limit, window_seconds) for pair unlink")
    rate_limit_pair_status: tuple[int, int] = Field((60, 60), description="(limit, window_seconds) for pair status")
    rate_limit_room_create: tuple[int, int] = Field((10, 60), description="(limit, window_seconds) for room create")
    rate_limit_room_join: tuple[int, int] = Field((30, 60), description="(limit, window_seconds) for room join")
    rate_limit_nearby_poll: tuple[int, int] = Field((240, 60), description="(limit, window_seconds) for mailbox poll")
    rate_limit_nearby_ack: tuple[int, int] = Field((120, 60), description="(limit, window_seconds) for mailbox ack")

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output is 'file'")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate log file after this size (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field("X-Request-ID", description="Header carrying the correlation id")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups, built once at import time.

    Invalid values fail fast with a pydantic ValidationError.
    """

    app_env: str = APP_ENV
    store: StoreSettings = Field(default_factory=_build_store_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Process-wide settings
settings = Settings()
