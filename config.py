"""
Process configuration for Reconnect.

Values come from environment variables so the same build runs locally
(in-memory storage) and deployed (MongoDB).
"""

import os
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from errors import ConfigError


@dataclass(frozen=True)
class Config:
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    timezone: str = "UTC"
    default_reminder_interval_days: int = 14
    undo_window_seconds: float = 5.0
    log_level: str = "INFO"
    env: str = "development"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_config() -> Config:
    config = Config(
        database_url=os.getenv("DATABASE_URL") or None,
        database_name=os.getenv("DATABASE_NAME") or None,
        timezone=os.getenv("RECONNECT_TIMEZONE", "UTC"),
        default_reminder_interval_days=_int_env("DEFAULT_REMINDER_INTERVAL_DAYS", 14),
        undo_window_seconds=_float_env("UNDO_WINDOW_SECONDS", 5.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        env=os.getenv("ENV", "development"),
    )

    if config.default_reminder_interval_days <= 0:
        raise ConfigError("DEFAULT_REMINDER_INTERVAL_DAYS must be positive")
    if config.undo_window_seconds < 0:
        raise ConfigError("UNDO_WINDOW_SECONDS cannot be negative")
    try:
        config.tz
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigError(f"Unknown time zone: {config.timezone!r}")
    return config
