"""
Runtime configuration for the calendar cache.

Values come from environment variables so the same code runs unchanged in
tests, local development and production.
"""

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Optional

import tzlocal


_TRUE_VALUES = ("1", "true", "yes", "on")


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """
    Resolve the zone month boundaries are computed in.

    Args:
        name: "utc" (default), or "local" for the host's zone.

    Returns:
        A tzinfo instance.
    """
    if not name or name.lower() == "utc":
        return timezone.utc
    if name.lower() == "local":
        return tzlocal.get_localzone()
    raise ValueError(f"Unsupported timezone setting: {name}")


@dataclass
class CacheSettings:
    """
    Settings for the availability cache.

    Args:
        expand_windows: Round query windows to month boundaries before keying.
        timezone: Zone used for month arithmetic.
        database_url: SQLAlchemy URL of the persistent cache table.
        webhook_token: Shared secret expected on push notifications.
    """
    expand_windows: bool = True
    timezone: tzinfo = timezone.utc
    database_url: str = "sqlite:///calendar_cache.db"
    webhook_token: Optional[str] = None

    @classmethod
    def from_env(cls) -> "CacheSettings":
        return cls(
            expand_windows=env_flag("GOOGLE_CALENDAR_CACHE_EXPAND", True),
            timezone=resolve_timezone(os.getenv("GOOGLE_CALENDAR_CACHE_TIMEZONE")),
            database_url=os.getenv("CALENDAR_CACHE_DATABASE_URL", "sqlite:///calendar_cache.db"),
            webhook_token=os.getenv("GOOGLE_CALENDAR_WEBHOOK_TOKEN"),
        )
