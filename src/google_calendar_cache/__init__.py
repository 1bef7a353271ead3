"""
Cached free/busy lookups for Google Calendar.

Free/busy queries are normalized to month-aligned windows and sorted
calendar ids so that similar requests share one cache entry per credential.
"""

from .availability import (
    BusyInterval, FreeBusyArgs, IntegrationCalendar, WatchChannel,
    expand_start, expand_end, build_cache_key, aggregate_busy_times
)
from .cache import CacheStore, FreshnessPolicy, MemoryCacheStore, SqlCacheStore
from .clients.calendar import GoogleFreeBusyClient, AsyncGoogleFreeBusyClient
from .config import CacheSettings
from .flags import FeatureFlagSource, StaticFeatureFlags, EnvFeatureFlags
from .services.calendar import CalendarAvailabilityService, AsyncCalendarAvailabilityService

__all__ = [
    "BusyInterval",
    "FreeBusyArgs",
    "IntegrationCalendar",
    "WatchChannel",
    "expand_start",
    "expand_end",
    "build_cache_key",
    "aggregate_busy_times",
    "CacheStore",
    "FreshnessPolicy",
    "MemoryCacheStore",
    "SqlCacheStore",
    "GoogleFreeBusyClient",
    "AsyncGoogleFreeBusyClient",
    "CacheSettings",
    "FeatureFlagSource",
    "StaticFeatureFlags",
    "EnvFeatureFlags",
    "CalendarAvailabilityService",
    "AsyncCalendarAvailabilityService",
]
