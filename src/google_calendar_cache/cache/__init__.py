"""Storage for cached free/busy responses."""

from .store import CacheEntry, CacheStore, FreshnessPolicy, MemoryCacheStore, DEFAULT_POLICY
from .sql_store import CalendarCache, SqlCacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "FreshnessPolicy",
    "MemoryCacheStore",
    "DEFAULT_POLICY",
    "CalendarCache",
    "SqlCacheStore",
]
