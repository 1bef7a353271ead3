"""
Cache store contract and an in-process implementation.

Entries are keyed by (credential id, cache key) so two credentials asking
the same question never share an answer.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from ..constants import CACHE_CREATE_TTL, CACHE_UPDATE_TTL
from ..utils.log_sanitizer import sanitize_cache_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreshnessPolicy:
    """
    Expiry applied by an upsert.
    Args:
        create_ttl: Lifetime of an entry inserted for a new key.
        update_ttl: Lifetime of an entry whose key already existed.
    """
    create_ttl: timedelta = CACHE_CREATE_TTL
    update_ttl: timedelta = CACHE_UPDATE_TTL


DEFAULT_POLICY = FreshnessPolicy()


@dataclass
class CacheEntry:
    credential_id: int
    key: str
    value: Any
    expires_at: datetime

    def is_fresh(self, now: datetime) -> bool:
        return self.expires_at >= now


class CacheStore(ABC):
    """Persistent key-value storage for free/busy responses."""

    @abstractmethod
    def get(self, credential_id: int, key: str, now: datetime) -> Optional[CacheEntry]:
        """
        Returns the entry for (credential_id, key) if it has not expired.

        An absent entry and an expired one both yield None.
        """

    @abstractmethod
    def upsert(
            self,
            credential_id: int,
            key: str,
            value: Any,
            now: datetime,
            policy: FreshnessPolicy = DEFAULT_POLICY
    ) -> CacheEntry:
        """
        Inserts or replaces an entry in one atomic step.

        New keys expire after policy.create_ttl, existing keys after
        policy.update_ttl.
        """

    @abstractmethod
    def delete(self, credential_id: int, key: str) -> bool:
        """Removes an entry. Returns True if one existed."""

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        """Removes expired entries and returns how many were removed."""


class MemoryCacheStore(CacheStore):
    """Thread-safe in-memory cache store."""

    def __init__(self):
        self._entries: Dict[Tuple[int, str], CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, credential_id: int, key: str, now: datetime) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get((credential_id, key))
            if entry is None or not entry.is_fresh(now):
                return None
            return copy.deepcopy(entry)

    def upsert(
            self,
            credential_id: int,
            key: str,
            value: Any,
            now: datetime,
            policy: FreshnessPolicy = DEFAULT_POLICY
    ) -> CacheEntry:
        stored_value = copy.deepcopy(value)
        with self._lock:
            existing = self._entries.get((credential_id, key))
            if existing is None:
                entry = CacheEntry(credential_id, key, stored_value, now + policy.create_ttl)
            else:
                entry = CacheEntry(credential_id, key, stored_value, now + policy.update_ttl)
            self._entries[(credential_id, key)] = entry
        logger.debug("Cache %s for credential %s key=%s",
                     "insert" if existing is None else "update",
                     credential_id, sanitize_cache_key(key))
        return copy.deepcopy(entry)

    def delete(self, credential_id: int, key: str) -> bool:
        with self._lock:
            return self._entries.pop((credential_id, key), None) is not None

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired_keys = [
                entry_key for entry_key, entry in self._entries.items()
                if not entry.is_fresh(now)
            ]
            for entry_key in expired_keys:
                del self._entries[entry_key]
            return len(expired_keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
