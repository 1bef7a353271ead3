"""
SQLAlchemy-backed cache store.

One row per (credential_id, key) in the calendar_cache table. Timestamps are
stored as naive UTC so the table behaves the same on SQLite and PostgreSQL.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, Text, create_engine, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from ..exceptions.cache import CacheStoreError
from ..utils.log_sanitizer import sanitize_cache_key
from .store import DEFAULT_POLICY, CacheEntry, CacheStore, FreshnessPolicy

logger = logging.getLogger(__name__)

Base = declarative_base()


class CalendarCache(Base):
    __tablename__ = "calendar_cache"

    credential_id = Column(Integer, primary_key=True)
    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)


def _to_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_time(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc)


class SqlCacheStore(CacheStore):
    """
    Cache store persisted through SQLAlchemy.

    Upserts read and write the row inside one transaction. If a concurrent
    request inserts the same key first, the insert fails on the primary key
    and the write is retried as an update.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str, create_tables: bool = True, **engine_kwargs) -> "SqlCacheStore":
        """
        Create a store for a database URL.

        Args:
            database_url: SQLAlchemy URL, e.g. "sqlite:///calendar_cache.db".
            create_tables: Create the calendar_cache table if missing.
            **engine_kwargs: Passed to create_engine.
        """
        engine = create_engine(database_url, pool_pre_ping=True, **engine_kwargs)
        if create_tables:
            Base.metadata.create_all(engine)
        logger.info("Calendar cache store ready (dialect=%s)", engine.dialect.name)
        return cls(sessionmaker(bind=engine, autoflush=False, expire_on_commit=False))

    def get(self, credential_id: int, key: str, now: datetime) -> Optional[CacheEntry]:
        try:
            with self._session_factory() as session:
                row = (
                    session.query(CalendarCache)
                    .filter(
                        CalendarCache.credential_id == credential_id,
                        CalendarCache.key == key,
                        CalendarCache.expires_at >= _to_db_time(now),
                    )
                    .one_or_none()
                )
                if row is None:
                    return None
                return self._to_entry(row)
        except SQLAlchemyError as e:
            logger.error("Cache lookup failed for credential %s: %s", credential_id, e)
            raise CacheStoreError(f"Cache lookup failed: {e}")

    def upsert(
            self,
            credential_id: int,
            key: str,
            value: Any,
            now: datetime,
            policy: FreshnessPolicy = DEFAULT_POLICY
    ) -> CacheEntry:
        try:
            try:
                return self._write(credential_id, key, value, now, policy, allow_insert=True)
            except IntegrityError:
                logger.info("Concurrent insert for key=%s, retrying as update", sanitize_cache_key(key))
                return self._write(credential_id, key, value, now, policy, allow_insert=False)
        except SQLAlchemyError as e:
            logger.error("Cache write failed for credential %s: %s", credential_id, e)
            raise CacheStoreError(f"Cache write failed: {e}")

    def _write(
            self,
            credential_id: int,
            key: str,
            value: Any,
            now: datetime,
            policy: FreshnessPolicy,
            allow_insert: bool
    ) -> CacheEntry:
        with self._session_factory() as session:
            with session.begin():
                row = session.get(CalendarCache, (credential_id, key), with_for_update=True)
                if row is None and allow_insert:
                    row = CalendarCache(
                        credential_id=credential_id,
                        key=key,
                        value=value,
                        expires_at=_to_db_time(now + policy.create_ttl),
                    )
                    session.add(row)
                elif row is None:
                    raise CacheStoreError("Cache entry vanished during update")
                else:
                    row.value = value
                    row.expires_at = _to_db_time(now + policy.update_ttl)
                session.flush()
                return self._to_entry(row)

    def delete(self, credential_id: int, key: str) -> bool:
        try:
            with self._session_factory() as session:
                with session.begin():
                    result = session.execute(
                        delete(CalendarCache).where(
                            CalendarCache.credential_id == credential_id,
                            CalendarCache.key == key,
                        )
                    )
                    return result.rowcount > 0
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Cache delete failed: {e}")

    def purge_expired(self, now: datetime) -> int:
        try:
            with self._session_factory() as session:
                with session.begin():
                    result = session.execute(
                        delete(CalendarCache).where(CalendarCache.expires_at < _to_db_time(now))
                    )
                    logger.info("Purged %d expired cache entries", result.rowcount)
                    return result.rowcount
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Cache purge failed: {e}")

    @staticmethod
    def _to_entry(row: CalendarCache) -> CacheEntry:
        return CacheEntry(
            credential_id=row.credential_id,
            key=row.key,
            value=row.value,
            expires_at=_from_db_time(row.expires_at),
        )
