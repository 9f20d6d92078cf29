"""Cache backends — Redis primary with a database table fallback.

Both backends expose the same three calls:

    get(key) -> str | None
    set(key, value, ttl_seconds, sliding_seconds=None)
    delete(key)

Every backend fails open: connection or query errors are logged and turn
into a miss (get) or a no-op (set/delete). A search must stay correct, only
slower, when the cache is down.

Sliding entries are kept alive by reads: each hit pushes expiry out to
now + sliding_seconds, but never past the absolute expiry fixed at write.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Protocol

from sqlalchemy import delete as sql_delete
from sqlalchemy.exc import SQLAlchemyError

from ..clock import utc_now
from ..models import CacheEntry

log = logging.getLogger("crm.cache")


class Cache(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(
        self, key: str, value: str, ttl_seconds: int, sliding_seconds: int | None = None
    ) -> None: ...

    def delete(self, key: str) -> None: ...


class RedisCache:
    """Redis hash per key: data, absolute expiry (epoch seconds), sliding window."""

    def __init__(self, client, clock: Callable[[], datetime] = utc_now):
        self._redis = client
        self._clock = clock

    def get(self, key: str) -> str | None:
        try:
            data, absexp, sldexp = self._redis.hmget(key, "data", "absexp", "sldexp")
            if data is None:
                return None
            sliding = int(sldexp) if sldexp not in (None, "", "-1") else None
            if sliding:
                remaining = int(float(absexp) - self._clock().timestamp())
                if remaining <= 0:
                    return None
                self._redis.expire(key, min(sliding, remaining))
            return data
        except Exception as e:
            log.debug("Redis read error for %s: %s", key, e)
            return None

    def set(
        self, key: str, value: str, ttl_seconds: int, sliding_seconds: int | None = None
    ) -> None:
        absexp = self._clock().timestamp() + ttl_seconds
        expire_in = min(sliding_seconds, ttl_seconds) if sliding_seconds else ttl_seconds
        try:
            pipe = self._redis.pipeline()
            pipe.delete(key)
            pipe.hset(
                key,
                mapping={
                    "data": value,
                    "absexp": f"{absexp:.3f}",
                    "sldexp": str(sliding_seconds) if sliding_seconds else "-1",
                },
            )
            pipe.expire(key, expire_in)
            pipe.execute()
        except Exception as e:
            log.debug("Redis write error for %s: %s", key, e)

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except Exception as e:
            log.debug("Redis invalidate error for %s: %s", key, e)


class DatabaseCache:
    """cache_entries table. Expired rows are ignored on read, purged by cleanup_expired()."""

    def __init__(self, session_factory, clock: Callable[[], datetime] = utc_now):
        self._session_factory = session_factory
        self._clock = clock

    def get(self, key: str) -> str | None:
        try:
            with self._session_factory() as db:
                row = db.query(CacheEntry).filter_by(cache_key=key).first()
                now = self._clock()
                if row is None or row.expires_at <= now:
                    return None
                if row.sliding_seconds:
                    row.expires_at = min(
                        now + timedelta(seconds=row.sliding_seconds),
                        row.absolute_expires_at,
                    )
                    db.commit()
                return row.value
        except SQLAlchemyError as e:
            log.debug("Cache read error for %s: %s", key, e)
            return None

    def set(
        self, key: str, value: str, ttl_seconds: int, sliding_seconds: int | None = None
    ) -> None:
        now = self._clock()
        absolute = now + timedelta(seconds=ttl_seconds)
        expires = (
            min(now + timedelta(seconds=sliding_seconds), absolute)
            if sliding_seconds
            else absolute
        )
        try:
            with self._session_factory() as db:
                row = db.query(CacheEntry).filter_by(cache_key=key).first()
                if row is None:
                    row = CacheEntry(cache_key=key, created_at=now)
                    db.add(row)
                row.value = value
                row.expires_at = expires
                row.absolute_expires_at = absolute
                row.sliding_seconds = sliding_seconds or None
                db.commit()
        except SQLAlchemyError as e:
            log.warning("Cache write error for %s: %s", key, e)

    def delete(self, key: str) -> None:
        try:
            with self._session_factory() as db:
                db.execute(sql_delete(CacheEntry).where(CacheEntry.cache_key == key))
                db.commit()
        except SQLAlchemyError as e:
            log.debug("Cache invalidate error for %s: %s", key, e)

    def cleanup_expired(self) -> int:
        """Remove all expired entries. Returns count deleted."""
        try:
            with self._session_factory() as db:
                result = db.execute(
                    sql_delete(CacheEntry).where(CacheEntry.expires_at <= self._clock())
                )
                db.commit()
                count = result.rowcount or 0
                if count:
                    log.info("Cache cleanup: removed %d expired entries", count)
                return count
        except SQLAlchemyError as e:
            log.warning("Cache cleanup error: %s", e)
            return 0
