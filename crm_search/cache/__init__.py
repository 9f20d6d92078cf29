"""Search cache — Redis primary with database fallback.

Redis is preferred for speed. Falls back to the cache_entries table if Redis
is unavailable (e.g., during development without Docker) or when
settings.cache_backend is "database".
"""

import logging
import os

from .backends import Cache, DatabaseCache, RedisCache  # noqa: F401

log = logging.getLogger("crm.cache")

# Lazy-initialized backend
_cache: Cache | None = None


def build_cache() -> Cache:
    """Connect to Redis if configured and reachable, else use the database table."""
    from ..config import settings
    from ..database import SessionLocal

    if os.environ.get("TESTING") or settings.cache_backend == "database":
        log.info("Cache backend set to database — skipping Redis")
        return DatabaseCache(SessionLocal)

    try:
        import redis

        client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            socket_timeout=2,
            retry_on_timeout=True,
        )
        client.ping()
        log.info("Redis cache connected: %s", settings.redis_url)
        return RedisCache(client)
    except Exception as e:
        log.warning("Redis unavailable, falling back to database cache: %s", e)
        return DatabaseCache(SessionLocal)


def get_cache() -> Cache:
    """FastAPI dependency: the process-wide cache backend."""
    global _cache
    if _cache is None:
        _cache = build_cache()
    return _cache
