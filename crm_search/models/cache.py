"""Cache fallback table — used when Redis is unavailable."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text

from .base import Base, UTCDateTime


class CacheEntry(Base):
    """Cached value with absolute expiry and optional sliding window."""

    __tablename__ = "cache_entries"
    id = Column(Integer, primary_key=True)
    cache_key = Column(String(2000), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=False)
    expires_at = Column(UTCDateTime, nullable=False, index=True)
    absolute_expires_at = Column(UTCDateTime, nullable=False)
    sliding_seconds = Column(Integer)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
