"""
conftest.py — Shared Test Fixtures for contact search

Provides an in-memory SQLite database, a dict-backed fake cache with a
controllable clock, a contact factory, and a FastAPI TestClient with the
database and cache dependencies overridden.

Business Rules:
- All tests run against an isolated in-memory DB
- Each test function gets a fresh schema
- TESTING is set before importing crm_search so Redis is never contacted

Called by: all test files via pytest autodiscovery
Depends on: crm_search.models (Base), crm_search.database (get_db), crm_search.cache
"""

import os
os.environ["TESTING"] = "1"  # Must be set before importing crm_search modules
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from crm_search.models import (
    Base, Contact, ContactTag, Deal, DealStage, Interaction, InteractionType, Tag,
)

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

# ── In-memory SQLite engine ──────────────────────────────────────────

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fake cache ───────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeCache:
    """Dict-backed cache honoring absolute TTL and sliding window."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.store: dict[str, tuple[str, datetime, datetime, int | None]] = {}
        self.gets: list[str] = []
        self.sets: list[tuple[str, int, int | None]] = []

    def get(self, key: str) -> str | None:
        self.gets.append(key)
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires, absolute, sliding = entry
        now = self.clock()
        if expires <= now:
            del self.store[key]
            return None
        if sliding:
            self.store[key] = (value, min(now + timedelta(seconds=sliding), absolute), absolute, sliding)
        return value

    def set(self, key: str, value: str, ttl_seconds: int, sliding_seconds: int | None = None) -> None:
        self.sets.append((key, ttl_seconds, sliding_seconds))
        now = self.clock()
        absolute = now + timedelta(seconds=ttl_seconds)
        expires = min(now + timedelta(seconds=sliding_seconds), absolute) if sliding_seconds else absolute
        self.store[key] = (value, expires, absolute, sliding_seconds)

    def delete(self, key: str) -> None:
        self.store.pop(key, None)

    def keys_with(self, fragment: str) -> list[str]:
        return [k for k in self.store if fragment in k]


class StepTimer:
    """perf_counter stand-in that advances 5 ms per call."""

    def __init__(self):
        self.t = 0.0

    def __call__(self) -> float:
        self.t += 0.005
        return self.t


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_cache(clock) -> FakeCache:
    return FakeCache(clock)


@pytest.fixture()
def make_contact(db_session: Session):
    """Factory: make_contact(first_name="Ann", tags=["VIP"], interactions=[...], deals=[...])."""
    tag_cache: dict[str, Tag] = {}
    counter = {"n": 0}

    def _tag(name: str) -> Tag:
        if name not in tag_cache:
            tag = db_session.query(Tag).filter_by(name=name).first()
            if tag is None:
                tag = Tag(name=name)
                db_session.add(tag)
                db_session.flush()
            tag_cache[name] = tag
        return tag_cache[name]

    def _make(
        first_name: str = "Test",
        last_name: str | None = None,
        email: str | None = None,
        company: str = "Acme Corp",
        city: str = "Berlin",
        last_contact_date: datetime | None = None,
        deal_stage: DealStage | None = DealStage.QUALIFIED,
        base_potential_value: Decimal | None = Decimal("1000"),
        tags: list[str] = (),
        interactions: list[InteractionType] = (),
        deals: list[Decimal | None] = (),
    ) -> Contact:
        counter["n"] += 1
        n = counter["n"]
        contact = Contact(
            first_name=first_name,
            last_name=last_name if last_name is not None else f"Person{n:03d}",
            email=email or f"contact{n:03d}@example.com",
            company=company,
            city=city,
            last_contact_date=last_contact_date or NOW - timedelta(days=1),
            deal_stage=deal_stage,
            base_potential_value=base_potential_value,
        )
        for name in tags:
            contact.contact_tags.append(ContactTag(tag=_tag(name)))
        for itype in interactions:
            contact.interactions.append(Interaction(type=itype, date=NOW - timedelta(days=2)))
        for value in deals:
            contact.deals.append(Deal(estimated_value=value))
        db_session.add(contact)
        db_session.commit()
        return contact

    return _make


@pytest.fixture()
def client(db_session: Session, fake_cache: FakeCache) -> TestClient:
    """FastAPI TestClient with get_db and get_cache overridden."""
    from crm_search.cache import get_cache
    from crm_search.database import get_db
    from crm_search.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_cache] = lambda: fake_cache

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
