"""Deal Value — derived sales-potential score per contact.

    base  = base_potential_value (or 0)
    base *= sum of interaction multipliers      (sum, not product)
    base *= stage multiplier
    base += sum of deal estimated values        (missing = 0)
    base *= 0.99 ** (days_since - 30)           (only when days_since > 30)
    round to 2 places, half-even

days_since is whole days since last contact, truncated. The score is never
persisted; DealValueCache memoizes it per contact id for an hour. There is
no invalidation when the contact's rows change, so a cached score can lag
the data by up to the TTL.

Called by: services/contact_search.py, services/naive_search.py
Depends on: models (DealStage, InteractionType), cache/keys.py
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Callable, Iterable

from ..cache.backends import Cache
from ..cache.keys import deal_value_cache_key
from ..clock import ensure_utc, utc_now
from ..models import DealStage, InteractionType

log = logging.getLogger(__name__)

INTERACTION_MULTIPLIERS = {
    InteractionType.EMAIL: Decimal("1.01"),
    InteractionType.CALL: Decimal("1.05"),
    InteractionType.MEETING: Decimal("1.15"),
    InteractionType.DEMO: Decimal("1.25"),
}
DEFAULT_INTERACTION_MULTIPLIER = Decimal("1.0")

STAGE_MULTIPLIERS = {
    DealStage.PROSPECT: Decimal("0.3"),
    DealStage.QUALIFIED: Decimal("0.6"),
    DealStage.PROPOSAL: Decimal("0.8"),
    DealStage.NEGOTIATION: Decimal("0.9"),
    DealStage.CLOSED_WON: Decimal("1.0"),
    DealStage.CLOSED_LOST: Decimal("0.0"),
}
DEFAULT_STAGE_MULTIPLIER = Decimal("0.1")

DECAY_GRACE_DAYS = 30
DECAY_RATE = Decimal("0.99")
CENTS = Decimal("0.01")


def interaction_multiplier(interaction_type) -> Decimal:
    return INTERACTION_MULTIPLIERS.get(interaction_type, DEFAULT_INTERACTION_MULTIPLIER)


def stage_multiplier(stage) -> Decimal:
    if stage is None:
        return DEFAULT_STAGE_MULTIPLIER
    return STAGE_MULTIPLIERS.get(stage, DEFAULT_STAGE_MULTIPLIER)


def compute_deal_value(contact, interactions: Iterable, deals: Iterable, now: datetime) -> Decimal:
    """Pure formula. Same inputs and same `now` always give the same result."""
    base = Decimal(contact.base_potential_value or 0)
    base *= sum((interaction_multiplier(i.type) for i in interactions), Decimal(0))
    base *= stage_multiplier(contact.deal_stage)
    base += sum((Decimal(d.estimated_value or 0) for d in deals), Decimal(0))

    days_since = (ensure_utc(now) - ensure_utc(contact.last_contact_date)).days
    if days_since > DECAY_GRACE_DAYS:
        base *= DECAY_RATE ** (days_since - DECAY_GRACE_DAYS)

    return base.quantize(CENTS, rounding=ROUND_HALF_EVEN)


class DealValueCache:
    """Per-contact memoization of compute_deal_value in the key-value cache."""

    def __init__(
        self,
        cache: Cache,
        namespace: str,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._cache = cache
        self._namespace = namespace
        self._ttl = ttl_seconds
        self._clock = clock

    def lookup(self, contact_id: int) -> Decimal | None:
        key = deal_value_cache_key(contact_id, self._namespace)
        raw = self._cache.get(key)
        if raw is None:
            return None
        try:
            value = Decimal(raw)
        except InvalidOperation:
            log.warning("Discarding corrupt deal value for contact %s: %r", contact_id, raw)
            return None
        return value if value.is_finite() else None

    def store(self, contact_id: int, value: Decimal) -> None:
        self._cache.set(deal_value_cache_key(contact_id, self._namespace), str(value), self._ttl)

    def resolve(self, contact, now: datetime | None = None) -> Decimal:
        """Cached value if present, else computed. Does not write."""
        cached = self.lookup(contact.id)
        if cached is not None:
            return cached
        return compute_deal_value(
            contact, contact.interactions, contact.deals, now or self._clock()
        )

    def get_or_compute(self, contact, now: datetime | None = None) -> Decimal:
        """Cached value if present, else compute and cache it."""
        cached = self.lookup(contact.id)
        if cached is not None:
            return cached
        value = compute_deal_value(
            contact, contact.interactions, contact.deals, now or self._clock()
        )
        self.store(contact.id, value)
        return value
