"""Demo data seeding.

Populates contacts, tags, interactions and deals from a seeded RNG so the
same (count, seed, now) always produces the same rows.
"""

import logging
import random
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from .clock import utc_now
from .models import Contact, ContactTag, Deal, DealStage, Interaction, InteractionType, Tag

log = logging.getLogger(__name__)

FIRST_NAMES = [
    "Alice", "Bruno", "Chen", "Dana", "Elif", "Farah", "Goran", "Hana",
    "Ivan", "Jonas", "Keiko", "Luis", "Maya", "Nikos", "Olga", "Priya",
]
LAST_NAMES = [
    "Anders", "Brooks", "Costa", "Diaz", "Evans", "Fischer", "Garcia", "Hughes",
    "Ito", "Jensen", "Khan", "Lopez", "Moreau", "Novak", "Okafor", "Park",
]
COMPANIES = [
    "Acme Corp", "Globex", "Initech", "Umbrella", "Hooli", "Vandelay Industries",
    "Stark Industries", "Wayne Enterprises", "Soylent", "Tyrell",
]
CITIES = ["New York", "London", "Berlin", "Tokyo", "Toronto", "Sydney", "Paris", "Austin"]
TAG_NAMES = ["VIP", "Gold", "Silver", "Enterprise", "SMB", "Partner", "Lead", "Churn Risk"]


def _get_or_create_tags(db: Session) -> list[Tag]:
    existing = {t.name: t for t in db.query(Tag).filter(Tag.name.in_(TAG_NAMES)).all()}
    tags = []
    for name in TAG_NAMES:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
        tags.append(tag)
    db.flush()
    return tags


def seed_contacts(
    db: Session, count: int = 1000, seed: int = 42, now: datetime | None = None
) -> int:
    """Insert `count` demo contacts with related rows. Returns the number inserted."""
    rng = random.Random(seed)
    now = now or utc_now()
    tags = _get_or_create_tags(db)
    stages = list(DealStage) + [None]
    interaction_types = list(InteractionType)

    for i in range(count):
        first = rng.choice(FIRST_NAMES)
        last = rng.choice(LAST_NAMES)
        contact = Contact(
            first_name=first,
            last_name=last,
            email=f"{first.lower()}.{last.lower()}.{i}@example.com",
            company=rng.choice(COMPANIES),
            city=rng.choice(CITIES),
            last_contact_date=now - timedelta(days=rng.randint(0, 365), minutes=rng.randint(0, 1439)),
            deal_stage=rng.choice(stages),
            base_potential_value=(
                Decimal(rng.randint(1_000, 500_000)) if rng.random() > 0.1 else None
            ),
        )
        for tag in rng.sample(tags, rng.randint(0, 3)):
            contact.contact_tags.append(ContactTag(tag=tag))
        for _ in range(rng.randint(0, 8)):
            contact.interactions.append(
                Interaction(
                    type=rng.choice(interaction_types),
                    date=now - timedelta(days=rng.randint(0, 365)),
                )
            )
        for _ in range(rng.randint(0, 3)):
            contact.deals.append(
                Deal(
                    estimated_value=(
                        Decimal(rng.randint(500, 250_000)) if rng.random() > 0.2 else None
                    )
                )
            )
        db.add(contact)

    db.commit()
    log.info("Seeded %d contacts", count)
    return count
