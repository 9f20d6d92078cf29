"""
test_seed.py — Tests for deterministic demo data seeding.

Called by: pytest
Depends on: crm_search/seed.py
"""

from sqlalchemy import func

from crm_search.models import Contact, ContactTag, Tag
from crm_search.seed import TAG_NAMES, seed_contacts

from .conftest import NOW


def test_seed_inserts_requested_count(db_session):
    assert seed_contacts(db_session, count=20, seed=1, now=NOW) == 20
    assert db_session.query(func.count(Contact.id)).scalar() == 20


def test_seed_is_deterministic(db_session):
    seed_contacts(db_session, count=15, seed=3, now=NOW)
    seed_contacts(db_session, count=15, seed=3, now=NOW)
    rows = [
        (c.first_name, c.last_name, c.company, c.city, c.deal_stage, c.base_potential_value)
        for c in db_session.query(Contact).order_by(Contact.id)
    ]
    assert rows[:15] == rows[15:]


def test_seed_reuses_tags(db_session):
    seed_contacts(db_session, count=10, seed=1, now=NOW)
    seed_contacts(db_session, count=10, seed=2, now=NOW)
    assert db_session.query(func.count(Tag.id)).scalar() == len(TAG_NAMES)


def test_no_duplicate_contact_tag_pairs(db_session):
    seed_contacts(db_session, count=50, seed=9, now=NOW)
    pairs = db_session.query(ContactTag.contact_id, ContactTag.tag_id).all()
    assert len(pairs) == len(set(pairs))


def test_last_contact_dates_within_a_year(db_session):
    seed_contacts(db_session, count=30, seed=4, now=NOW)
    for contact in db_session.query(Contact):
        assert (NOW - contact.last_contact_date).days <= 366
