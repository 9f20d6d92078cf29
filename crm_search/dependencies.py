"""
dependencies.py — Shared FastAPI Dependencies

Called by: routers/contacts.py
Depends on: database, cache, services
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from .cache import Cache, get_cache
from .database import get_db
from .services.contact_search import ContactSearcher


def get_searcher(
    db: Session = Depends(get_db), cache: Cache = Depends(get_cache)
) -> ContactSearcher:
    """Request-scoped searcher bound to this request's session."""
    return ContactSearcher(db, cache)
