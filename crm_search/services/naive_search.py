"""In-memory contact search — the naive baseline.

Loads every contact with its relations, then filters, scores, sorts and
pages in Python. No cache. Kept as the reference behavior ContactSearcher
must reproduce, and as the "before" side when comparing timings.
"""

import time
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from ..clock import utc_now
from ..models import Contact
from ..schemas.contacts import ContactSearchRequest, SearchResult
from .contact_query import SORT_COMPANY, SORT_EMAIL, SORT_FULL_NAME, with_related
from .contact_search import project_contact
from .deal_value import compute_deal_value
from .pagination import apply_page_token, next_page_token, page_offset

_SORT_KEYS = {
    SORT_FULL_NAME: lambda c: c.full_name,
    SORT_COMPANY: lambda c: c.company,
    SORT_EMAIL: lambda c: c.email,
}


def _sort_key(sort_by: str | None):
    return _SORT_KEYS.get((sort_by or "").lower(), lambda c: c.last_contact_date)


class InMemoryContactSearcher:
    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self._db = db
        self._clock = clock
        self._timer = timer

    def search(self, request: ContactSearchRequest) -> SearchResult:
        start = self._timer()
        request = apply_page_token(request)
        now = self._clock()

        contacts = with_related(self._db.query(Contact)).all()
        scored = [
            (c, compute_deal_value(c, c.interactions, c.deals, now)) for c in contacts
        ]
        matches = [(c, v) for c, v in scored if self._matches(c, v, request)]

        # Stable sorts: id ascending first, then the requested key
        matches.sort(key=lambda cv: cv[0].id)
        key = _sort_key(request.sort_by)
        matches.sort(key=lambda cv: key(cv[0]), reverse=request.sort_descending)

        offset = page_offset(request.page, request.page_size)
        page = matches[offset : offset + request.page_size]

        return SearchResult(
            total_count=len(matches),
            page=request.page,
            page_size=request.page_size,
            data=[project_contact(c, v) for c, v in page],
            elapsed_milliseconds=(self._timer() - start) * 1000,
            next_page_token=next_page_token(request, len(matches)),
        )

    @staticmethod
    def _matches(contact: Contact, deal_value, request: ContactSearchRequest) -> bool:
        if request.city and contact.city != request.city:
            return False
        wanted = set(request.tag_names())
        if wanted and not wanted.intersection(contact.tag_names):
            return False
        if (
            request.last_contact_before is not None
            and not contact.last_contact_date < request.last_contact_before
        ):
            return False
        if request.deal_stage is not None and contact.deal_stage != request.deal_stage:
            return False
        if request.min_deal_value is not None and not deal_value > request.min_deal_value:
            return False
        return True
