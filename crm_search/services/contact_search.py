"""
services/contact_search.py — Contact Search

Filtered, sorted, paginated contact search with database-side filtering and
paging, per-contact deal value enrichment, and whole-page result caching.

Business Rules:
- Identical requests share one cache entry (key = full canonical request)
- Cached pages live 5 minutes absolute, kept warm by reads for 60 seconds
- On a cache hit no query runs; only elapsed time is recomputed
- Filters: city, tags (any overlap), last contact before, deal stage, then
  min deal value (strictly greater), all before the count
- Sort ties are broken by contact id so pages never overlap
- next_page_token is None iff page * page_size >= total_count
- Store failures raise SearchUnavailableError; no partial result is returned
- Cache failures and corrupt entries are misses, never errors

Called by: routers/contacts.py
Depends on: services/contact_query.py, services/deal_value.py,
            services/pagination.py, cache
"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Callable

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..cache.backends import Cache
from ..cache.keys import search_cache_key
from ..clock import utc_now
from ..config import settings
from ..errors import SearchUnavailableError
from ..models import Contact
from ..schemas.contacts import ContactDto, ContactSearchRequest, SearchResult
from .contact_query import apply_sorting, build_contact_query, with_related
from .deal_value import DealValueCache
from .pagination import apply_page_token, next_page_token, page_offset

log = logging.getLogger(__name__)


def project_contact(contact: Contact, deal_value: Decimal) -> ContactDto:
    return ContactDto(
        id=contact.id,
        full_name=contact.full_name,
        email=contact.email,
        company=contact.company,
        city=contact.city,
        last_contact=contact.last_contact_date,
        deal_value=deal_value,
        tags=contact.tag_names,
        interaction_count=len(contact.interactions),
    )


class ContactSearcher:
    def __init__(
        self,
        db: Session,
        cache: Cache,
        *,
        namespace: str | None = None,
        result_ttl_seconds: int | None = None,
        result_sliding_seconds: int | None = None,
        deal_value_ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = utc_now,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self._db = db
        self._cache = cache
        self._namespace = namespace or settings.cache_namespace
        self._result_ttl = result_ttl_seconds or settings.search_cache_ttl_seconds
        self._result_sliding = result_sliding_seconds or settings.search_cache_sliding_seconds
        self._clock = clock
        self._timer = timer
        self.deal_values = DealValueCache(
            cache,
            self._namespace,
            ttl_seconds=deal_value_ttl_seconds or settings.deal_value_cache_ttl_seconds,
            clock=clock,
        )

    def search(self, request: ContactSearchRequest) -> SearchResult:
        start = self._timer()
        request = apply_page_token(request)
        cache_key = search_cache_key(request, self._namespace)

        cached = self._read_cached_result(cache_key)
        if cached is not None:
            log.debug("Cache HIT: %s", cache_key)
            cached.elapsed_milliseconds = self._elapsed_ms(start)
            return cached
        log.debug("Cache MISS: %s", cache_key)

        try:
            result = self._run_search(request, start)
        except SQLAlchemyError as e:
            log.error("Contact search failed: %s", e)
            raise SearchUnavailableError("Contact search failed") from e

        self._cache.set(
            cache_key,
            result.model_dump_json(by_alias=True),
            self._result_ttl,
            self._result_sliding,
        )
        log.info(
            "Contact search: %d total, page %d, %d rows in %.1f ms",
            result.total_count,
            result.page,
            len(result.data),
            result.elapsed_milliseconds,
        )
        return result

    def _run_search(self, request: ContactSearchRequest, start: float) -> SearchResult:
        now = self._clock()

        query = build_contact_query(self._db, request)
        if request.min_deal_value is not None:
            query = self._filter_min_deal_value(query, request.min_deal_value, now)

        total_count = query.count()

        contacts = (
            with_related(apply_sorting(query, request))
            .offset(page_offset(request.page, request.page_size))
            .limit(request.page_size)
            .all()
        )

        dtos = [project_contact(c, self.deal_values.resolve(c, now)) for c in contacts]
        self._cache_deal_values(dtos)

        return SearchResult(
            total_count=total_count,
            page=request.page,
            page_size=request.page_size,
            data=dtos,
            elapsed_milliseconds=self._elapsed_ms(start),
            next_page_token=next_page_token(request, total_count),
        )

    def _filter_min_deal_value(self, query: Query, threshold: Decimal, now: datetime) -> Query:
        """Restrict to contacts whose deal value exceeds threshold.

        The score is derived in Python, so the rows left by the database-side
        filters are materialized and scored before the count runs.
        """
        candidates = with_related(query).all()
        matching_ids = [
            c.id for c in candidates if self.deal_values.get_or_compute(c, now) > threshold
        ]
        return query.filter(Contact.id.in_(matching_ids))

    def _cache_deal_values(self, dtos: list[ContactDto]) -> None:
        for dto in dtos:
            self.deal_values.store(dto.id, dto.deal_value)

    def _read_cached_result(self, cache_key: str) -> SearchResult | None:
        raw = self._cache.get(cache_key)
        if raw is None:
            return None
        try:
            return SearchResult.model_validate_json(raw)
        except ValidationError as e:
            log.warning("Discarding corrupt cached search result %s: %s", cache_key, e)
            return None

    def _elapsed_ms(self, start: float) -> float:
        return (self._timer() - start) * 1000
