"""
schemas/contacts.py — Pydantic models for contact search

Request parsing is lenient: this is the boundary where query-string input
becomes a search request, and a malformed field must never fail the search.

Business Rules:
- Unparseable dates, unknown deal stages and non-numeric min deal values
  become "filter absent"
- Empty city / tags strings are treated as absent
- page < 1 (or garbage) falls back to 1; page_size < 1 (or garbage) falls
  back to the default, and is clamped to settings.max_page_size
- Field names accept camelCase aliases (pageSize, sortBy, ...) and snake_case
- ContactDto / SearchResult serialize with camelCase aliases

Called by: routers/contacts.py, services/contact_search.py, cache/keys.py
Depends on: models (DealStage), config
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..clock import ensure_utc
from ..config import settings
from ..models import DealStage

log = logging.getLogger(__name__)

DEFAULT_SORT_BY = "LastContactDate"

_datetime_adapter = TypeAdapter(datetime)
_bool_adapter = TypeAdapter(bool)


def _parse_deal_stage(value) -> DealStage | None:
    if isinstance(value, DealStage):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return DealStage(value)
        except ValueError:
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return _parse_deal_stage(int(text))
        key = text.replace("_", "").replace(" ", "").lower()
        for stage in DealStage:
            if stage.name.replace("_", "").lower() == key:
                return stage
    return None


class ContactSearchRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    city: str | None = None
    tags: str | None = None
    last_contact_before: datetime | None = None
    deal_stage: DealStage | None = None
    min_deal_value: Decimal | None = None
    page: int = 1
    page_size: int = Field(default_factory=lambda: settings.default_page_size)
    sort_by: str = DEFAULT_SORT_BY
    sort_descending: bool = True
    page_token: str | None = None

    @field_validator("city", "tags", "page_token", mode="before")
    @classmethod
    def empty_string_is_absent(cls, v):
        if v is None:
            return None
        if not isinstance(v, str):
            v = str(v)
        return v if v != "" else None

    @field_validator("last_contact_before", mode="before")
    @classmethod
    def lenient_datetime(cls, v):
        if v is None or v == "":
            return None
        try:
            return ensure_utc(_datetime_adapter.validate_python(v))
        except ValidationError:
            pass
        if isinstance(v, str):
            try:
                return ensure_utc(datetime.fromisoformat(v.strip()))
            except ValueError:
                pass
        log.debug("Ignoring unparseable last_contact_before: %r", v)
        return None

    @field_validator("deal_stage", mode="before")
    @classmethod
    def lenient_deal_stage(cls, v):
        if v is None or v == "":
            return None
        stage = _parse_deal_stage(v)
        if stage is None:
            log.debug("Ignoring unknown deal_stage: %r", v)
        return stage

    @field_validator("min_deal_value", mode="before")
    @classmethod
    def lenient_decimal(cls, v):
        if v is None or v == "" or isinstance(v, bool):
            return None
        try:
            value = Decimal(str(v).strip())
        except InvalidOperation:
            log.debug("Ignoring non-numeric min_deal_value: %r", v)
            return None
        if not value.is_finite():
            log.debug("Ignoring non-finite min_deal_value: %r", v)
            return None
        return value

    @field_validator("page", mode="before")
    @classmethod
    def lenient_page(cls, v):
        try:
            page = int(v)
        except (TypeError, ValueError):
            log.debug("Invalid page %r, using 1", v)
            return 1
        return page if page >= 1 else 1

    @field_validator("page_size", mode="before")
    @classmethod
    def lenient_page_size(cls, v):
        try:
            size = int(v)
        except (TypeError, ValueError):
            log.debug("Invalid page_size %r, using default", v)
            return settings.default_page_size
        if size < 1:
            return settings.default_page_size
        return min(size, settings.max_page_size)

    @field_validator("sort_by", mode="before")
    @classmethod
    def default_sort(cls, v):
        if v is None or str(v).strip() == "":
            return DEFAULT_SORT_BY
        return str(v)

    @field_validator("sort_descending", mode="before")
    @classmethod
    def lenient_bool(cls, v):
        if v is None or v == "":
            return True
        try:
            return _bool_adapter.validate_python(v)
        except ValidationError:
            log.debug("Invalid sort_descending %r, using True", v)
            return True

    def tag_names(self) -> list[str]:
        """Comma-separated tags, each trimmed; empty pieces dropped."""
        if not self.tags:
            return []
        return [t.strip() for t in self.tags.split(",") if t.strip()]


class ContactDto(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int
    full_name: str
    email: str
    company: str
    city: str
    last_contact: datetime
    deal_value: Decimal
    tags: list[str] = []
    interaction_count: int = 0


class SearchResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_count: int
    page: int
    page_size: int
    data: list[ContactDto] = []
    elapsed_milliseconds: float = 0.0
    next_page_token: str | None = None
