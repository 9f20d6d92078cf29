"""Pydantic request/response schemas."""

from .contacts import ContactDto, ContactSearchRequest, SearchResult  # noqa: F401
from .errors import ErrorResponse  # noqa: F401
