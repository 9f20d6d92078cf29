"""Cache key construction for the contact search namespace.

Search keys embed the full canonical request so distinct requests never
share an entry. The shape version changes whenever the cached SearchResult
encoding changes, so old entries are never deserialized into a new shape.
"""

import json

from ..schemas.contacts import ContactSearchRequest

SEARCH_SHAPE_VERSION = "v1"
SEARCH_SEGMENT = "search"
DEAL_VALUE_SEGMENT = "deal-value"


def canonical_request(request: ContactSearchRequest) -> str:
    """Stable JSON of every filter, sort and paging field."""
    payload = request.model_dump(mode="json", exclude={"page_token"})
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


def search_cache_key(request: ContactSearchRequest, namespace: str) -> str:
    return f"{namespace}{SEARCH_SEGMENT}:{SEARCH_SHAPE_VERSION}:{canonical_request(request)}"


def deal_value_cache_key(contact_id: int, namespace: str) -> str:
    return f"{namespace}{DEAL_VALUE_SEGMENT}:{contact_id}"
