"""Page tokens.

A token is url-safe base64 of {"page", "sortBy", "sortDescending"}. Clients
treat it as opaque and hand it back as page_token to fetch the next page.
"""

import base64
import binascii
import json
import logging
from typing import NamedTuple

from ..schemas.contacts import ContactSearchRequest

log = logging.getLogger(__name__)


class PageToken(NamedTuple):
    page: int
    sort_by: str
    sort_descending: bool


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def has_next_page(page: int, page_size: int, total_count: int) -> bool:
    return page * page_size < total_count


def encode_page_token(token: PageToken) -> str:
    payload = json.dumps(
        {"page": token.page, "sortBy": token.sort_by, "sortDescending": token.sort_descending},
        sort_keys=True,
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode()).decode()


def decode_page_token(raw: str | None) -> PageToken | None:
    """Parse a token from next_page_token(). Malformed tokens return None."""
    if not raw:
        return None
    try:
        payload = json.loads(base64.urlsafe_b64decode(raw.encode()))
        page = payload["page"]
        sort_by = payload["sortBy"]
        sort_descending = payload["sortDescending"]
    except (binascii.Error, ValueError, TypeError, KeyError) as e:
        log.debug("Ignoring malformed page token %r: %s", raw, e)
        return None
    if (
        not isinstance(page, int)
        or isinstance(page, bool)
        or page < 1
        or not isinstance(sort_by, str)
        or not isinstance(sort_descending, bool)
    ):
        log.debug("Ignoring page token with invalid fields: %r", raw)
        return None
    return PageToken(page, sort_by, sort_descending)


def next_page_token(request: ContactSearchRequest, total_count: int) -> str | None:
    """Token for the page after request.page, or None when results are exhausted."""
    if not has_next_page(request.page, request.page_size, total_count):
        return None
    return encode_page_token(
        PageToken(request.page + 1, request.sort_by, request.sort_descending)
    )


def apply_page_token(request: ContactSearchRequest) -> ContactSearchRequest:
    """Replace page and sort fields with those from request.page_token, if valid."""
    if request.page_token is None:
        return request
    token = decode_page_token(request.page_token)
    update = {"page_token": None}
    if token is not None:
        update.update(
            page=token.page, sort_by=token.sort_by, sort_descending=token.sort_descending
        )
    return request.model_copy(update=update)
