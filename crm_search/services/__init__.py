"""Search services."""

from .contact_search import ContactSearcher  # noqa: F401
from .deal_value import DealValueCache, compute_deal_value  # noqa: F401
from .naive_search import InMemoryContactSearcher  # noqa: F401
