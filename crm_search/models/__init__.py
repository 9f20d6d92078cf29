"""Database models — re-exports all models.

Import from here:  from crm_search.models import Contact, Tag, ...
"""

from .base import Base  # noqa: F401

from .contacts import (  # noqa: F401
    Contact,
    ContactTag,
    Deal,
    DealStage,
    Interaction,
    InteractionType,
    Tag,
)

from .cache import CacheEntry  # noqa: F401
