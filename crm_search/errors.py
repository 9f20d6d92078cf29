"""Exception types raised by the contact search layer."""


class CrmSearchError(Exception):
    """Base class for contact search failures."""

    status_code = 500


class SearchUnavailableError(CrmSearchError):
    """The backing store failed while executing a search."""

    status_code = 503
