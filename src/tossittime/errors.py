"""
Exception types shared across the TossItTime services.

Route handlers map these onto HTTP status codes; library code raises
them and lets them propagate.
"""

from typing import List, Optional


class TossItTimeError(Exception):
    """Base class for all service errors."""

    status_code = 500


class ValidationError(TossItTimeError):
    """Bad caller input (missing URL, empty ingredient list, ...)."""

    status_code = 400


class NotFoundError(TossItTimeError):
    """Requested record or resource does not exist."""

    status_code = 404


class FetchError(TossItTimeError):
    """An upstream page could not be fetched.

    status_code carries the upstream HTTP status when there was one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code or 500


class LLMError(TossItTimeError):
    """The completion API failed or returned something unusable."""


class ConfigurationError(TossItTimeError):
    """A required setting (usually an API key) is missing."""


class ExtractionError(TossItTimeError):
    """No strategy could extract ingredients from a page."""

    status_code = 422


class ClaimConflictError(TossItTimeError):
    """Another dish already holds a claim on one of the requested items."""

    status_code = 409

    def __init__(self, message: str, item_ids: Optional[List[str]] = None):
        super().__init__(message)
        self.item_ids = item_ids or []
