"""
Domain exceptions.

Services raise these; the HTTP layer turns them into an ``Error`` body
with the matching status code (see ``courtbook.main``).
"""

from __future__ import annotations

from typing import Any


class CourtbookError(Exception):
    """Base class for every error the booking core raises on purpose."""

    error = "internal_error"
    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or None


class InvalidInput(CourtbookError):
    """Missing contact field, non-positive payment, unsupported tier, ..."""

    error = "invalid_input"
    status_code = 422


class SlotConflict(CourtbookError):
    """The hour is already held by a booking or a matched challenge."""

    error = "slot_conflict"
    status_code = 409


class InvalidDate(CourtbookError):
    """Past date, or an hour outside the site's bookable window."""

    error = "invalid_date"
    status_code = 422


class NotFound(CourtbookError):
    error = "not_found"
    status_code = 404


class UpstreamFailure(CourtbookError):
    """Persistence or an external sink failed."""

    error = "upstream_failure"
    status_code = 502
