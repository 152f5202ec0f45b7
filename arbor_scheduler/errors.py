"""Exception types raised by the scheduling engine and its data store."""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for all errors raised by arbor_scheduler."""


class ValidationError(SchedulingError, ValueError):
    """Input is malformed or an operation is not allowed in the current state."""


class NotFoundError(SchedulingError, LookupError):
    """A referenced series, occurrence or record does not exist."""


class OccurrenceConflictError(SchedulingError):
    """An occurrence for the same series and date already exists.

    Raised when two callers race to persist the same occurrence. Callers
    may retry the top-up or ignore it; the engine never retries internally.
    """

    def __init__(self, series_id: int, dates=None):
        self.series_id = series_id
        self.dates = list(dates or [])
        shown = ", ".join(str(d) for d in self.dates) or "unknown date"
        super().__init__(f"Series {series_id} already has an occurrence on {shown}")
