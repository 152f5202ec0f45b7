"""Status transitions for recurring series occurrences."""

from __future__ import annotations

from typing import Dict, FrozenSet

from arbor_scheduler.domain.types import (
    OCCURRENCE_CANCELLED,
    OCCURRENCE_CREATED,
    OCCURRENCE_SCHEDULED,
    OCCURRENCE_SKIPPED,
)
from arbor_scheduler.errors import ValidationError

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    OCCURRENCE_SCHEDULED: frozenset({OCCURRENCE_SKIPPED, OCCURRENCE_CANCELLED, OCCURRENCE_CREATED}),
    OCCURRENCE_SKIPPED: frozenset({OCCURRENCE_SCHEDULED}),
    OCCURRENCE_CANCELLED: frozenset(),
    OCCURRENCE_CREATED: frozenset(),
}


def check_transition(current: str, target: str) -> str:
    """
    Validate an occurrence status change.

    Returns:
        The normalized target status

    Raises:
        ValidationError: If the status is unknown or the move is not allowed
    """
    current = (current or "").strip().lower()
    target = (target or "").strip().lower()
    if target not in ALLOWED_TRANSITIONS:
        raise ValidationError(f"Unsupported occurrence status: {target!r}")
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise ValidationError(f"Cannot move occurrence from {current!r} to {target!r}")
    return target


def can_convert(status: str) -> bool:
    """Only scheduled occurrences can be turned into jobs."""
    return (status or "").strip().lower() == OCCURRENCE_SCHEDULED
