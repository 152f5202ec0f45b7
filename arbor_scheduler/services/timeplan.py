"""Time-of-day parsing and interval overlap helpers."""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional, Union

from arbor_scheduler.errors import ValidationError

TimeLike = Union[time, datetime, str, None]

DEFAULT_JOB_MINUTES = 240


def parse_time_string(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a ``time``."""
    text = value.strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time of day: {value!r}")


def to_time(value: TimeLike) -> Optional[time]:
    """Coerce a time, datetime or string to ``time``; blank values become None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    text = str(value).strip()
    if not text or text.lower() in ("nan", "none", "null"):
        return None
    return parse_time_string(text)


def to_minutes(value: TimeLike) -> Optional[int]:
    """Minutes since midnight, or None when the value is missing."""
    t = to_time(value)
    if t is None:
        return None
    return t.hour * 60 + t.minute


def _lenient_minutes(value: TimeLike) -> Optional[int]:
    # unparseable values are treated as missing
    try:
        return to_minutes(value)
    except ValidationError:
        return None


def has_time_overlap(
    start1: TimeLike,
    end1: TimeLike,
    start2: TimeLike,
    end2: TimeLike,
    default_minutes: int = DEFAULT_JOB_MINUTES,
) -> bool:
    """
    Half-open interval overlap test between two same-day windows.

    A missing start on either side counts as overlapping, so unknown times
    are reported rather than silently allowed. A missing end is taken as
    start + ``default_minutes``. Touching windows (09-10, 10-12) do not
    overlap.
    """
    s1 = _lenient_minutes(start1)
    s2 = _lenient_minutes(start2)
    if s1 is None or s2 is None:
        return True

    e1 = _lenient_minutes(end1)
    e2 = _lenient_minutes(end2)
    if e1 is None:
        e1 = s1 + default_minutes
    if e2 is None:
        e2 = s2 + default_minutes

    return s1 < e2 and s2 < e1
