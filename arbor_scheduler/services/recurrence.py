"""Occurrence generation for recurring job series."""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional

from arbor_scheduler.domain.types import JobSeries, RecurrenceRule, to_date
from arbor_scheduler.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 60
MAX_GENERATED_OCCURRENCES = 180

_MONTH_STEPS = {"monthly": 1, "quarterly": 3, "yearly": 12}


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def sunday_based_weekday(day: date) -> int:
    """Weekday with 0 = Sunday, the convention used by series anchors."""
    return (day.weekday() + 1) % 7


def add_months(day: date, months: int, target_day: Optional[int] = None) -> date:
    """
    Move ``day`` forward by ``months`` and land on ``target_day``.

    The day is clamped to the length of the resulting month, so Jan 31 + 1
    month is Feb 28/29 and never rolls into March.
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    wanted = target_day or day.day
    return date(year, month, min(wanted, days_in_month(year, month)))


def next_cursor(rule: RecurrenceRule, base: date) -> date:
    """Apply one step of the rule's pattern to ``base``."""
    if rule.pattern == "daily":
        return base + timedelta(days=rule.interval)
    if rule.pattern == "weekly":
        return base + timedelta(days=7 * rule.interval)
    months = _MONTH_STEPS[rule.pattern] * rule.interval
    return add_months(base, months, rule.day_of_month or base.day)


def align_start(rule: RecurrenceRule, start: date) -> date:
    """Move ``start`` forward onto the rule's anchor day (never backwards)."""
    if rule.pattern == "weekly":
        if rule.day_of_week is None:
            return start
        shift = (int(rule.day_of_week) - sunday_based_weekday(start)) % 7
        return start + timedelta(days=shift)

    if rule.pattern in _MONTH_STEPS:
        cursor = start
        if rule.pattern == "yearly" and rule.month and cursor.month != rule.month:
            months_ahead = (rule.month - cursor.month) % 12
            cursor = add_months(cursor.replace(day=1), months_ahead, 1)
        desired = rule.day_of_month or start.day
        if cursor.day > desired:
            step = 12 if rule.pattern == "yearly" and rule.month else 1
            cursor = add_months(cursor.replace(day=1), step, 1)
        return cursor.replace(day=min(desired, days_in_month(cursor.year, cursor.month)))

    return start


class RecurrenceEngine:
    """
    Turns a series' recurrence rule into new occurrence dates.

    The engine is pure: ``today`` is always passed in, and output depends only
    on the arguments. Feeding a previous result back through
    ``existing_dates`` yields no duplicates.
    """

    def __init__(
        self,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
        max_occurrences: int = MAX_GENERATED_OCCURRENCES,
    ):
        self.horizon_days = horizon_days
        self.max_occurrences = max_occurrences

    @classmethod
    def from_config(cls, cfg) -> "RecurrenceEngine":
        return cls(cfg.recurrence.horizon_days, cfg.recurrence.max_occurrences)

    def generate_occurrences(
        self,
        series: JobSeries | RecurrenceRule,
        existing_dates: Iterable,
        today,
        horizon_days: Optional[int] = None,
        until_date=None,
    ) -> List[date]:
        """
        Generate the next occurrence dates for a series.

        Args:
            series: JobSeries (or a bare RecurrenceRule)
            existing_dates: Dates already stored for the series
            today: Reference date; nothing earlier is generated
            horizon_days: Days past the first candidate to generate up to
            until_date: Optional hard stop (inclusive)

        Returns:
            Sorted list of new dates not present in ``existing_dates``

        Raises:
            ValidationError: If the rule has no start date
        """
        rule = series.rule if isinstance(series, JobSeries) else series
        if rule.start_date is None:
            raise ValidationError("Recurring series requires a start date")

        today = to_date(today)
        existing = {to_date(d) for d in existing_dates}
        horizon = self.horizon_days if horizon_days is None else horizon_days

        if existing:
            cursor = next_cursor(rule, max(existing))
        else:
            cursor = rule.start_date
        if cursor < today:
            cursor = today
        cursor = align_start(rule, cursor)

        end_limit = cursor + timedelta(days=max(horizon, 0))
        if until_date is not None:
            end_limit = min(end_limit, to_date(until_date))
        if rule.end_date is not None:
            end_limit = min(end_limit, rule.end_date)

        new_dates: List[date] = []
        iterations = 0
        while cursor <= end_limit and iterations < self.max_occurrences:
            if cursor not in existing:
                new_dates.append(cursor)
            cursor = next_cursor(rule, cursor)
            iterations += 1

        if iterations >= self.max_occurrences and cursor <= end_limit:
            logger.warning("Occurrence generation hit the %d iteration cap", self.max_occurrences)
        logger.debug("Generated %d new occurrence(s) up to %s", len(new_dates), end_limit)
        return new_dates


def generate_occurrences(
    series, existing_dates, today, horizon_days=DEFAULT_HORIZON_DAYS, until_date=None
) -> List[date]:
    """Module-level shortcut using the default iteration cap."""
    return RecurrenceEngine().generate_occurrences(series, existing_dates, today, horizon_days, until_date)
