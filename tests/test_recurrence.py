"""Tests for recurring occurrence generation."""

from datetime import date

import pytest

from arbor_scheduler.domain.types import JobSeries, RecurrenceRule
from arbor_scheduler.errors import ValidationError
from arbor_scheduler.services.recurrence import (
    RecurrenceEngine,
    add_months,
    align_start,
    generate_occurrences,
    sunday_based_weekday,
)


def _series(pattern, start, **kwargs):
    return JobSeries(id=1, rule=RecurrenceRule(pattern=pattern, start_date=start, **kwargs))


def test_sunday_based_weekday():
    """Sunday is 0 and Saturday is 6."""
    assert sunday_based_weekday(date(2024, 1, 7)) == 0  # Sunday
    assert sunday_based_weekday(date(2024, 1, 3)) == 3  # Wednesday
    assert sunday_based_weekday(date(2024, 1, 6)) == 6  # Saturday


def test_weekly_aligns_to_anchor_day():
    """Weekly on Wednesday starting Monday 2024-01-01 lands on the 3rd, 10th and 17th."""
    series = _series("weekly", date(2024, 1, 1), day_of_week=3)

    dates = generate_occurrences(series, [], today=date(2024, 1, 1), horizon_days=14)

    assert dates[0] == date(2024, 1, 3)
    assert dates == [date(2024, 1, 3), date(2024, 1, 10), date(2024, 1, 17)]


def test_weekly_interval():
    """Every other week skips alternate weeks."""
    series = _series("weekly", date(2024, 1, 3), interval=2, day_of_week=3)

    dates = generate_occurrences(series, [], today=date(2024, 1, 1), horizon_days=28)

    assert dates == [date(2024, 1, 3), date(2024, 1, 17), date(2024, 1, 31)]


def test_monthly_day_31_clamps_in_leap_year():
    """Day 31 becomes Feb 29 in 2024."""
    series = _series("monthly", date(2024, 1, 31), day_of_month=31)

    dates = generate_occurrences(series, [], today=date(2024, 1, 1), horizon_days=60)

    assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]


def test_monthly_day_31_clamps_in_common_year():
    """Day 31 becomes Feb 28 in 2023 and returns to the 31st in March."""
    series = _series("monthly", date(2023, 1, 31), day_of_month=31)

    dates = generate_occurrences(series, [], today=date(2023, 1, 1), horizon_days=60)

    assert date(2023, 2, 28) in dates
    assert date(2023, 3, 31) in dates


def test_add_months_never_rolls_into_next_month():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 11, 30), 3, 31) == date(2024, 2, 29)
    assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)


def test_quarterly_steps_three_months():
    series = _series("quarterly", date(2024, 1, 15))

    dates = generate_occurrences(series, [], today=date(2024, 1, 1), horizon_days=200)

    assert dates == [date(2024, 1, 15), date(2024, 4, 15), date(2024, 7, 15)]


def test_yearly_honors_anchor_month():
    """A yearly rule anchored on March moves forward into March."""
    rule = RecurrenceRule(pattern="yearly", start_date=date(2024, 1, 10), month=3, day_of_month=1)

    assert align_start(rule, date(2024, 1, 10)) == date(2024, 3, 1)
    # anchor day already passed this March: next year
    assert align_start(rule, date(2024, 3, 5)) == date(2025, 3, 1)


def test_daily_with_interval():
    series = _series("daily", date(2024, 5, 1), interval=3)

    dates = generate_occurrences(series, [], today=date(2024, 5, 1), horizon_days=9)

    assert dates == [date(2024, 5, 1), date(2024, 5, 4), date(2024, 5, 7), date(2024, 5, 10)]


def test_never_generates_before_today():
    """A series that started in the past only produces dates from today onward."""
    series = _series("daily", date(2024, 1, 1))
    today = date(2024, 3, 15)

    dates = generate_occurrences(series, [], today=today, horizon_days=5)

    assert dates
    assert all(d >= today for d in dates)
    assert dates[0] == today


def test_rerun_with_previous_output_adds_nothing_new():
    """Feeding the previous result back yields no duplicates."""
    series = _series("weekly", date(2024, 1, 1), day_of_week=3)
    today = date(2024, 1, 1)

    first = generate_occurrences(series, [], today=today, horizon_days=14)
    second = generate_occurrences(series, first, today=today, horizon_days=14)

    assert not set(first) & set(second)
    assert all(d > max(first) for d in second)


def test_iteration_cap_is_respected():
    """A daily rule over a long horizon stops at the cap."""
    series = _series("daily", date(2024, 1, 1))
    engine = RecurrenceEngine(horizon_days=10_000, max_occurrences=180)

    dates = engine.generate_occurrences(series, [], today=date(2024, 1, 1))

    assert len(dates) == 180


def test_end_date_and_until_date_stop_generation():
    series = _series("daily", date(2024, 1, 1), end_date=date(2024, 1, 5))

    dates = generate_occurrences(series, [], today=date(2024, 1, 1), horizon_days=30)
    assert max(dates) == date(2024, 1, 5)

    dates = generate_occurrences(series, [], today=date(2024, 1, 1), horizon_days=30, until_date=date(2024, 1, 3))
    assert max(dates) == date(2024, 1, 3)


def test_missing_start_date_raises():
    series = _series("weekly", None, day_of_week=1)

    with pytest.raises(ValidationError):
        generate_occurrences(series, [], today=date(2024, 1, 1))


def test_invalid_rules_rejected():
    with pytest.raises(ValidationError):
        RecurrenceRule(pattern="fortnightly", start_date=date(2024, 1, 1))
    with pytest.raises(ValidationError):
        RecurrenceRule(pattern="weekly", start_date=date(2024, 1, 1), day_of_week=7)
    with pytest.raises(ValidationError):
        RecurrenceRule(pattern="monthly", start_date=date(2024, 1, 1), day_of_month=0)


def test_non_positive_interval_defaults_to_one():
    rule = RecurrenceRule(pattern="daily", start_date=date(2024, 1, 1), interval=0)
    assert rule.interval == 1
