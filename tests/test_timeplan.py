"""Tests for time parsing helpers."""

from datetime import datetime, time

import pytest

from arbor_scheduler.errors import ValidationError
from arbor_scheduler.services.timeplan import parse_time_string, to_minutes, to_time


def test_parse_time_string():
    """Test time string parsing."""
    t = parse_time_string("07:30")
    assert t.hour == 7
    assert t.minute == 30

    assert parse_time_string("13:05:59") == time(13, 5, 59)


def test_parse_time_string_invalid():
    with pytest.raises(ValidationError):
        parse_time_string("7.30am")


def test_to_time_blank_values():
    assert to_time(None) is None
    assert to_time("") is None
    assert to_time("nan") is None
    assert to_time(datetime(2024, 1, 1, 9, 15)) == time(9, 15)


def test_to_minutes():
    assert to_minutes("09:30") == 570
    assert to_minutes(None) is None
