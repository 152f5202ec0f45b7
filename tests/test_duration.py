"""Tests for duration prediction."""

import pandas as pd
import pytest

from arbor_scheduler.config import DurationSettings
from arbor_scheduler.domain.types import HistoricalDurationSample
from arbor_scheduler.services.duration import (
    DurationPredictor,
    build_duration_samples,
    crew_multiplier,
    round_hours,
    size_bucket,
)


def test_round_hours_is_half_up():
    assert round_hours(2.25) == 2.3
    assert round_hours(2.35) == 2.4
    assert round_hours(2.24) == 2.2


@pytest.mark.parametrize(
    "height, diameter, expected",
    [
        (None, None, "medium"),
        (20, None, "small"),
        (None, 30, "large"),
        (25, 40, "extra_large"),
        (85, 10, "extra_large"),
        (0, None, "medium"),
    ],
)
def test_size_bucket(height, diameter, expected):
    """The larger known bucket wins; unknown sizes default to medium."""
    assert size_bucket(height, diameter) == expected


def test_crew_multiplier():
    assert crew_multiplier(1) == 1.3
    assert crew_multiplier(2) == 1.3
    assert crew_multiplier(3) == 1.0
    assert crew_multiplier(4) == 0.85
    assert crew_multiplier(6) == 0.75


def test_historical_estimate_with_enough_samples():
    """Five samples for the exact key give a high-confidence historical estimate."""
    history = {
        ("tree_removal", "large", "High", 3): HistoricalDurationSample(
            sample_count=5, mean_hours=6.0, stddev_hours=1.0
        )
    }
    predictor = DurationPredictor(history)

    estimate = predictor.predict("tree_removal", height_ft=70, hazard_level="High", crew_size=3)

    assert estimate.methodology == "historical"
    assert estimate.confidence_tier == "high"
    assert estimate.estimated_hours == 6.0
    assert estimate.confidence_range == (5.0, 7.0)
    assert estimate.sample_count == 5
    assert estimate.size_bucket == "large"


def test_historical_missing_stddev_uses_twenty_percent():
    history = {("pruning", "medium", "Medium", 3): HistoricalDurationSample(3, 2.0, None)}

    estimate = DurationPredictor(history).predict("pruning")

    assert estimate.confidence_range == (1.6, 2.4)


def test_historical_range_lower_bound_never_negative():
    history = {("pruning", "medium", "Medium", 3): HistoricalDurationSample(4, 1.0, 3.0)}

    estimate = DurationPredictor(history).predict("pruning")

    assert estimate.confidence_range[0] == 0.0


def test_heuristic_when_samples_insufficient():
    """Two samples are not enough; the estimate falls back to the heuristic."""
    history = {("tree_removal", "medium", "Medium", 3): HistoricalDurationSample(2, 9.0, 1.0)}
    predictor = DurationPredictor(history)

    estimate = predictor.predict("tree_removal")

    assert estimate.methodology == "heuristic"
    assert estimate.confidence_tier == "low"
    assert estimate.estimated_hours == 4.0
    assert estimate.confidence_range == (2.8, 6.0)
    assert estimate.sample_count == 2


def test_heuristic_applies_all_multipliers():
    """4h base x 1.5 (height > 60) x 1.3 (diameter > 24) x 1.8 (Critical) x 1.3 (crew of 2)."""
    estimate = DurationPredictor().predict(
        "tree_removal", height_ft=65, diameter_in=30, hazard_level="critical", crew_size=2
    )

    assert estimate.methodology == "heuristic"
    assert estimate.estimated_hours == round_hours(4.0 * 1.5 * 1.3 * 1.8 * 1.3)
    assert estimate.sample_count == 0


def test_heuristic_height_escalation_reaches_top_step():
    """Trees over 80 ft use the top multiplier, not the 60 ft one."""
    estimate = DurationPredictor().predict("tree_trimming", height_ft=90)

    assert estimate.estimated_hours == 4.0  # 2h x 2.0


def test_unknown_service_uses_default_base_hours():
    estimate = DurationPredictor().predict("cabling")

    assert estimate.estimated_hours == 3.0


def test_custom_min_samples():
    history = {("pruning", "medium", "Medium", 3): HistoricalDurationSample(1, 2.0, 0.5)}
    predictor = DurationPredictor(history, DurationSettings(min_samples=1))

    assert predictor.predict("pruning").methodology == "historical"


def test_build_duration_samples_groups_by_key():
    records = pd.DataFrame(
        [
            {"service_type": "Pruning", "size_bucket": "small", "hazard_level": "low", "crew_size": 2, "actual_hours": 1.0},
            {"service_type": "pruning", "size_bucket": "small", "hazard_level": "Low", "crew_size": 2, "actual_hours": 3.0},
            {"service_type": "pruning", "size_bucket": "large", "hazard_level": "Low", "crew_size": 2, "actual_hours": 5.0},
            {"service_type": "pruning", "size_bucket": "large", "hazard_level": "Low", "crew_size": 2, "actual_hours": None},
        ]
    )

    samples = build_duration_samples(records)

    small = samples[("pruning", "small", "Low", 2)]
    assert small.sample_count == 2
    assert small.mean_hours == 2.0
    assert small.stddev_hours == pytest.approx(1.4142, rel=1e-3)

    large = samples[("pruning", "large", "Low", 2)]
    assert large.sample_count == 1
    assert large.stddev_hours is None


def test_build_duration_samples_empty():
    empty = pd.DataFrame(columns=["service_type", "size_bucket", "hazard_level", "crew_size", "actual_hours"])
    assert build_duration_samples(empty) == {}


def test_estimate_as_dict():
    data = DurationPredictor().predict("consultation").as_dict()

    assert data["methodology"] == "heuristic"
    assert data["confidenceRange"] == {"min": 0.7, "max": 1.5}
