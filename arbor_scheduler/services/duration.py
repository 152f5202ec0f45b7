"""Job duration prediction from historical aggregates with a rule-based fallback."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Mapping, Optional

import pandas as pd

from arbor_scheduler.config import DurationSettings
from arbor_scheduler.domain.types import (
    SIZE_BUCKETS,
    DurationEstimate,
    HistoricalDurationSample,
    SampleKey,
    normalize_hazard,
)

logger = logging.getLogger(__name__)

HISTORICAL = "historical"
HEURISTIC = "heuristic"

# upper bounds (exclusive) for small / medium / large; anything above is extra_large
HEIGHT_THRESHOLDS_FT = (30.0, 60.0, 80.0)
DIAMETER_THRESHOLDS_IN = (12.0, 24.0, 36.0)


def round_hours(value: float) -> float:
    """Round half-up to one decimal place."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _bucket(value: Optional[float], thresholds) -> Optional[str]:
    if value is None or pd.isna(value) or value <= 0:
        return None
    for bound, name in zip(thresholds, SIZE_BUCKETS):
        if value < bound:
            return name
    return SIZE_BUCKETS[-1]


def height_bucket(height_ft: Optional[float]) -> str:
    return _bucket(height_ft, HEIGHT_THRESHOLDS_FT) or "medium"


def diameter_bucket(diameter_in: Optional[float]) -> str:
    return _bucket(diameter_in, DIAMETER_THRESHOLDS_IN) or "medium"


def size_bucket(height_ft: Optional[float] = None, diameter_in: Optional[float] = None) -> str:
    """
    Combine tree height and trunk diameter into one size bucket.

    The larger of the two known buckets wins; with neither known the job is
    treated as medium.
    """
    known = [b for b in (_bucket(height_ft, HEIGHT_THRESHOLDS_FT), _bucket(diameter_in, DIAMETER_THRESHOLDS_IN)) if b]
    if not known:
        return "medium"
    return max(known, key=SIZE_BUCKETS.index)


def crew_multiplier(crew_size: int) -> float:
    if crew_size <= 2:
        return 1.3
    if crew_size == 3:
        return 1.0
    if crew_size == 4:
        return 0.85
    return 0.75


def _escalation(value: Optional[float], steps) -> float:
    if value is None or pd.isna(value):
        return 1.0
    for threshold, multiplier in sorted(steps, key=lambda s: s[0], reverse=True):
        if value > threshold:
            return multiplier
    return 1.0


class DurationPredictor:
    """
    Estimates job hours for a service type, tree size, hazard level and crew size.

    Uses the historical aggregate for the exact key when it has enough
    samples, otherwise falls back to a base-hours table scaled by size,
    hazard and crew multipliers.
    """

    def __init__(
        self,
        history: Optional[Mapping[SampleKey, HistoricalDurationSample]] = None,
        settings: Optional[DurationSettings] = None,
    ):
        self.history = history or {}
        self.settings = settings or DurationSettings()

    def lookup(self, key: SampleKey) -> Optional[HistoricalDurationSample]:
        getter = getattr(self.history, "get_sample", None)
        if getter is not None:
            return getter(key)
        return self.history.get(key)

    def heuristic_hours(
        self,
        service_type: Optional[str],
        height_ft: Optional[float],
        diameter_in: Optional[float],
        hazard_level: str,
        crew_size: int,
    ) -> float:
        s = self.settings
        base = s.base_hours.get((service_type or "").lower(), s.default_base_hours)
        base *= _escalation(height_ft, s.height_escalation)
        base *= _escalation(diameter_in, s.diameter_escalation)
        hazard = s.hazard_multipliers.get(hazard_level, 1.0)
        return base * hazard * crew_multiplier(crew_size)

    def predict(
        self,
        service_type: Optional[str],
        height_ft: Optional[float] = None,
        diameter_in: Optional[float] = None,
        hazard_level: Optional[str] = "Medium",
        crew_size: Optional[int] = 3,
    ) -> DurationEstimate:
        """
        Predict duration for one job.

        Returns:
            DurationEstimate with ``high`` tier / ``historical`` methodology
            when the exact key has at least ``min_samples`` samples, else a
            ``low`` tier ``heuristic`` estimate
        """
        hazard = normalize_hazard(hazard_level)
        crew = int(crew_size) if crew_size else 3
        bucket = size_bucket(height_ft, diameter_in)
        key: SampleKey = ((service_type or "").lower(), bucket, hazard, crew)

        sample = self.lookup(key)
        if sample is not None and sample.sample_count >= self.settings.min_samples:
            mean = float(sample.mean_hours)
            spread = float(sample.stddev_hours or 0.0) or mean * self.settings.missing_stddev_ratio
            logger.debug("Historical estimate for %s from %d samples", key, sample.sample_count)
            return DurationEstimate(
                estimated_hours=round_hours(mean),
                confidence_range=(round_hours(max(mean - spread, 0.0)), round_hours(mean + spread)),
                confidence_tier="high",
                sample_count=int(sample.sample_count),
                methodology=HISTORICAL,
                size_bucket=bucket,
            )

        estimate = round_hours(self.heuristic_hours(service_type, height_ft, diameter_in, hazard, crew))
        low, high = self.settings.heuristic_range
        logger.debug("Heuristic estimate for %s: %.1fh", key, estimate)
        return DurationEstimate(
            estimated_hours=estimate,
            confidence_range=(round_hours(estimate * low), round_hours(estimate * high)),
            confidence_tier="low",
            sample_count=int(sample.sample_count) if sample is not None else 0,
            methodology=HEURISTIC,
            size_bucket=bucket,
        )


def build_duration_samples(records: pd.DataFrame) -> Dict[SampleKey, HistoricalDurationSample]:
    """
    Aggregate completed-job actuals into historical samples.

    Args:
        records: DataFrame with service_type, size_bucket, hazard_level,
            crew_size and actual_hours columns

    Returns:
        Dict mapping (service_type, size_bucket, hazard_level, crew_size)
        to its sample count, mean and standard deviation
    """
    if records.empty:
        return {}

    df = records.copy()
    df.columns = df.columns.str.lower().str.strip()
    df = df.dropna(subset=["actual_hours"])
    df["service_type"] = df["service_type"].fillna("").astype(str).str.lower()
    df["size_bucket"] = df["size_bucket"].fillna("medium").astype(str)
    df["hazard_level"] = df["hazard_level"].map(normalize_hazard)
    df["crew_size"] = pd.to_numeric(df["crew_size"], errors="coerce").fillna(3).astype(int)
    df["actual_hours"] = pd.to_numeric(df["actual_hours"], errors="coerce")
    df = df.dropna(subset=["actual_hours"])

    grouped = df.groupby(["service_type", "size_bucket", "hazard_level", "crew_size"])["actual_hours"].agg(
        ["count", "mean", "std"]
    )

    samples: Dict[SampleKey, HistoricalDurationSample] = {}
    for (service, bucket, hazard, crew), row in grouped.iterrows():
        samples[(service, bucket, hazard, int(crew))] = HistoricalDurationSample(
            sample_count=int(row["count"]),
            mean_hours=float(row["mean"]),
            stddev_hours=None if pd.isna(row["std"]) else float(row["std"]),
        )
    return samples
