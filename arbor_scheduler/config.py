"""Configuration loading for the scheduling engine.

Settings are grouped per component and default to the values the engine has
always used, so an empty (or missing) config file reproduces stock behavior.
Files may be YAML (``.yaml`` / ``.yml``) or JSON.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from arbor_scheduler.errors import ValidationError


@dataclass
class RecurrenceSettings:
    horizon_days: int = 60
    max_occurrences: int = 180


@dataclass
class DurationSettings:
    min_samples: int = 3
    default_base_hours: float = 3.0
    base_hours: Dict[str, float] = field(
        default_factory=lambda: {
            "tree_removal": 4.0,
            "tree_trimming": 2.0,
            "pruning": 1.5,
            "stump_grinding": 1.0,
            "lot_clearing": 6.0,
            "emergency": 3.0,
            "consultation": 1.0,
        }
    )
    hazard_multipliers: Dict[str, float] = field(
        default_factory=lambda: {"Low": 0.9, "Medium": 1.0, "High": 1.4, "Critical": 1.8}
    )
    # (threshold, multiplier) pairs; the first threshold exceeded wins
    height_escalation: List[Tuple[float, float]] = field(
        default_factory=lambda: [(80.0, 2.0), (60.0, 1.5)]
    )
    diameter_escalation: List[Tuple[float, float]] = field(
        default_factory=lambda: [(48.0, 2.0), (36.0, 1.6), (24.0, 1.3)]
    )
    heuristic_range: Tuple[float, float] = (0.7, 1.5)
    missing_stddev_ratio: float = 0.2


@dataclass
class ConflictSettings:
    crew_overlap_severity: str = "high"
    equipment_overlap_severity: str = "medium"
    capacity_warning_severity: str = "low"
    capacity_threshold: int = 5
    default_job_hours: float = 4.0
    terminal_statuses: List[str] = field(default_factory=lambda: ["cancelled", "completed"])


@dataclass
class CrewWeights:
    """Candidate scoring weights. Uncalibrated; tune against real outcomes."""

    base_score: float = 50.0
    performance_multiplier: float = 10.0
    critical_seniority_bonus: float = 20.0
    specialized_title_bonus: float = 15.0
    skill_match_bonus: float = 10.0


@dataclass
class CrewSettings:
    weights: CrewWeights = field(default_factory=CrewWeights)
    default_crew_size: int = 3
    alternate_count: int = 2
    seniority_keywords: List[str] = field(default_factory=lambda: ["certified", "lead"])
    specialized_titles: Dict[str, List[str]] = field(
        default_factory=lambda: {"tree_removal": ["climber"]}
    )
    certification_keywords: List[str] = field(default_factory=lambda: ["arborist"])
    certification_hazards: List[str] = field(default_factory=lambda: ["High", "Critical"])


@dataclass
class SchedulerConfig:
    recurrence: RecurrenceSettings = field(default_factory=RecurrenceSettings)
    duration: DurationSettings = field(default_factory=DurationSettings)
    conflicts: ConflictSettings = field(default_factory=ConflictSettings)
    crew: CrewSettings = field(default_factory=CrewSettings)


def _build(cls, data: Optional[dict], path: str):
    """Instantiate dataclass ``cls`` from ``data``, recursing into nested sections."""
    instance = cls()
    if data is None:
        return instance
    if not isinstance(data, dict):
        raise ValidationError(f"Config section '{path}' must be a mapping")

    known = {f.name: f for f in fields(cls)}
    for key, value in data.items():
        if key not in known:
            raise ValidationError(f"Unknown config key '{path}.{key}'" if path else f"Unknown config section '{key}'")
        current = getattr(instance, key)
        if is_dataclass(current):
            value = _build(type(current), value, f"{path}.{key}" if path else key)
        elif isinstance(current, dict):
            merged = dict(current)
            merged.update(value or {})
            value = merged
        elif isinstance(current, tuple):
            value = tuple(value)
        elif key.endswith("_escalation"):
            value = [tuple(pair) for pair in value]
        setattr(instance, key, value)
    return instance


def load_config(path: str | Path | None = None) -> SchedulerConfig:
    """
    Load configuration from a YAML or JSON file.

    Args:
        path: Config file path. ``None`` returns the defaults.

    Returns:
        SchedulerConfig with file values merged over defaults

    Raises:
        ValidationError: If the file contains unknown sections or keys
    """
    if path is None:
        return SchedulerConfig()

    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        raw = json.loads(text) if text.strip() else {}
    else:
        raw = yaml.safe_load(text) or {}

    return _build(SchedulerConfig, raw, "")
