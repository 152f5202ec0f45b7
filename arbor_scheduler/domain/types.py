"""Value types passed into and out of the scheduling engine.

These are plain dataclasses so the engine can run against in-memory
snapshots as well as database-backed sources.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional, Tuple

from arbor_scheduler.errors import ValidationError

PATTERNS = ("daily", "weekly", "monthly", "quarterly", "yearly")
HAZARD_LEVELS = ("Low", "Medium", "High", "Critical")
SIZE_BUCKETS = ("small", "medium", "large", "extra_large")

OCCURRENCE_SCHEDULED = "scheduled"
OCCURRENCE_SKIPPED = "skipped"
OCCURRENCE_CANCELLED = "cancelled"
OCCURRENCE_CREATED = "created"

CREW_OVERLAP = "crew_overlap"
EQUIPMENT_OVERLAP = "equipment_overlap"
CAPACITY_WARNING = "capacity_warning"


def to_date(value: Any) -> date:
    """Coerce a date, datetime or ISO string to ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise ValidationError(f"Invalid date: {value!r}") from exc
    raise ValidationError(f"Invalid date: {value!r}")


def normalize_hazard(level: Optional[str], default: str = "Medium") -> str:
    """Map case variants ("critical", "HIGH") onto the canonical hazard names."""
    if not level:
        return default
    for known in HAZARD_LEVELS:
        if known.lower() == str(level).strip().lower():
            return known
    return str(level).strip()


@dataclass(frozen=True)
class Skill:
    """A skill or certification with a stable identifier and display label."""

    identifier: str
    label: str

    def matches(self, term: str) -> bool:
        needle = term.strip().lower()
        return bool(needle) and (needle in self.identifier.lower() or needle in self.label.lower())


def normalize_skill(value: Any) -> Optional[Skill]:
    """
    Normalize one raw skill value.

    Accepts a plain string or a mapping with any of ``id``/``identifier``/
    ``name``/``label`` keys. Blank values return None.
    """
    if value is None:
        return None
    if isinstance(value, Skill):
        return value
    if isinstance(value, dict):
        ident = value.get("id") or value.get("identifier") or value.get("name") or value.get("label")
        label = value.get("label") or value.get("name") or ident
        if not ident:
            return None
        return Skill(identifier=str(ident).strip().lower().replace(" ", "_"), label=str(label).strip())
    text = str(value).strip()
    if not text:
        return None
    return Skill(identifier=text.lower().replace(" ", "_"), label=text)


def normalize_skills(values: Any) -> Tuple[Skill, ...]:
    """Normalize a list (or ``;``-separated string) of raw skills, dropping duplicates."""
    if values is None:
        return ()
    if isinstance(values, str):
        values = values.split(";")
    elif isinstance(values, (dict, Skill)):
        values = [values]

    seen = set()
    result: List[Skill] = []
    for raw in values:
        skill = normalize_skill(raw)
        if skill is not None and skill.identifier not in seen:
            seen.add(skill.identifier)
            result.append(skill)
    return tuple(result)


@dataclass
class RecurrenceRule:
    pattern: str
    start_date: Optional[date]
    interval: int = 1
    day_of_week: Optional[int] = None  # 0 = Sunday ... 6 = Saturday
    day_of_month: Optional[int] = None
    month: Optional[int] = None
    end_date: Optional[date] = None

    def __post_init__(self):
        self.pattern = (self.pattern or "").strip().lower()
        if self.pattern not in PATTERNS:
            raise ValidationError(f"Unsupported recurrence pattern: {self.pattern!r}")
        if self.interval is None or int(self.interval) <= 0:
            self.interval = 1
        self.interval = int(self.interval)
        if self.day_of_week is not None and not 0 <= int(self.day_of_week) <= 6:
            raise ValidationError(f"day_of_week must be 0-6, got {self.day_of_week}")
        if self.day_of_month is not None and not 1 <= int(self.day_of_month) <= 31:
            raise ValidationError(f"day_of_month must be 1-31, got {self.day_of_month}")
        if self.month is not None and not 1 <= int(self.month) <= 12:
            raise ValidationError(f"month must be 1-12, got {self.month}")
        if self.start_date is not None:
            self.start_date = to_date(self.start_date)
        if self.end_date is not None:
            self.end_date = to_date(self.end_date)


@dataclass
class JobSeries:
    id: Optional[int]
    rule: RecurrenceRule
    name: str = ""
    service_type: Optional[str] = None
    default_crew_ids: List[str] = field(default_factory=list)
    estimated_duration_hours: Optional[float] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class HistoricalDurationSample:
    sample_count: int
    mean_hours: float
    stddev_hours: Optional[float] = None


# (service_type, size_bucket, hazard_level, crew_size)
SampleKey = Tuple[str, str, str, int]


@dataclass
class DurationEstimate:
    estimated_hours: float
    confidence_range: Tuple[float, float]
    confidence_tier: str
    sample_count: int
    methodology: str
    size_bucket: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "estimatedHours": self.estimated_hours,
            "confidenceRange": {"min": self.confidence_range[0], "max": self.confidence_range[1]},
            "confidenceTier": self.confidence_tier,
            "sampleCount": self.sample_count,
            "methodology": self.methodology,
            "sizeBucket": self.size_bucket,
        }


@dataclass
class ScheduledJob:
    id: Any
    scheduled_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    crew_member_ids: List[str] = field(default_factory=list)
    status: str = "Scheduled"
    description: Optional[str] = None
    service_type: Optional[str] = None

    def __post_init__(self):
        self.crew_member_ids = [str(m) for m in self.crew_member_ids or []]


@dataclass
class EquipmentReservation:
    equipment_id: str
    job_id: Any
    usage_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    status: str = "Scheduled"
    equipment_name: Optional[str] = None


@dataclass
class SchedulingRequest:
    scheduled_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    crew_member_ids: List[str] = field(default_factory=list)
    equipment_ids: List[str] = field(default_factory=list)
    service_type: Optional[str] = None
    hazard_level: str = "Medium"
    required_skills: List[str] = field(default_factory=list)
    preferred_crew_size: int = 3
    exclude_job_id: Any = None

    def __post_init__(self):
        self.scheduled_date = to_date(self.scheduled_date)
        self.hazard_level = normalize_hazard(self.hazard_level)
        self.crew_member_ids = [str(m) for m in self.crew_member_ids or []]
        self.equipment_ids = [str(e) for e in self.equipment_ids or []]


@dataclass
class Conflict:
    type: str
    severity: str
    message: str
    job_id: Any = None
    equipment_id: Optional[str] = None
    existing_start: Optional[time] = None
    existing_end: Optional[time] = None
    overlapping_members: List[str] = field(default_factory=list)
    current_load: Optional[int] = None


@dataclass
class RosterMember:
    id: str
    name: str
    title: str = ""
    skills: Tuple[Skill, ...] = ()
    certifications: Tuple[Skill, ...] = ()
    pay_rate: Optional[float] = None
    performance_rating: Optional[float] = None


@dataclass
class CrewCandidate:
    member: RosterMember
    score: float

    @property
    def id(self) -> str:
        return self.member.id


@dataclass
class CrewSuggestion:
    recommended: List[CrewCandidate]
    alternates: List[CrewCandidate]
    warnings: List[str]
    total_available: int
    requested_crew_size: int


def ids_of(candidates: Iterable[CrewCandidate]) -> List[str]:
    return [c.id for c in candidates]
