"""Services for scheduling logic."""

from .conflicts import ConflictDetector, severity_score
from .crew import CrewOptimizer
from .duration import DurationPredictor, build_duration_samples, size_bucket
from .recurrence import RecurrenceEngine, generate_occurrences
from .scoring import calculate_candidate_score
from .series import check_transition
from .timeplan import has_time_overlap

__all__ = [
    "ConflictDetector",
    "severity_score",
    "CrewOptimizer",
    "DurationPredictor",
    "build_duration_samples",
    "size_bucket",
    "RecurrenceEngine",
    "generate_occurrences",
    "calculate_candidate_score",
    "check_transition",
    "has_time_overlap",
]
