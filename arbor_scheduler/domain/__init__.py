"""Domain models and data access layer."""

from .models import (
    Base,
    DurationRecord,
    Employee,
    Equipment,
    EquipmentReservation,
    Job,
    JobCrewMember,
    JobSeries,
    SeriesOccurrence,
)
from .repositories import (
    DurationRecordRepository,
    EmployeeRepository,
    JobRepository,
    SeriesRepository,
    SessionScheduleSource,
)
from .sources import HistorySource, InMemorySchedule, ScheduleSource

__all__ = [
    "Base",
    "DurationRecord",
    "Employee",
    "Equipment",
    "EquipmentReservation",
    "Job",
    "JobCrewMember",
    "JobSeries",
    "SeriesOccurrence",
    "DurationRecordRepository",
    "EmployeeRepository",
    "JobRepository",
    "SeriesRepository",
    "SessionScheduleSource",
    "HistorySource",
    "InMemorySchedule",
    "ScheduleSource",
]
