"""Tests for SchedulingAssistant - database-backed composition of the services."""

from datetime import date, time

import pytest

from arbor_scheduler.config import SchedulerConfig
from arbor_scheduler.domain.models import (
    Employee,
    Equipment,
    EquipmentReservation,
    Job,
    JobCrewMember,
    JobSeries,
)
from arbor_scheduler.domain.repositories import DurationRecordRepository, SeriesRepository
from arbor_scheduler.domain.types import SchedulingRequest
from arbor_scheduler.engine.orchestrator import SchedulingAssistant
from arbor_scheduler.errors import ValidationError

DAY = date(2024, 6, 12)


@pytest.fixture
def sample_employees(db_session):
    """Create a small roster."""
    employees = [
        Employee(employee_id=1, first_name="Ana", last_name="Reyes", job_title="Lead Climber", pay_rate=32.0,
                 certifications=[{"id": "isa_certified_arborist", "label": "ISA Certified Arborist"}]),
        Employee(employee_id=2, first_name="Ben", last_name="Cole", job_title="Groundsman", pay_rate=20.0),
        Employee(employee_id=3, first_name="Cy", last_name="Park", job_title="Groundsman", pay_rate=21.0),
        Employee(employee_id=4, first_name="Dee", last_name="Ng", job_title="Climber", pay_rate=26.0,
                 performance_rating=4.0),
        Employee(employee_id=5, first_name="Eli", last_name="Fox", job_title="Groundsman", pay_rate=19.0,
                 status="Inactive"),
    ]
    db_session.add_all(employees)
    db_session.commit()
    return employees


@pytest.fixture
def booked_job(db_session, sample_employees):
    """Job 09:00-12:00 with Ben and Cy plus the chipper."""
    job = Job(id=100, description="Oak removal", service_type="tree_removal", scheduled_date=DAY,
              start_time=time(9), end_time=time(12), hazard_level="High")
    job.crew = [JobCrewMember(employee_id=2), JobCrewMember(employee_id=3)]
    db_session.add_all([job, Equipment(id=10, name="Chipper")])
    db_session.flush()
    db_session.add(EquipmentReservation(equipment_id=10, job_id=100, usage_date=DAY,
                                        start_time=time(9), end_time=time(12)))
    db_session.commit()
    return job


@pytest.fixture
def assistant(db_session):
    return SchedulingAssistant(db_session, SchedulerConfig())


def test_detect_conflicts_from_database(assistant, booked_job):
    request = SchedulingRequest(DAY, time(11), time(13), crew_member_ids=["2"], equipment_ids=["10"])

    conflicts = assistant.detect_conflicts(request)

    assert [c.type for c in conflicts] == ["crew_overlap", "equipment_overlap"]
    assert conflicts[0].overlapping_members == ["2"]
    assert "Chipper" in conflicts[1].message


def test_rescheduling_job_does_not_conflict_with_itself(assistant, booked_job):
    request = SchedulingRequest(DAY, time(10), time(12), crew_member_ids=["2", "3"], equipment_ids=["10"],
                                exclude_job_id=100)

    assert assistant.detect_conflicts(request) == []


def test_suggest_crew_skips_busy_and_inactive(assistant, booked_job):
    request = SchedulingRequest(DAY, time(10), time(14), service_type="tree_removal", hazard_level="Critical",
                                preferred_crew_size=2)

    suggestion = assistant.suggest_crew(request)

    # Ana: 50 + 20 (lead on critical) + 15 (climber) = 85; Dee: 50 + 40 + 15 = 105
    assert [c.id for c in suggestion.recommended] == ["4", "1"]
    assert suggestion.total_available == 2
    assert suggestion.warnings == []


def test_predict_duration_uses_recorded_history(db_session, assistant):
    for hours in (5.0, 6.0, 7.0):
        DurationRecordRepository.record(db_session, hours, "tree_removal", size_bucket="large", hazard_level="High")

    estimate = assistant.predict_duration("tree_removal", height_ft=70, hazard_level="High", crew_size=3)

    assert estimate.methodology == "historical"
    assert estimate.estimated_hours == 6.0
    assert estimate.sample_count == 3


def test_top_up_series_is_idempotent(db_session, assistant):
    series = SeriesRepository.create(
        db_session,
        JobSeries(name="Hedges", service_type="tree_trimming", recurrence_pattern="weekly",
                  recurrence_day_of_week=3, start_date=date(2024, 1, 1)),
    )

    created = assistant.top_up_series(series.id, today=date(2024, 1, 1), horizon_days=14)
    assert [o.scheduled_date for o in created] == [date(2024, 1, 3), date(2024, 1, 10), date(2024, 1, 17)]

    again = assistant.top_up_series(series.id, today=date(2024, 1, 1), horizon_days=14)
    stored = SeriesRepository.list_occurrences(db_session, series.id)
    assert len(stored) == 3 + len(again)
    assert len({o.scheduled_date for o in stored}) == len(stored)


def test_convert_occurrence_to_job(db_session, assistant, sample_employees):
    series = SeriesRepository.create(
        db_session,
        JobSeries(name="Monthly orchard pruning", service_type="pruning", recurrence_pattern="monthly",
                  recurrence_day_of_month=15, start_date=date(2024, 1, 15), default_crew=[2, 3],
                  estimated_duration_hours=3.5, notes="Gate code 4411"),
    )
    (occ, *_) = assistant.top_up_series(series.id, today=date(2024, 1, 1), horizon_days=40)

    job = assistant.convert_occurrence_to_job(series.id, occ.id)

    assert job.scheduled_date == date(2024, 1, 15)
    assert job.service_type == "pruning"
    assert job.estimated_hours == 3.5
    assert job.notes == "Gate code 4411"
    assert sorted(job.crew_member_ids) == [2, 3]
    assert occ.status == "created"
    assert occ.job_id == job.id

    with pytest.raises(ValidationError):
        assistant.convert_occurrence_to_job(series.id, occ.id)


def test_convert_skipped_occurrence_rejected(db_session, assistant):
    series = SeriesRepository.create(
        db_session,
        JobSeries(name="Daily check", recurrence_pattern="daily", start_date=date(2024, 1, 1)),
    )
    (occ, *_) = assistant.top_up_series(series.id, today=date(2024, 1, 1), horizon_days=2)
    SeriesRepository.set_status(db_session, series.id, occ.id, "skipped")

    with pytest.raises(ValidationError):
        assistant.convert_occurrence_to_job(series.id, occ.id)


def test_daily_suggestions(db_session, assistant, booked_job):
    unstaffed = Job(id=101, description="Storm cleanup", service_type="emergency", scheduled_date=DAY,
                    start_time=time(13), end_time=time(16), hazard_level="Medium")
    cancelled = Job(id=102, description="Cancelled visit", service_type="pruning", scheduled_date=DAY,
                    status="Cancelled")
    db_session.add_all([unstaffed, cancelled])
    db_session.commit()
    for hours in (4.0, 5.0, 6.0):
        DurationRecordRepository.record(db_session, hours, "tree_removal", size_bucket="medium",
                                        hazard_level="High", crew_size=2)

    result = assistant.daily_suggestions(DAY)

    assert result["job_count"] == 2
    by_type = {(s["type"], s["job_id"]) for s in result["suggestions"]}
    assert ("crew_assignment", 101) in by_type
    assert ("duration_estimate", 100) in by_type
    assert ("crew_assignment", 100) not in by_type
    crew = next(s for s in result["suggestions"] if s["type"] == "crew_assignment")
    assert len(crew["suggested_crew"]) == 3
