"""Repository classes for data access.

Repositories return ORM rows; the ``to_*`` mappers turn them into the
read-only value types the engine works on. Skills and certifications are
normalized here and on CSV import, never inside the scoring loop.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional

import pandas as pd
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from arbor_scheduler.errors import NotFoundError, OccurrenceConflictError, ValidationError
from arbor_scheduler.services.duration import build_duration_samples
from arbor_scheduler.services.series import check_transition

from . import types
from .models import DurationRecord, Employee, EquipmentReservation, Job, JobSeries, SeriesOccurrence


class EmployeeRepository:
    """Repository for roster data access."""

    @staticmethod
    def get_active(session: Session) -> List[Employee]:
        """Get active employees, cheapest first."""
        return (
            session.query(Employee)
            .filter(Employee.status == "Active")
            .order_by(Employee.pay_rate.is_(None), Employee.pay_rate, Employee.employee_id)
            .all()
        )

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return session.query(Employee).filter(Employee.employee_id == employee_id).first()

    @staticmethod
    def to_roster_member(employee: Employee) -> types.RosterMember:
        return types.RosterMember(
            id=str(employee.employee_id),
            name=employee.name,
            title=employee.job_title or "",
            skills=types.normalize_skills(employee.skills),
            certifications=types.normalize_skills(employee.certifications),
            pay_rate=employee.pay_rate,
            performance_rating=employee.performance_rating,
        )

    @classmethod
    def active_roster(cls, session: Session) -> List[types.RosterMember]:
        return [cls.to_roster_member(e) for e in cls.get_active(session)]


class JobRepository:
    """Repository for scheduled jobs and equipment reservations."""

    @staticmethod
    def get_by_id(session: Session, job_id: int) -> Optional[Job]:
        return session.query(Job).filter(Job.id == job_id).first()

    @staticmethod
    def get_by_date(session: Session, day: date) -> List[Job]:
        """Jobs on a date, ordered by start time (unknown times last)."""
        return (
            session.query(Job)
            .filter(Job.scheduled_date == day)
            .order_by(Job.start_time.is_(None), Job.start_time, Job.id)
            .all()
        )

    @staticmethod
    def reservations_on(session: Session, day: date) -> List[EquipmentReservation]:
        return (
            session.query(EquipmentReservation)
            .filter(EquipmentReservation.usage_date == day)
            .order_by(EquipmentReservation.start_time.is_(None), EquipmentReservation.start_time, EquipmentReservation.id)
            .all()
        )

    @staticmethod
    def to_scheduled_job(job: Job) -> types.ScheduledJob:
        return types.ScheduledJob(
            id=job.id,
            scheduled_date=job.scheduled_date,
            start_time=job.start_time,
            end_time=job.end_time,
            crew_member_ids=[str(i) for i in job.crew_member_ids],
            status=job.status,
            description=job.description,
            service_type=job.service_type,
        )

    @staticmethod
    def to_reservation(row: EquipmentReservation) -> types.EquipmentReservation:
        return types.EquipmentReservation(
            equipment_id=str(row.equipment_id),
            job_id=row.job_id,
            usage_date=row.usage_date,
            start_time=row.start_time,
            end_time=row.end_time,
            status=row.job.status if row.job is not None else "Scheduled",
            equipment_name=row.equipment.name if row.equipment is not None else None,
        )


class SessionScheduleSource:
    """Schedule source reading straight from the database."""

    def __init__(self, session: Session):
        self.session = session

    def jobs_on(self, day: date) -> List[types.ScheduledJob]:
        return [JobRepository.to_scheduled_job(j) for j in JobRepository.get_by_date(self.session, day)]

    def reservations_on(self, day: date) -> List[types.EquipmentReservation]:
        return [JobRepository.to_reservation(r) for r in JobRepository.reservations_on(self.session, day)]


class SeriesRepository:
    """Repository for recurring series and their occurrences."""

    @staticmethod
    def create(session: Session, series: JobSeries) -> JobSeries:
        """Create a new series."""
        session.add(series)
        session.commit()
        session.refresh(series)
        return series

    @staticmethod
    def get_all(session: Session, active_only: bool = False) -> List[JobSeries]:
        query = session.query(JobSeries)
        if active_only:
            query = query.filter(JobSeries.is_active.is_(True))
        return query.order_by(JobSeries.id).all()

    @staticmethod
    def get_by_id(session: Session, series_id: int) -> JobSeries:
        """Get series by ID, raising NotFoundError if missing."""
        series = session.query(JobSeries).filter(JobSeries.id == series_id).first()
        if series is None:
            raise NotFoundError(f"Recurring series {series_id} not found")
        return series

    @staticmethod
    def to_domain(series: JobSeries) -> types.JobSeries:
        rule = types.RecurrenceRule(
            pattern=series.recurrence_pattern,
            start_date=series.start_date,
            interval=series.recurrence_interval or 1,
            day_of_week=series.recurrence_day_of_week,
            day_of_month=series.recurrence_day_of_month,
            month=series.recurrence_month,
            end_date=series.end_date,
        )
        return types.JobSeries(
            id=series.id,
            rule=rule,
            name=series.name,
            service_type=series.service_type,
            default_crew_ids=[str(i) for i in series.default_crew or []],
            estimated_duration_hours=series.estimated_duration_hours,
            notes=series.notes,
        )

    @staticmethod
    def list_occurrences(session: Session, series_id: int) -> List[SeriesOccurrence]:
        return (
            session.query(SeriesOccurrence)
            .filter(SeriesOccurrence.series_id == series_id)
            .order_by(SeriesOccurrence.scheduled_date)
            .all()
        )

    @staticmethod
    def get_occurrence(session: Session, series_id: int, occurrence_id: int) -> SeriesOccurrence:
        occurrence = (
            session.query(SeriesOccurrence)
            .filter(SeriesOccurrence.id == occurrence_id, SeriesOccurrence.series_id == series_id)
            .first()
        )
        if occurrence is None:
            raise NotFoundError(f"Occurrence {occurrence_id} of series {series_id} not found")
        return occurrence

    @staticmethod
    def add_occurrences(session: Session, series_id: int, dates: Iterable[date]) -> List[SeriesOccurrence]:
        """
        Persist new scheduled occurrences.

        Raises:
            OccurrenceConflictError: If another writer already stored one of
                the dates (unique series/date constraint)
        """
        dates = list(dates)
        rows = [SeriesOccurrence(series_id=series_id, scheduled_date=d, status=types.OCCURRENCE_SCHEDULED) for d in dates]
        session.add_all(rows)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise OccurrenceConflictError(series_id, dates) from exc
        return rows

    @classmethod
    def set_status(cls, session: Session, series_id: int, occurrence_id: int, status: str) -> SeriesOccurrence:
        """
        Move an occurrence to ``status`` (skip, cancel or restore).

        Raises:
            ValidationError: For unsupported moves, and for ``created``, which
                is only reached by converting the occurrence into a job
        """
        occurrence = cls.get_occurrence(session, series_id, occurrence_id)
        target = check_transition(occurrence.status, status)
        if target == types.OCCURRENCE_CREATED:
            raise ValidationError("Occurrences become 'created' only by converting them into a job")
        occurrence.status = target
        session.commit()
        return occurrence


class DurationRecordRepository:
    """Repository for completed-job durations."""

    @staticmethod
    def record(
        session: Session,
        actual_hours: float,
        service_type: str,
        size_bucket: str = "medium",
        hazard_level: str = "Medium",
        crew_size: int = 3,
        estimated_hours: Optional[float] = None,
        job_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> DurationRecord:
        """Append one actual duration, with variance against the estimate."""
        variance = None
        if estimated_hours:
            variance = round((actual_hours - estimated_hours) / estimated_hours * 100, 1)
        row = DurationRecord(
            job_id=job_id,
            service_type=service_type.lower(),
            size_bucket=size_bucket,
            hazard_level=types.normalize_hazard(hazard_level),
            crew_size=crew_size,
            estimated_hours=estimated_hours,
            actual_hours=actual_hours,
            variance_percentage=variance,
            notes=notes,
        )
        session.add(row)
        session.commit()
        return row

    @staticmethod
    def to_dataframe(session: Session) -> pd.DataFrame:
        rows = session.query(DurationRecord).all()
        return pd.DataFrame(
            [
                {
                    "service_type": r.service_type,
                    "size_bucket": r.size_bucket,
                    "hazard_level": r.hazard_level,
                    "crew_size": r.crew_size,
                    "actual_hours": r.actual_hours,
                }
                for r in rows
            ],
            columns=["service_type", "size_bucket", "hazard_level", "crew_size", "actual_hours"],
        )

    @classmethod
    def load_samples(cls, session: Session) -> Dict[types.SampleKey, types.HistoricalDurationSample]:
        return build_duration_samples(cls.to_dataframe(session))
