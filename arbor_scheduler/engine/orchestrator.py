"""Orchestrator - wires the scheduling components to database-backed sources."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from arbor_scheduler.config import SchedulerConfig
from arbor_scheduler.domain.models import Job, JobCrewMember, SeriesOccurrence
from arbor_scheduler.domain.repositories import (
    DurationRecordRepository,
    EmployeeRepository,
    JobRepository,
    SeriesRepository,
    SessionScheduleSource,
)
from arbor_scheduler.domain.types import (
    OCCURRENCE_CREATED,
    Conflict,
    CrewSuggestion,
    DurationEstimate,
    SchedulingRequest,
    to_date,
)
from arbor_scheduler.errors import ValidationError
from arbor_scheduler.services.conflicts import ConflictDetector
from arbor_scheduler.services.crew import CrewOptimizer
from arbor_scheduler.services.duration import DurationPredictor
from arbor_scheduler.services.recurrence import RecurrenceEngine
from arbor_scheduler.services.series import can_convert

logger = logging.getLogger(__name__)


class SchedulingAssistant:
    """
    Composes the recurrence, duration, conflict and crew components over one
    database session.

    Each call reads a fresh snapshot through the repositories; nothing here
    writes except the explicit series operations.
    """

    def __init__(self, session: Session, cfg: Optional[SchedulerConfig] = None):
        self.session = session
        self.cfg = cfg or SchedulerConfig()
        self.schedule = SessionScheduleSource(session)

    def detector(self) -> ConflictDetector:
        return ConflictDetector(self.schedule, self.cfg.conflicts)

    def optimizer(self) -> CrewOptimizer:
        return CrewOptimizer(
            EmployeeRepository.active_roster(self.session),
            self.schedule,
            self.cfg.crew,
            self.cfg.conflicts,
        )

    def predictor(self) -> DurationPredictor:
        return DurationPredictor(DurationRecordRepository.load_samples(self.session), self.cfg.duration)

    def detect_conflicts(self, request: SchedulingRequest) -> List[Conflict]:
        return self.detector().detect_conflicts(request)

    def suggest_crew(self, request: SchedulingRequest) -> CrewSuggestion:
        return self.optimizer().suggest_crew(request)

    def predict_duration(
        self, service_type, height_ft=None, diameter_in=None, hazard_level="Medium", crew_size=3
    ) -> DurationEstimate:
        return self.predictor().predict(service_type, height_ft, diameter_in, hazard_level, crew_size)

    def top_up_series(
        self,
        series_id: int,
        today,
        horizon_days: Optional[int] = None,
        until_date=None,
    ) -> List[SeriesOccurrence]:
        """
        Generate and persist occurrences for a series up to the horizon.

        Returns:
            Newly stored occurrences (empty when already topped up)

        Raises:
            OccurrenceConflictError: If a concurrent caller stored a date first
        """
        row = SeriesRepository.get_by_id(self.session, series_id)
        series = SeriesRepository.to_domain(row)
        existing = [o.scheduled_date for o in SeriesRepository.list_occurrences(self.session, series_id)]

        engine = RecurrenceEngine.from_config(self.cfg)
        dates = engine.generate_occurrences(series, existing, today, horizon_days, until_date)
        if not dates:
            return []
        created = SeriesRepository.add_occurrences(self.session, series_id, dates)
        logger.info("Series %s: stored %d new occurrence(s)", series_id, len(created))
        return created

    def convert_occurrence_to_job(self, series_id: int, occurrence_id: int) -> Job:
        """
        Materialize a scheduled occurrence as a job using the series template.

        Raises:
            ValidationError: If the occurrence is not in the scheduled state
        """
        row = SeriesRepository.get_by_id(self.session, series_id)
        occurrence = SeriesRepository.get_occurrence(self.session, series_id, occurrence_id)
        if not can_convert(occurrence.status):
            raise ValidationError("Only scheduled occurrences can be converted into jobs")

        job = Job(
            description=row.name,
            service_type=row.service_type,
            scheduled_date=occurrence.scheduled_date,
            status="Scheduled",
            estimated_hours=row.estimated_duration_hours,
            notes=row.notes,
        )
        job.crew = [JobCrewMember(employee_id=int(emp_id)) for emp_id in row.default_crew or []]
        self.session.add(job)
        self.session.flush()

        occurrence.status = OCCURRENCE_CREATED
        occurrence.job_id = job.id
        self.session.commit()
        logger.info("Series %s occurrence %s converted to job %s", series_id, occurrence_id, job.id)
        return job

    def daily_suggestions(self, day) -> Dict:
        """
        Suggestions for every active job on ``day``.

        Jobs without a crew get a crew suggestion; jobs whose duration can be
        estimated from history get a high-confidence estimate.
        """
        day = to_date(day)
        detector = self.detector()
        optimizer = self.optimizer()
        predictor = self.predictor()
        active_ids = {j.id for j in detector.active_jobs(day)}
        jobs = [j for j in JobRepository.get_by_date(self.session, day) if j.id in active_ids]

        suggestions: List[Dict] = []
        for job in jobs:
            if not job.crew:
                request = SchedulingRequest(
                    scheduled_date=day,
                    start_time=job.start_time,
                    end_time=job.end_time,
                    service_type=job.service_type or "tree_removal",
                    hazard_level=job.hazard_level or "Medium",
                    exclude_job_id=job.id,
                )
                crew = optimizer.suggest_crew(request)
                if crew.recommended:
                    suggestions.append(
                        {
                            "type": "crew_assignment",
                            "job_id": job.id,
                            "description": job.description,
                            "suggested_crew": [c.member.name for c in crew.recommended],
                            "warnings": crew.warnings,
                        }
                    )

            estimate = predictor.predict(
                job.service_type or "tree_removal",
                job.tree_height_ft,
                job.trunk_diameter_in,
                job.hazard_level or "Medium",
                len(job.crew) or 3,
            )
            if estimate.confidence_tier == "high":
                suggestions.append(
                    {
                        "type": "duration_estimate",
                        "job_id": job.id,
                        "description": job.description,
                        "estimated_hours": estimate.estimated_hours,
                        "range": estimate.confidence_range,
                    }
                )

        return {"date": day, "job_count": len(jobs), "suggestions": suggestions}
