"""Crew and equipment double-booking detection for proposed jobs."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, List, Optional

from arbor_scheduler.config import ConflictSettings
from arbor_scheduler.domain.sources import ScheduleSource
from arbor_scheduler.domain.types import (
    CAPACITY_WARNING,
    CREW_OVERLAP,
    EQUIPMENT_OVERLAP,
    Conflict,
    SchedulingRequest,
    ScheduledJob,
    to_date,
)

from .timeplan import has_time_overlap

logger = logging.getLogger(__name__)

SEVERITY_POINTS = {"critical": 100, "high": 50, "medium": 20, "low": 5}


def is_active_status(status: Optional[str], terminal_statuses) -> bool:
    return (status or "").strip().lower() not in {s.lower() for s in terminal_statuses}


def _fold(ids) -> Dict[str, str]:
    return {str(i).strip().lower(): str(i) for i in ids or []}


class ConflictDetector:
    """
    Finds resources a proposed job would double-book.

    Never mutates the schedule; callers decide whether a conflict blocks
    the booking or is shown as a warning.
    """

    def __init__(self, schedule: ScheduleSource, settings: Optional[ConflictSettings] = None):
        self.schedule = schedule
        self.settings = settings or ConflictSettings()

    @property
    def default_minutes(self) -> int:
        return int(round(self.settings.default_job_hours * 60))

    def overlaps(self, request: SchedulingRequest, start, end) -> bool:
        return has_time_overlap(request.start_time, request.end_time, start, end, self.default_minutes)

    def active_jobs(self, day: date, exclude_job_id=None) -> List[ScheduledJob]:
        """Non-terminal jobs on ``day``, minus the job being re-checked."""
        return [
            job
            for job in self.schedule.jobs_on(day)
            if is_active_status(job.status, self.settings.terminal_statuses)
            and (exclude_job_id is None or job.id != exclude_job_id)
        ]

    def crew_conflicts(self, request: SchedulingRequest, jobs: List[ScheduledJob]) -> List[Conflict]:
        wanted = _fold(request.crew_member_ids)
        if not wanted:
            return []

        conflicts: List[Conflict] = []
        for job in jobs:
            shared = [str(m) for m in job.crew_member_ids if str(m).strip().lower() in wanted]
            if not shared:
                continue
            if self.overlaps(request, job.start_time, job.end_time):
                conflicts.append(
                    Conflict(
                        type=CREW_OVERLAP,
                        severity=self.settings.crew_overlap_severity,
                        message=f"Crew already booked on job {job.id}: {', '.join(shared)}",
                        job_id=job.id,
                        existing_start=job.start_time,
                        existing_end=job.end_time,
                        overlapping_members=shared,
                    )
                )
        return conflicts

    def equipment_conflicts(self, request: SchedulingRequest, day: date) -> List[Conflict]:
        wanted = _fold(request.equipment_ids)
        if not wanted:
            return []

        conflicts: List[Conflict] = []
        for usage in self.schedule.reservations_on(day):
            if str(usage.equipment_id).strip().lower() not in wanted:
                continue
            if not is_active_status(usage.status, self.settings.terminal_statuses):
                continue
            if request.exclude_job_id is not None and usage.job_id == request.exclude_job_id:
                continue
            if self.overlaps(request, usage.start_time, usage.end_time):
                label = usage.equipment_name or usage.equipment_id
                conflicts.append(
                    Conflict(
                        type=EQUIPMENT_OVERLAP,
                        severity=self.settings.equipment_overlap_severity,
                        message=f"Equipment {label} reserved for job {usage.job_id}",
                        job_id=usage.job_id,
                        equipment_id=usage.equipment_id,
                        existing_start=usage.start_time,
                        existing_end=usage.end_time,
                    )
                )
        return conflicts

    def detect_conflicts(self, request: SchedulingRequest) -> List[Conflict]:
        """
        Check a proposed job against the schedule for its date.

        Returns:
            Crew overlaps, then equipment overlaps, then at most one
            capacity warning
        """
        day = to_date(request.scheduled_date)
        jobs = self.active_jobs(day, request.exclude_job_id)

        conflicts = self.crew_conflicts(request, jobs)
        conflicts.extend(self.equipment_conflicts(request, day))

        if len(jobs) >= self.settings.capacity_threshold:
            conflicts.append(
                Conflict(
                    type=CAPACITY_WARNING,
                    severity=self.settings.capacity_warning_severity,
                    message=f"Already {len(jobs)} jobs scheduled for this date",
                    current_load=len(jobs),
                )
            )

        if conflicts:
            logger.info("%d conflict(s) for proposed job on %s", len(conflicts), day)
        return conflicts

    def suggest_alternative_dates(
        self,
        request: SchedulingRequest,
        start,
        days: int = 14,
        exclude_weekends: bool = False,
    ) -> List[Dict]:
        """
        Find dates in ``[start, start + days)`` where the request has no crew or
        equipment conflict.

        Returns:
            One dict per clear date (date, current_load, capacity_warning),
            least loaded first, then earliest
        """
        first = to_date(start)
        options: List[Dict] = []
        for offset in range(max(days, 0)):
            day = first + timedelta(days=offset)
            if exclude_weekends and day.weekday() >= 5:
                continue
            moved = replace(request, scheduled_date=day)
            found = self.detect_conflicts(moved)
            if any(c.type != CAPACITY_WARNING for c in found):
                continue
            load = len(self.active_jobs(day, request.exclude_job_id))
            options.append(
                {
                    "date": day,
                    "current_load": load,
                    "capacity_warning": any(c.type == CAPACITY_WARNING for c in found),
                }
            )
        options.sort(key=lambda o: (o["current_load"], o["date"]))
        return options


def severity_score(conflicts: List[Conflict]) -> Dict:
    """Summarize a conflict list as a weighted score and status label."""
    score = sum(SEVERITY_POINTS.get(c.severity, 0) for c in conflicts)
    if score == 0:
        status = "clear"
    elif score < 50:
        status = "minor_issues"
    elif score < 100:
        status = "needs_attention"
    else:
        status = "critical"
    return {
        "score": score,
        "conflict_count": len(conflicts),
        "has_high": any(c.severity in ("critical", "high") for c in conflicts),
        "status": status,
    }
