"""Read-only schedule and history sources consumed by the scheduling components."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol

from .types import EquipmentReservation, HistoricalDurationSample, SampleKey, ScheduledJob, to_date


class ScheduleSource(Protocol):
    def jobs_on(self, day: date) -> List[ScheduledJob]:
        ...

    def reservations_on(self, day: date) -> List[EquipmentReservation]:
        ...


class HistorySource(Protocol):
    def get_sample(self, key: SampleKey) -> Optional[HistoricalDurationSample]:
        ...


class InMemorySchedule:
    """Schedule snapshot held in memory, indexed by date."""

    def __init__(
        self,
        jobs: Iterable[ScheduledJob] = (),
        reservations: Iterable[EquipmentReservation] = (),
    ):
        self._jobs: Dict[date, List[ScheduledJob]] = defaultdict(list)
        self._reservations: Dict[date, List[EquipmentReservation]] = defaultdict(list)
        for job in jobs:
            self.add_job(job)
        for reservation in reservations:
            self.add_reservation(reservation)

    def add_job(self, job: ScheduledJob) -> None:
        job.scheduled_date = to_date(job.scheduled_date)
        self._jobs[job.scheduled_date].append(job)

    def add_reservation(self, reservation: EquipmentReservation) -> None:
        reservation.usage_date = to_date(reservation.usage_date)
        self._reservations[reservation.usage_date].append(reservation)

    def jobs_on(self, day: date) -> List[ScheduledJob]:
        return list(self._jobs.get(to_date(day), []))

    def reservations_on(self, day: date) -> List[EquipmentReservation]:
        return list(self._reservations.get(to_date(day), []))
