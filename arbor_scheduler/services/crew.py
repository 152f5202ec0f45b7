"""Crew candidate ranking for a scheduling request."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from arbor_scheduler.config import ConflictSettings, CrewSettings
from arbor_scheduler.domain.sources import ScheduleSource
from arbor_scheduler.domain.types import CrewCandidate, CrewSuggestion, RosterMember, SchedulingRequest

from .conflicts import ConflictDetector
from .scoring import calculate_candidate_score, holds_certification

logger = logging.getLogger(__name__)


def sort_roster(roster: Iterable[RosterMember]) -> List[RosterMember]:
    """Order by pay rate ascending; unknown rates go last, ties keep input order."""
    return sorted(roster, key=lambda m: (m.pay_rate is None, m.pay_rate or 0.0))


class CrewOptimizer:
    """
    Ranks available roster members for a job.

    Members already booked in an overlapping window on the job's date are
    filtered out with the same overlap test the conflict detector uses.
    Ranking is deterministic: equal scores keep roster order, so the
    cheaper member comes first.
    """

    def __init__(
        self,
        roster: Iterable[RosterMember],
        schedule: ScheduleSource,
        settings: Optional[CrewSettings] = None,
        conflict_settings: Optional[ConflictSettings] = None,
    ):
        self.roster = sort_roster(roster)
        self.settings = settings or CrewSettings()
        self.detector = ConflictDetector(schedule, conflict_settings)

    def busy_member_ids(self, request: SchedulingRequest) -> set:
        busy = set()
        for job in self.detector.active_jobs(request.scheduled_date, request.exclude_job_id):
            if self.detector.overlaps(request, job.start_time, job.end_time):
                busy.update(str(m).strip().lower() for m in job.crew_member_ids)
        return busy

    def available_members(self, request: SchedulingRequest) -> List[RosterMember]:
        busy = self.busy_member_ids(request)
        available = [m for m in self.roster if str(m.id).strip().lower() not in busy]
        logger.debug("%d of %d roster members free on %s", len(available), len(self.roster), request.scheduled_date)
        return available

    def rank(self, request: SchedulingRequest, members: List[RosterMember]) -> List[CrewCandidate]:
        scored = [
            CrewCandidate(
                member=m,
                score=calculate_candidate_score(
                    m, request.service_type, request.hazard_level, request.required_skills, self.settings
                ),
            )
            for m in members
        ]
        # stable sort keeps roster (pay rate) order on ties
        scored.sort(key=lambda c: -c.score)
        return scored

    def suggest_crew(self, request: SchedulingRequest) -> CrewSuggestion:
        """
        Suggest a crew for the request.

        Returns:
            CrewSuggestion with the top ``preferred_crew_size`` candidates,
            the next ``alternate_count`` as alternates, and advisory warnings
        """
        size = request.preferred_crew_size
        if not size or size <= 0:
            size = self.settings.default_crew_size
        available = self.available_members(request)
        ranked = self.rank(request, available)

        recommended = ranked[:size]
        alternates = ranked[size : size + self.settings.alternate_count]

        warnings: List[str] = []
        if request.hazard_level in self.settings.certification_hazards:
            if not any(holds_certification(c.member, self.settings.certification_keywords) for c in recommended):
                warnings.append(f"{request.hazard_level} hazard job may require an ISA Certified Arborist")
        if len(recommended) < size:
            warnings.append(f"Only {len(recommended)} employees available, requested {size}")

        return CrewSuggestion(
            recommended=recommended,
            alternates=alternates,
            warnings=warnings,
            total_available=len(available),
            requested_crew_size=size,
        )
