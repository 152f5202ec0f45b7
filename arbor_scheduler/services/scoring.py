"""Scoring functions for crew candidate suitability."""

from __future__ import annotations

from typing import Iterable, List, Optional

from arbor_scheduler.config import CrewSettings
from arbor_scheduler.domain.types import RosterMember, Skill


def title_has_any(title: Optional[str], keywords: Iterable[str]) -> bool:
    text = (title or "").lower()
    return any(k.lower() in text for k in keywords)


def count_skill_matches(skills: Iterable[Skill], required: Iterable[str]) -> int:
    """Number of required skills matched by at least one of the member's skills."""
    skills = list(skills)
    return sum(1 for term in required if term and any(s.matches(term) for s in skills))


def holds_certification(member: RosterMember, keywords: Iterable[str]) -> bool:
    return any(cert.matches(k) for cert in member.certifications for k in keywords)


def calculate_candidate_score(
    member: RosterMember,
    service_type: Optional[str],
    hazard_level: str,
    required_skills: List[str],
    settings: CrewSettings,
) -> float:
    """
    Calculate how well a roster member suits a job.

    Higher score = better candidate.

    Args:
        member: Roster member to score
        service_type: Job's service type (e.g. "tree_removal")
        hazard_level: Canonical hazard level ("Low" ... "Critical")
        required_skills: Skill terms the job asks for
        settings: Crew settings holding the weights and title keywords

    Returns:
        Base score plus performance, seniority, specialty and skill bonuses
    """
    w = settings.weights
    score = w.base_score

    # 1. Tracked performance
    if member.performance_rating:
        score += member.performance_rating * w.performance_multiplier

    # 2. Seniority on critical jobs
    if hazard_level == "Critical" and title_has_any(member.title, settings.seniority_keywords):
        score += w.critical_seniority_bonus

    # 3. Specialized title for this service type
    specialties = settings.specialized_titles.get((service_type or "").lower(), [])
    if specialties and title_has_any(member.title, specialties):
        score += w.specialized_title_bonus

    # 4. Required skills
    score += count_skill_matches(member.skills, required_skills) * w.skill_match_bonus

    return score
