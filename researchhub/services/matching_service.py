"""
Match Scoring & Recommendation Service

PURPOSE:
Score how well each research project fits a student and return a
ranked shortlist with human-readable reasons.

HOW IT WORKS:
1. Filter candidates (inactive, own project, already applied, past deadline)
2. Score each survivor on weighted components (see calculate_match_score)
3. Drop weak matches (< 20), sort best first, keep the top 20

WEIGHTS (points out of 100):
- Skills vs project terms:        30
- Research interest vs text:      25
- Field / specialization:         20
- Skills vs tags:                 15
- Research preferences:           10
- Bonuses: career intention (10), past projects (10),
  recency (3), recent application history (15)

Everything here is a pure function of the records passed in. Data is
fetched by RecommendationService before these functions are called.
"""

import math
import re
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from researchhub.core.logging import get_logger
from researchhub.models import (
    StudentProfile,
    ProjectListing,
    ResearchPreference,
    RecommendationResult,
)
from researchhub.services.text_matching import (
    normalize_string,
    tokenize,
    fuzzy_match,
    jaccard_similarity,
    text_similarity,
)

logger = get_logger(__name__)


MIN_MATCH_SCORE = 20.0
MAX_RECOMMENDATIONS = 20
RECENT_APPLICATION_WINDOW_DAYS = 90

# Tried in order; the first format that parses wins. Day and month
# must be zero-padded, strptime alone would accept "2020-1-5".
DEADLINE_FORMATS = (
    (re.compile(r"\d{4}-\d{2}-\d{2}"), "%Y-%m-%d"),
    (re.compile(r"\d{2}/\d{2}/\d{4}"), "%d/%m/%Y"),
    (re.compile(r"\d{2}-\d{2}-\d{4}"), "%m-%d-%Y"),
)

INCOMPLETE_PROFILE_REASON = "Complete your profile for better matches"
RECENT_APPLICATIONS_REASON = "Similar to projects you've applied to recently"


def _round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero (round() would round half to even)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# ============================================================
# SCORE COMPONENTS
# Each returns points and may append to reasons.
# ============================================================

def _project_terms(project: ProjectListing) -> List[str]:
    """Tags, field, specialization and long description words."""
    terms = list(project.tags)
    if project.field_of_study:
        terms.append(project.field_of_study)
    if project.specialization:
        terms.append(project.specialization)

    desc_words = tokenize(project.long_desc + " " + project.short_desc)
    terms.extend(word for word in desc_words if len(word) > 4)
    return terms


def _skills_score(student: StudentProfile, project: ProjectListing, reasons: List[str]) -> float:
    project_terms = _project_terms(project)
    similarity = jaccard_similarity(student.skills, project_terms)

    match_count = sum(
        1 for skill in student.skills
        if any(fuzzy_match(skill, term) for term in project_terms)
    )

    if match_count >= 3:
        reasons.append("Multiple matching skills")
    elif match_count >= 2:
        reasons.append("Several relevant skills")
    elif match_count >= 1:
        reasons.append("Relevant skills match")

    return min(similarity * 30.0, 30.0)


def _research_score(student: StudentProfile, project: ProjectListing, reasons: List[str]) -> float:
    similarity = text_similarity(student.research_interest, project.long_desc, project.short_desc)

    if similarity > 0.5:
        reasons.append("Strong research interest alignment")
    elif similarity > 0.3:
        reasons.append("Moderate research interest match")

    return min(similarity * 25.0, 25.0)


def _intention_score(student: StudentProfile, project: ProjectListing, reasons: List[str]) -> float:
    similarity = text_similarity(student.intention, project.long_desc, project.short_desc)
    if similarity <= 0.3:
        return 0.0

    if len(reasons) < 3:
        reasons.append("Aligns with your career goals")
    return min(similarity * 10.0, 10.0)


def _field_score(
    student: StudentProfile,
    project: ProjectListing,
    preferences: Optional[ResearchPreference],
    reasons: List[str],
) -> float:
    points = 0.0

    if preferences is not None and preferences.field_of_study and project.field_of_study:
        # fuzzy_match already covers substring containment
        if fuzzy_match(preferences.field_of_study, project.field_of_study):
            points += 20.0
            reasons.append("Matches your field of study")

    if project.specialization:
        for skill in student.skills:
            if fuzzy_match(skill, project.specialization):
                points += 15.0
                if len(reasons) < 4:
                    reasons.append("Specialization matches your skills")
                break

        if student.research_interest and (
            normalize_string(project.specialization) in normalize_string(student.research_interest)
            or fuzzy_match(student.research_interest, project.specialization)
        ):
            points += 12.0
            if len(reasons) < 4:
                reasons.append("Specialization matches your research interest")

    return min(points, 20.0)


def _tag_score(student: StudentProfile, project: ProjectListing, reasons: List[str]) -> float:
    if not project.tags or not student.skills:
        return 0.0

    tag_score = min(jaccard_similarity(student.skills, project.tags) * 15.0, 15.0)
    if tag_score > 10.0 and len(reasons) < 4:
        reasons.append("Strong tag alignment")
    return tag_score


def _experience_fit(experience_level: str, duration: str) -> float:
    """Beginners suit short projects, advanced students long ones."""
    level = experience_level.lower()
    duration = duration.lower()

    if "beginner" in level:
        if duration and ("short" in duration or "3" in duration or "6" in duration):
            return 4.0
        return 0.0
    if "advanced" in level:
        if duration and ("long" in duration or "12" in duration):
            return 4.0
        return 0.0
    return 3.0


def _preferences_score(
    preferences: Optional[ResearchPreference],
    project: ProjectListing,
    reasons: List[str],
) -> float:
    if preferences is None:
        return 0.0

    points = 0.0

    if preferences.interest_areas:
        interest = text_similarity(preferences.interest_areas, project.long_desc, project.short_desc)
        if interest > 0.5:
            points += 8.0
        elif interest > 0.3:
            points += 5.0

    if preferences.experience_level:
        points += _experience_fit(preferences.experience_level, project.duration)

    if preferences.goals:
        if text_similarity(preferences.goals, project.long_desc, project.short_desc) > 0.4:
            points += 3.0

    if points >= 7.0 and len(reasons) < 5:
        reasons.append("Aligns with your learning preferences")

    return min(points, 10.0)


def _past_projects_score(student: StudentProfile, project: ProjectListing, reasons: List[str]) -> float:
    best = 0.0

    for title in student.projects:
        best = max(best, text_similarity(title, project.short_desc, project.long_desc))

    for detail in student.projects_details:
        project_text = detail.title + " " + detail.description
        best = max(best, text_similarity(project_text, project.short_desc, project.long_desc))

    if best <= 0.4:
        return 0.0

    if len(reasons) < 5:
        reasons.append("Similar to your past projects")
    return min(best * 10.0, 10.0)


def _recency_bonus(project: ProjectListing) -> float:
    """Up to 3 points for projects updated within 30 days of creation."""
    if project.created_at is None or project.updated_at is None:
        return 0.0

    hours = (project.updated_at - project.created_at).total_seconds() / 3600
    days_since_creation = _round_half_up(hours / 24)
    if days_since_creation > 30:
        return 0.0

    return min(3.0 * (1.0 - days_since_creation / 30.0), 3.0)


def project_similarity(project: ProjectListing, other: ProjectListing) -> float:
    """
    How alike two projects are, from 0 to 100.

    40 tag overlap + 25 same field + 20 same specialization
    + 15 description overlap (measured from project's side).
    """
    similarity = 0.0

    if project.tags and other.tags:
        similarity += jaccard_similarity(project.tags, other.tags) * 40.0

    if project.field_of_study and other.field_of_study:
        if fuzzy_match(project.field_of_study, other.field_of_study):
            similarity += 25.0

    if project.specialization and other.specialization:
        if fuzzy_match(project.specialization, other.specialization):
            similarity += 20.0

    desc = text_similarity(project.short_desc + " " + project.long_desc, other.short_desc, other.long_desc)
    similarity += desc * 15.0

    return similarity


def _recent_applications_bonus(
    project: ProjectListing,
    recent_applied_projects: Sequence[ProjectListing],
    reasons: List[str],
) -> float:
    """Up to 15 points for resembling what the student applied to lately."""
    if not recent_applied_projects:
        return 0.0

    max_similarity = 0.0
    most_similar_name = ""
    for applied in recent_applied_projects:
        similarity = project_similarity(project, applied)
        if similarity > max_similarity:
            max_similarity = similarity
            most_similar_name = applied.name

    if max_similarity > 50.0:
        if most_similar_name and max_similarity > 70.0:
            reasons.append(f'Similar to "{most_similar_name}" you applied to')
        else:
            reasons.append(RECENT_APPLICATIONS_REASON)
        return min((max_similarity / 100.0) * 15.0, 15.0)

    if max_similarity > 30.0:
        if len(reasons) < 5:
            reasons.append("Matches your application interests")
        return (max_similarity / 100.0) * 8.0

    return 0.0


# ============================================================
# MATCH SCORER
# ============================================================

def calculate_match_score(
    student: StudentProfile,
    project: ProjectListing,
    preferences: Optional[ResearchPreference] = None,
    recent_applied_projects: Sequence[ProjectListing] = (),
) -> Tuple[float, List[str]]:
    """
    Score one (student, project) pair.

    Args:
        student: Student profile snapshot
        project: Candidate project
        preferences: Research preferences, or None if never filled in
        recent_applied_projects: Projects applied to in the last 90 days

    Returns:
        (score between 0 and 100 rounded to 1 decimal, ordered reasons)
    """
    has_skills = len(student.skills) > 0
    has_research = student.research_interest != ""
    has_intention = student.intention != ""

    if not has_skills and not has_research and not has_intention:
        return 0.0, [INCOMPLETE_PROFILE_REASON]

    score = 0.0
    reasons: List[str] = []

    if has_skills:
        score += _skills_score(student, project, reasons)
    if has_research:
        score += _research_score(student, project, reasons)
    if has_intention:
        score += _intention_score(student, project, reasons)

    score += _field_score(student, project, preferences, reasons)
    score += _tag_score(student, project, reasons)
    score += _preferences_score(preferences, project, reasons)
    score += _past_projects_score(student, project, reasons)
    score += _recency_bonus(project)
    score += _recent_applications_bonus(project, recent_applied_projects, reasons)

    score = _round_half_up(max(0.0, min(score, 100.0)), 1)

    if not reasons and score >= 30:
        reasons.append("Matches your profile")
    if not reasons and score >= 20:
        reasons.append("Potential fit based on your background")

    return score, reasons


# ============================================================
# RECOMMENDATION ORCHESTRATOR
# ============================================================

def parse_deadline(deadline: Optional[str]) -> Optional[datetime]:
    """
    Parse a free-form deadline string.

    Formats are tried positionally (ISO, then day-first, then
    month-first). Anything else yields None, which callers treat as
    "no deadline".
    """
    if not deadline:
        return None

    for shape, fmt in DEADLINE_FORMATS:
        if not shape.fullmatch(deadline):
            continue
        try:
            return datetime.strptime(deadline, fmt)
        except ValueError:
            continue
    return None


def is_deadline_passed(project: ProjectListing, now: datetime) -> bool:
    deadline = parse_deadline(project.deadline)
    return deadline is not None and deadline < now


def recommend(
    student: StudentProfile,
    projects: Iterable[ProjectListing],
    applied_project_ids: Iterable[int] = (),
    recent_applied_projects: Sequence[ProjectListing] = (),
    preferences: Optional[ResearchPreference] = None,
    now: Optional[datetime] = None,
    min_score: float = MIN_MATCH_SCORE,
    limit: int = MAX_RECOMMENDATIONS,
) -> List[RecommendationResult]:
    """
    Rank candidate projects for a student.

    Args:
        student: Student profile snapshot
        projects: Candidate projects (normally active, not student's own)
        applied_project_ids: Every project the student applied to, any status
        recent_applied_projects: Projects applied to in the last 90 days
        preferences: Research preferences, or None
        now: Reference time for deadlines (defaults to utcnow)
        min_score: Results below this are dropped
        limit: Maximum results returned

    Returns:
        Results sorted by match_score descending; ties keep input order
    """
    now = now or datetime.utcnow()
    applied = set(applied_project_ids)

    results = []
    skipped_applied = skipped_expired = 0

    for project in projects:
        if not project.is_active or project.creator_id == student.user_id:
            continue
        if project.project_id in applied:
            skipped_applied += 1
            continue
        if is_deadline_passed(project, now):
            skipped_expired += 1
            continue

        score, reasons = calculate_match_score(student, project, preferences, recent_applied_projects)
        if score >= min_score:
            results.append(RecommendationResult(
                project=project,
                match_score=score,
                match_reasons=reasons,
            ))

    # sorted() is stable, so equal scores keep encounter order
    results = sorted(results, key=lambda r: r.match_score, reverse=True)[:limit]

    logger.debug(
        f"Recommendations for user {student.user_id}: {len(results)} kept, "
        f"{skipped_applied} already applied, {skipped_expired} past deadline"
    )
    return results
