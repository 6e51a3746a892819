"""
Recommendation Service

Fetches everything the matching engine needs for one student from
PostgreSQL, then hands the snapshot to matching_service.recommend().

Queries:
1. Student profile (404 upstream if missing)
2. Research preferences (optional)
3. Active projects not created by the student, with creator name
4. Every project the student applied to (any status)
5. Projects applied to in the last 90 days
"""

from datetime import datetime, timedelta
from typing import List, Optional, Set

from researchhub.core.logging import get_logger
from researchhub.db.postgres import execute_raw_sql, fetch_one
from researchhub.models import (
    StudentProfile,
    ApplicationRecord,
    ProjectListing,
    ResearchPreference,
    RecommendationResult,
)
from researchhub.services.matching_service import recommend, RECENT_APPLICATION_WINDOW_DAYS

logger = get_logger(__name__)


PROJECT_COLUMNS = """
    p.project_id, p.creator_id, u.full_name AS creator_name, p.name, p.short_desc,
    p.long_desc, p.is_active, p.tags, p.field_of_study, p.specialization, p.duration,
    p.position_type, p.working_users, p.deadline, p.created_at, p.updated_at
"""


class StudentProfileNotFound(Exception):
    """Raised when a student has not created a profile yet."""


class RecommendationService:
    """
    Loads record snapshots and produces ranked recommendations.

    The scoring itself is done by matching_service; this class only
    talks to the database.
    """

    def get_student_profile(self, user_id: int) -> Optional[StudentProfile]:
        row = fetch_one("""
            SELECT user_id, skills, research_interest, intention, projects, projects_details
            FROM students WHERE user_id = :uid
        """, {"uid": user_id})
        return StudentProfile(**row) if row else None

    def get_preferences(self, user_id: int) -> Optional[ResearchPreference]:
        row = fetch_one("""
            SELECT field_of_study, experience_level, interest_areas, goals, current_year,
                   time_commitment, prior_experience, preferred_format
            FROM research_preferences WHERE user_id = :uid
        """, {"uid": user_id})
        return ResearchPreference(**row) if row else None

    def get_candidate_projects(self, user_id: int) -> List[ProjectListing]:
        """Active projects the student did not create."""
        rows = execute_raw_sql(f"""
            SELECT {PROJECT_COLUMNS}
            FROM projects p JOIN users u ON p.creator_id = u.user_id
            WHERE p.is_active = TRUE AND p.creator_id != :uid
            ORDER BY p.created_at DESC
        """, {"uid": user_id})
        return [ProjectListing(**r) for r in rows]

    def get_applications(self, user_id: int) -> List[ApplicationRecord]:
        rows = execute_raw_sql("""
            SELECT application_id, user_id, project_id, status, time_created
            FROM applications WHERE user_id = :uid
        """, {"uid": user_id})
        return [ApplicationRecord(**r) for r in rows]

    def get_applied_project_ids(self, user_id: int) -> Set[int]:
        """Any status counts, including rejected."""
        return {a.project_id for a in self.get_applications(user_id)}

    def get_recent_applied_projects(
        self,
        user_id: int,
        days: int = RECENT_APPLICATION_WINDOW_DAYS
    ) -> List[ProjectListing]:
        since = datetime.utcnow() - timedelta(days=days)
        rows = execute_raw_sql(f"""
            SELECT {PROJECT_COLUMNS}
            FROM applications a
            JOIN projects p ON a.project_id = p.project_id
            JOIN users u ON p.creator_id = u.user_id
            WHERE a.user_id = :uid AND a.time_created >= :since
        """, {"uid": user_id, "since": since})
        return [ProjectListing(**r) for r in rows]

    def get_recommendations(self, user_id: int) -> List[RecommendationResult]:
        """
        Build a fresh ranked list for a student.

        Raises:
            StudentProfileNotFound: if the student has no profile row
        """
        student = self.get_student_profile(user_id)
        if student is None:
            raise StudentProfileNotFound(user_id)

        results = recommend(
            student=student,
            projects=self.get_candidate_projects(user_id),
            applied_project_ids=self.get_applied_project_ids(user_id),
            recent_applied_projects=self.get_recent_applied_projects(user_id),
            preferences=self.get_preferences(user_id),
        )

        logger.info(f"Generated {len(results)} recommendations for user {user_id}")
        return results


def get_recommendation_service() -> RecommendationService:
    """Get recommendation service instance."""
    return RecommendationService()
