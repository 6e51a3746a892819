"""
Models module - immutable record snapshots consumed by the matching core.

Difference from schemas:
- Models: what the scoring engine reads (built from database rows)
- Schemas: API contract (what client sends/receives)
"""

from researchhub.models.records import (
    StudentProfile,
    ProjectDetail,
    ProjectListing,
    ResearchPreference,
    ApplicationRecord,
    RecommendationResult,
)

__all__ = [
    "StudentProfile",
    "ProjectDetail",
    "ProjectListing",
    "ResearchPreference",
    "ApplicationRecord",
    "RecommendationResult",
]
