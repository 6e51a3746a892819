"""
Research Preference & Roadmap Routes

POST /roadmap/preferences - Save research preferences (upsert)
GET /roadmap/preferences - Get own preferences
POST /roadmap/generate - Generate (or reuse cached) roadmap
GET /roadmap/history - Own generated roadmaps, newest first
"""

from fastapi import APIRouter, HTTPException, Depends
from typing import List
from sqlalchemy import text

from researchhub.db.postgres import get_db_session
from researchhub.core.auth import get_current_user
from researchhub.core.logging import get_logger
from researchhub.models import ResearchPreference
from researchhub.services.recommendation_service import get_recommendation_service
from researchhub.services.roadmap_service import (
    get_roadmap_service, RoadmapGenerationError, RoadmapRateLimited
)
from researchhub.schemas.schemas import (
    ResearchPreferenceRequest, ResearchPreferenceResponse, RoadmapResponse, RoadmapHistoryItem
)

router = APIRouter(prefix="/roadmap", tags=["Roadmaps"])
logger = get_logger(__name__)

PREFERENCE_COLUMNS = """
    user_id, field_of_study, experience_level, current_year, goals, time_commitment,
    interest_areas, prior_experience, preferred_format, updated_at
"""


@router.post("/preferences", response_model=ResearchPreferenceResponse)
async def save_preferences(data: ResearchPreferenceRequest, user: dict = Depends(get_current_user)):
    """
    Save research preferences. Replaces any previous answers.

    Preferences feed both roadmap generation and the
    "Matches your research preferences" part of recommendations.
    """
    with get_db_session() as db:
        result = db.execute(
            text(f"""
                INSERT INTO research_preferences (user_id, field_of_study, experience_level, current_year,
                                                  goals, time_commitment, interest_areas, prior_experience,
                                                  preferred_format)
                VALUES (:user_id, :field_of_study, :experience_level, :current_year,
                        :goals, :time_commitment, :interest_areas, :prior_experience,
                        :preferred_format)
                ON CONFLICT (user_id) DO UPDATE SET
                    field_of_study = EXCLUDED.field_of_study,
                    experience_level = EXCLUDED.experience_level,
                    current_year = EXCLUDED.current_year,
                    goals = EXCLUDED.goals,
                    time_commitment = EXCLUDED.time_commitment,
                    interest_areas = EXCLUDED.interest_areas,
                    prior_experience = EXCLUDED.prior_experience,
                    preferred_format = EXCLUDED.preferred_format,
                    updated_at = CURRENT_TIMESTAMP
                RETURNING {PREFERENCE_COLUMNS}
            """),
            {"user_id": user["user_id"], **data.model_dump()}
        )
        row = result.mappings().fetchone()

    return ResearchPreferenceResponse(**row)


@router.get("/preferences", response_model=ResearchPreferenceResponse)
async def get_preferences(user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        result = db.execute(
            text(f"SELECT {PREFERENCE_COLUMNS} FROM research_preferences WHERE user_id = :id"),
            {"id": user["user_id"]}
        )
        row = result.mappings().fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="No research preferences saved")

    return ResearchPreferenceResponse(**row)


@router.post("/generate", response_model=RoadmapResponse)
def generate_roadmap(user: dict = Depends(get_current_user)):
    """
    Generate a research roadmap from saved preferences.

    - 429 if called again within the cooldown window
    - Identical preferences are served from the MongoDB cache
    - 502 if the AI backend fails

    Sync route: FastAPI runs it in the thread pool, so waiting on an
    in-flight duplicate request does not block the event loop.
    """
    preferences: ResearchPreference = get_recommendation_service().get_preferences(user["user_id"])
    if preferences is None:
        raise HTTPException(status_code=404, detail="Save your research preferences first")

    service = get_roadmap_service()
    try:
        result = service.generate(user["user_id"], preferences)
    except RoadmapRateLimited as e:
        raise HTTPException(
            status_code=429,
            detail=str(e),
            headers={"Retry-After": str(e.retry_after)}
        )
    except RoadmapGenerationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except TimeoutError:
        raise HTTPException(status_code=504, detail="Roadmap generation timed out, please retry")

    return RoadmapResponse(**result)


@router.get("/history", response_model=List[RoadmapHistoryItem])
def get_history(user: dict = Depends(get_current_user)):
    docs = get_roadmap_service().history_for_user(user["user_id"])
    return [
        RoadmapHistoryItem(
            roadmap_id=doc["_id"],
            title=doc.get("title", ""),
            roadmap_type=doc.get("roadmap_type", ""),
            preference_hash=doc.get("preference_hash", ""),
            generated_by=doc.get("generated_by", ""),
            roadmap=doc.get("roadmap_data"),
            created_at=doc["created_at"]
        ) for doc in docs
    ]
