"""
Student Profile Routes

GET /profile/student - Get own profile
PUT /profile/student - Create or replace profile
PUT /profile/student/skills - Replace skills list
GET /profile/student/recommendations - Ranked project recommendations
"""

import json

from fastapi import APIRouter, HTTPException, Depends, Response
from sqlalchemy import text

from researchhub.db.postgres import get_db_session
from researchhub.core.auth import get_current_student
from researchhub.core.logging import get_logger
from researchhub.services.recommendation_service import (
    get_recommendation_service, StudentProfileNotFound
)
from researchhub.schemas.schemas import (
    StudentProfileUpdate, SkillsUpdate, StudentProfileResponse,
    RecommendedProject, RecommendationListResponse, ProjectResponse, MessageResponse
)

router = APIRouter(prefix="/profile/student", tags=["Student Profile"])
logger = get_logger(__name__)

PROFILE_FIELDS = [
    "institution", "degree", "work_experience", "skills", "research_interest",
    "intention", "projects", "projects_details", "activities", "resume_link",
    "publications_link"
]


def _profile_params(user_id: int, data: StudentProfileUpdate) -> dict:
    params = data.model_dump()
    params["projects_details"] = json.dumps(params["projects_details"])
    params["user_id"] = user_id
    return params


@router.get("", response_model=StudentProfileResponse)
async def get_profile(student: dict = Depends(get_current_student)):
    """Get current student's profile."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT s.student_id, s.user_id, u.full_name, u.email, s.institution, s.degree,
                       s.work_experience, s.skills, s.research_interest, s.intention, s.projects,
                       s.projects_details, s.activities, s.resume_link, s.publications_link, s.updated_at
                FROM students s JOIN users u ON s.user_id = u.user_id
                WHERE s.user_id = :id
            """),
            {"id": student["user_id"]}
        )
        row = result.mappings().fetchone()

    if not row:
        raise HTTPException(status_code=404, detail="Profile not found. Use PUT to create it.")

    data = dict(row)
    for field in ("skills", "projects", "projects_details", "activities"):
        data[field] = data[field] or []
    return StudentProfileResponse(**data)


@router.put("", response_model=MessageResponse)
async def upsert_profile(
    data: StudentProfileUpdate,
    response: Response,
    student: dict = Depends(get_current_student)
):
    """
    Create the profile on first call, replace it afterwards.

    Returns 201 when created, 200 when updated.
    """
    params = _profile_params(student["user_id"], data)

    with get_db_session() as db:
        result = db.execute(
            text("SELECT student_id FROM students WHERE user_id = :user_id"),
            {"user_id": student["user_id"]}
        )
        exists = result.fetchone() is not None

        if exists:
            assignments = ", ".join(
                f"{f} = CAST(:{f} AS JSONB)" if f == "projects_details" else f"{f} = :{f}"
                for f in PROFILE_FIELDS
            )
            db.execute(
                text(f"UPDATE students SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE user_id = :user_id"),
                params
            )
        else:
            values = ", ".join(
                f"CAST(:{f} AS JSONB)" if f == "projects_details" else f":{f}"
                for f in PROFILE_FIELDS
            )
            db.execute(
                text(f"INSERT INTO students (user_id, {', '.join(PROFILE_FIELDS)}) VALUES (:user_id, {values})"),
                params
            )

    if exists:
        return MessageResponse(message="Profile updated successfully")

    response.status_code = 201
    logger.info(f"Profile created for user {student['user_id']}")
    return MessageResponse(message="Profile created successfully")


@router.put("/skills", response_model=MessageResponse)
async def update_skills(data: SkillsUpdate, student: dict = Depends(get_current_student)):
    """Replace the whole skills list."""
    skills = [s.strip() for s in data.skills if s.strip()]

    with get_db_session() as db:
        result = db.execute(
            text("""
                UPDATE students SET skills = :skills, updated_at = CURRENT_TIMESTAMP
                WHERE user_id = :id RETURNING student_id
            """),
            {"skills": skills, "id": student["user_id"]}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Profile not found. Create it first.")

    return MessageResponse(message=f"Skills updated ({len(skills)})")


@router.get("/recommendations", response_model=RecommendationListResponse)
async def get_recommendations(student: dict = Depends(get_current_student)):
    """
    Ranked research projects for the current student.

    Computed fresh on every call from:
    - Skills, research interest, intention and past projects
    - Research preferences (if set)
    - Projects applied to in the last 90 days

    Projects already applied to, inactive, own or past deadline are left out.
    """
    service = get_recommendation_service()
    try:
        results = service.get_recommendations(student["user_id"])
    except StudentProfileNotFound:
        raise HTTPException(status_code=404, detail="Student profile not found")

    recs = [
        RecommendedProject(
            project=ProjectResponse.model_validate(r.project, from_attributes=True),
            match_score=r.match_score,
            match_reasons=list(r.match_reasons)
        ) for r in results
    ]

    return RecommendationListResponse(recommendations=recs, count=len(recs))
