"""
Project & Application Routes

POST /projects - Create project (faculty)
GET /projects - List active projects
GET /projects/my - List own projects (faculty)
GET /projects/{id} - Get project
PUT /projects/{id} - Update project (owner)
DELETE /projects/{id} - Delete project (owner)

POST /projects/{id}/apply - Apply (student)
DELETE /projects/{id}/retract - Withdraw application (student)
GET /projects/{id}/application-status - Has the student applied? (student)
GET /projects/{id}/applications - Applications for a project (owner)
PUT /projects/{id}/applications/{app_id} - Change application status (owner)
POST /projects/{id}/applications/{app_id}/schedule-interview - Schedule interview (owner)

GET /applications/my - Own applications (student)
GET /applications/my/applied-projects - Applied project ids with status (student)
"""

from fastapi import APIRouter, HTTPException, Depends
from typing import List
from sqlalchemy import text

from researchhub.db.postgres import get_db_session, execute_raw_sql, fetch_one
from researchhub.core.auth import get_current_user, get_current_student, get_current_faculty
from researchhub.core.logging import get_logger
from researchhub.services.recommendation_service import PROJECT_COLUMNS
from researchhub.schemas.schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectListResponse,
    ApplicationCreate, ApplicationStatusUpdate, InterviewSchedule, ApplicationResponse,
    ApplicationStatusResponse, AppliedProjectInfo, AppliedProjectsResponse,
    ApplicationStatus, MessageResponse
)

router = APIRouter(prefix="/projects", tags=["Projects"])
applications_router = APIRouter(prefix="/applications", tags=["Applications"])
logger = get_logger(__name__)

APPLICATION_COLUMNS = """
    a.application_id, a.user_id, su.full_name AS student_name, a.project_id, p.name AS project_name,
    a.status, a.availability, a.motivation, a.prior_projects, a.cv_link, a.publications_link,
    a.interview_date, a.interview_time, a.interview_details, a.time_created
"""

APPLICATION_FROM = """
    FROM applications a
    JOIN users su ON a.user_id = su.user_id
    JOIN projects p ON a.project_id = p.project_id
"""


def _project_response(row: dict) -> ProjectResponse:
    data = dict(row)
    for field in ("tags", "position_type", "working_users"):
        data[field] = data[field] or []
    return ProjectResponse(**data)


def _fetch_project(project_id: int) -> dict:
    row = fetch_one(f"""
        SELECT {PROJECT_COLUMNS}
        FROM projects p JOIN users u ON p.creator_id = u.user_id
        WHERE p.project_id = :id
    """, {"id": project_id})
    if not row:
        raise HTTPException(status_code=404, detail="Project not found")
    return row


def _require_owner(db, project_id: int, user_id: int) -> None:
    """404 if the project is missing, 403 if someone else created it."""
    result = db.execute(
        text("SELECT creator_id FROM projects WHERE project_id = :id"),
        {"id": project_id}
    )
    row = result.fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Project not found")
    if row[0] != user_id:
        raise HTTPException(status_code=403, detail="Not your project")


def _fetch_application(db, project_id: int, app_id: int) -> dict:
    result = db.execute(
        text(f"SELECT {APPLICATION_COLUMNS} {APPLICATION_FROM} WHERE a.application_id = :app_id AND a.project_id = :pid"),
        {"app_id": app_id, "pid": project_id}
    )
    row = result.mappings().fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Application not found")
    return dict(row)


# ============================================================
# PROJECTS
# ============================================================

@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(data: ProjectCreate, faculty: dict = Depends(get_current_faculty)):
    """Create a research project. Faculty only."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO projects (creator_id, name, short_desc, long_desc, is_active, tags,
                                      field_of_study, specialization, duration, position_type, deadline)
                VALUES (:creator_id, :name, :short_desc, :long_desc, :is_active, :tags,
                        :field_of_study, :specialization, :duration, :position_type, :deadline)
                RETURNING project_id
            """),
            {"creator_id": faculty["user_id"], **data.model_dump()}
        )
        project_id = result.fetchone()[0]

    logger.info(f"Project {project_id} created by user {faculty['user_id']}")
    return _project_response(_fetch_project(project_id))


@router.get("", response_model=ProjectListResponse)
async def list_projects(user: dict = Depends(get_current_user)):
    """All active projects, newest first."""
    rows = execute_raw_sql(f"""
        SELECT {PROJECT_COLUMNS}
        FROM projects p JOIN users u ON p.creator_id = u.user_id
        WHERE p.is_active = TRUE
        ORDER BY p.created_at DESC
    """)
    projects = [_project_response(r) for r in rows]
    return ProjectListResponse(projects=projects, count=len(projects))


@router.get("/my", response_model=ProjectListResponse)
async def list_my_projects(faculty: dict = Depends(get_current_faculty)):
    """Projects created by the current faculty member, active or not."""
    rows = execute_raw_sql(f"""
        SELECT {PROJECT_COLUMNS}
        FROM projects p JOIN users u ON p.creator_id = u.user_id
        WHERE p.creator_id = :uid
        ORDER BY p.created_at DESC
    """, {"uid": faculty["user_id"]})
    projects = [_project_response(r) for r in rows]
    return ProjectListResponse(projects=projects, count=len(projects))


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, user: dict = Depends(get_current_user)):
    return _project_response(_fetch_project(project_id))


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(project_id: int, data: ProjectUpdate, faculty: dict = Depends(get_current_faculty)):
    """Update project. Only provided, non-null fields are updated."""
    params = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if not params:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates = [f"{field} = :{field}" for field in params]
    params["id"] = project_id

    with get_db_session() as db:
        _require_owner(db, project_id, faculty["user_id"])
        db.execute(
            text(f"UPDATE projects SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE project_id = :id"),
            params
        )

    return _project_response(_fetch_project(project_id))


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(project_id: int, faculty: dict = Depends(get_current_faculty)):
    """Delete project. Its applications go with it (ON DELETE CASCADE)."""
    with get_db_session() as db:
        _require_owner(db, project_id, faculty["user_id"])
        db.execute(text("DELETE FROM projects WHERE project_id = :id"), {"id": project_id})

    logger.info(f"Project {project_id} deleted by user {faculty['user_id']}")
    return MessageResponse(message="Project deleted")


# ============================================================
# APPLICATIONS (student side)
# ============================================================

@router.post("/{project_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply_to_project(project_id: int, data: ApplicationCreate, student: dict = Depends(get_current_student)):
    """
    Apply to a project.

    Checks:
    - Project exists and is active
    - Not already applied (one application per student per project)
    """
    with get_db_session() as db:
        result = db.execute(
            text("SELECT is_active FROM projects WHERE project_id = :id"),
            {"id": project_id}
        )
        project = result.fetchone()
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
        if not project[0]:
            raise HTTPException(status_code=400, detail="Project is not accepting applications")

        result = db.execute(
            text("SELECT application_id FROM applications WHERE user_id = :uid AND project_id = :pid"),
            {"uid": student["user_id"], "pid": project_id}
        )
        if result.fetchone():
            raise HTTPException(status_code=409, detail="Already applied to this project")

        result = db.execute(
            text("""
                INSERT INTO applications (user_id, project_id, status, availability, motivation,
                                          prior_projects, cv_link, publications_link)
                VALUES (:uid, :pid, :status, :availability, :motivation,
                        :prior_projects, :cv_link, :publications_link)
                RETURNING application_id
            """),
            {
                "uid": student["user_id"],
                "pid": project_id,
                "status": ApplicationStatus.under_review.value,
                **data.model_dump()
            }
        )
        app_id = result.fetchone()[0]
        application = _fetch_application(db, project_id, app_id)

    logger.info(f"User {student['user_id']} applied to project {project_id}")
    return ApplicationResponse(**application)


@router.delete("/{project_id}/retract", response_model=MessageResponse)
async def retract_application(project_id: int, student: dict = Depends(get_current_student)):
    with get_db_session() as db:
        result = db.execute(
            text("""
                DELETE FROM applications WHERE user_id = :uid AND project_id = :pid
                RETURNING application_id
            """),
            {"uid": student["user_id"], "pid": project_id}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="No application to retract")

    return MessageResponse(message="Application retracted")


@router.get("/{project_id}/application-status", response_model=ApplicationStatusResponse)
async def get_application_status(project_id: int, student: dict = Depends(get_current_student)):
    rows = execute_raw_sql(
        f"SELECT {APPLICATION_COLUMNS} {APPLICATION_FROM} WHERE a.user_id = :uid AND a.project_id = :pid",
        {"uid": student["user_id"], "pid": project_id}
    )
    if not rows:
        return ApplicationStatusResponse(has_applied=False)
    return ApplicationStatusResponse(has_applied=True, application=ApplicationResponse(**rows[0]))


# ============================================================
# APPLICATIONS (project owner side)
# ============================================================

@router.get("/{project_id}/applications", response_model=List[ApplicationResponse])
async def list_project_applications(project_id: int, faculty: dict = Depends(get_current_faculty)):
    """All applications for one of the current faculty member's projects."""
    with get_db_session() as db:
        _require_owner(db, project_id, faculty["user_id"])
        result = db.execute(
            text(f"SELECT {APPLICATION_COLUMNS} {APPLICATION_FROM} WHERE a.project_id = :pid ORDER BY a.time_created DESC"),
            {"pid": project_id}
        )
        rows = result.mappings().fetchall()

    return [ApplicationResponse(**r) for r in rows]


@router.put("/{project_id}/applications/{app_id}", response_model=ApplicationResponse)
async def update_application_status(
    project_id: int,
    app_id: int,
    data: ApplicationStatusUpdate,
    faculty: dict = Depends(get_current_faculty)
):
    """
    Change an application's status.

    Accepting a student also adds them to the project's working users,
    in the same transaction.
    """
    with get_db_session() as db:
        _require_owner(db, project_id, faculty["user_id"])
        application = _fetch_application(db, project_id, app_id)

        db.execute(
            text("""
                UPDATE applications SET status = :status, updated_at = CURRENT_TIMESTAMP
                WHERE application_id = :app_id
            """),
            {"status": data.status.value, "app_id": app_id}
        )

        if data.status == ApplicationStatus.accepted:
            db.execute(
                text("""
                    UPDATE projects
                    SET working_users = array_append(COALESCE(working_users, CAST('{}' AS INTEGER[])), :uid),
                        updated_at = CURRENT_TIMESTAMP
                    WHERE project_id = :pid
                      AND NOT (:uid = ANY(COALESCE(working_users, CAST('{}' AS INTEGER[]))))
                """),
                {"uid": application["user_id"], "pid": project_id}
            )

        application = _fetch_application(db, project_id, app_id)

    logger.info(f"Application {app_id} on project {project_id} -> {data.status.value}")
    return ApplicationResponse(**application)


@router.post("/{project_id}/applications/{app_id}/schedule-interview", response_model=ApplicationResponse)
async def schedule_interview(
    project_id: int,
    app_id: int,
    data: InterviewSchedule,
    faculty: dict = Depends(get_current_faculty)
):
    with get_db_session() as db:
        _require_owner(db, project_id, faculty["user_id"])
        _fetch_application(db, project_id, app_id)

        db.execute(
            text("""
                UPDATE applications
                SET status = :status, interview_date = :interview_date, interview_time = :interview_time,
                    interview_details = :interview_details, updated_at = CURRENT_TIMESTAMP
                WHERE application_id = :app_id
            """),
            {"status": ApplicationStatus.interview.value, "app_id": app_id, **data.model_dump()}
        )
        application = _fetch_application(db, project_id, app_id)

    return ApplicationResponse(**application)


# ============================================================
# MY APPLICATIONS
# ============================================================

@applications_router.get("/my", response_model=List[ApplicationResponse])
async def get_my_applications(student: dict = Depends(get_current_student)):
    """Current student's applications, newest first."""
    rows = execute_raw_sql(
        f"SELECT {APPLICATION_COLUMNS} {APPLICATION_FROM} WHERE a.user_id = :uid ORDER BY a.time_created DESC",
        {"uid": student["user_id"]}
    )
    return [ApplicationResponse(**r) for r in rows]


@applications_router.get("/my/applied-projects", response_model=AppliedProjectsResponse)
async def get_my_applied_projects(student: dict = Depends(get_current_student)):
    """Lightweight list for marking "applied" badges in project listings."""
    rows = execute_raw_sql(
        "SELECT project_id, status FROM applications WHERE user_id = :uid",
        {"uid": student["user_id"]}
    )
    applied = [AppliedProjectInfo(**r) for r in rows]
    return AppliedProjectsResponse(applied_projects=applied, count=len(applied))
