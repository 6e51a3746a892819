"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    faculty = "faculty"


class ApplicationStatus(str, Enum):
    under_review = "under_review"
    waitlisted = "waitlisted"
    interview = "interview"
    approved = "approved"
    accepted = "accepted"
    rejected = "rejected"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str

class UserResponse(BaseModel):
    user_id: int
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: datetime


# ============================================================
# STUDENT PROFILE SCHEMAS
# ============================================================

class ProjectDetailSchema(BaseModel):
    title: str = ""
    description: str = ""

class StudentProfileUpdate(BaseModel):
    institution: Optional[str] = None
    degree: Optional[str] = None
    work_experience: Optional[str] = None
    skills: List[str] = []
    research_interest: Optional[str] = None
    intention: Optional[str] = None
    projects: List[str] = []
    projects_details: List[ProjectDetailSchema] = []
    activities: List[str] = []
    resume_link: Optional[str] = None
    publications_link: Optional[str] = None

class SkillsUpdate(BaseModel):
    skills: List[str]

class StudentProfileResponse(BaseModel):
    student_id: int
    user_id: int
    full_name: str
    email: str
    institution: Optional[str] = None
    degree: Optional[str] = None
    work_experience: Optional[str] = None
    skills: List[str] = []
    research_interest: Optional[str] = None
    intention: Optional[str] = None
    projects: List[str] = []
    projects_details: List[ProjectDetailSchema] = []
    activities: List[str] = []
    resume_link: Optional[str] = None
    publications_link: Optional[str] = None
    updated_at: datetime


# ============================================================
# PROJECT SCHEMAS
# ============================================================

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=200)
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None
    is_active: bool = True
    tags: List[str] = []
    field_of_study: Optional[str] = None
    specialization: Optional[str] = None
    duration: Optional[str] = None
    position_type: List[str] = []
    deadline: Optional[str] = Field(None, description="e.g. 2025-12-31, 31/12/2025 or 12-31-2025")

class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None
    is_active: Optional[bool] = None
    tags: Optional[List[str]] = None
    field_of_study: Optional[str] = None
    specialization: Optional[str] = None
    duration: Optional[str] = None
    position_type: Optional[List[str]] = None
    deadline: Optional[str] = None

class ProjectResponse(BaseModel):
    project_id: int
    creator_id: int
    creator_name: Optional[str] = None
    name: str
    short_desc: Optional[str] = None
    long_desc: Optional[str] = None
    is_active: bool
    tags: List[str] = []
    field_of_study: Optional[str] = None
    specialization: Optional[str] = None
    duration: Optional[str] = None
    position_type: List[str] = []
    working_users: List[int] = []
    deadline: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProjectListResponse(BaseModel):
    projects: List[ProjectResponse]
    count: int


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    availability: Optional[str] = None
    motivation: Optional[str] = None
    prior_projects: Optional[str] = None
    cv_link: Optional[str] = None
    publications_link: Optional[str] = None

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus

class InterviewSchedule(BaseModel):
    interview_date: str = Field(..., min_length=1)
    interview_time: str = Field(..., min_length=1)
    interview_details: Optional[str] = None

class ApplicationResponse(BaseModel):
    application_id: int
    user_id: int
    student_name: Optional[str] = None
    project_id: int
    project_name: Optional[str] = None
    status: str
    availability: Optional[str] = None
    motivation: Optional[str] = None
    prior_projects: Optional[str] = None
    cv_link: Optional[str] = None
    publications_link: Optional[str] = None
    interview_date: Optional[str] = None
    interview_time: Optional[str] = None
    interview_details: Optional[str] = None
    time_created: datetime

class ApplicationStatusResponse(BaseModel):
    has_applied: bool
    application: Optional[ApplicationResponse] = None

class AppliedProjectInfo(BaseModel):
    project_id: int
    status: str

class AppliedProjectsResponse(BaseModel):
    applied_projects: List[AppliedProjectInfo]
    count: int


# ============================================================
# RESEARCH PREFERENCE & ROADMAP SCHEMAS
# ============================================================

class ResearchPreferenceRequest(BaseModel):
    field_of_study: str = Field(..., min_length=1, max_length=100)
    experience_level: str = Field(..., min_length=1, max_length=50)
    goals: str = Field(..., min_length=1)
    current_year: Optional[int] = Field(None, ge=1, le=10)
    time_commitment: Optional[int] = Field(None, ge=0, le=80, description="Hours per week")
    interest_areas: Optional[str] = None
    prior_experience: Optional[str] = None
    preferred_format: Optional[str] = Field(None, description="visual, text or mixed")

class ResearchPreferenceResponse(ResearchPreferenceRequest):
    user_id: int
    updated_at: datetime

class RoadmapResponse(BaseModel):
    message: str
    roadmap: Any
    cached: bool
    roadmap_id: str

class RoadmapHistoryItem(BaseModel):
    roadmap_id: str
    title: str
    roadmap_type: str
    preference_hash: str
    generated_by: str
    roadmap: Any
    created_at: datetime


# ============================================================
# RECOMMENDATION SCHEMAS
# ============================================================

class RecommendedProject(BaseModel):
    project: ProjectResponse
    match_score: float
    match_reasons: List[str]

class RecommendationListResponse(BaseModel):
    recommendations: List[RecommendedProject]
    count: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
