"""
Record snapshots for the matching engine.

These are read-only views of database rows. The route layer fetches
everything first, builds these records, and hands them to the scorer.
NULL columns arrive as None and are coerced to empty values so the
scorer never has to special-case them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)


class ProjectDetail(_Record):
    """A past project the student describes on their profile."""
    title: str = ""
    description: str = ""

    @field_validator("title", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


class StudentProfile(_Record):
    """
    Student side of a match.

    May be entirely empty for a brand-new account; the scorer degrades
    to a zero score instead of failing.
    """
    user_id: int
    skills: List[str] = []
    research_interest: str = ""
    intention: str = ""
    projects: List[str] = []
    projects_details: List[ProjectDetail] = []

    @field_validator("research_interest", "intention", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @field_validator("skills", "projects", "projects_details", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class ProjectListing(_Record):
    """A research project posted by a faculty member."""
    project_id: int
    name: str = ""
    creator_id: int
    creator_name: Optional[str] = None
    short_desc: str = ""
    long_desc: str = ""
    is_active: bool = True
    tags: List[str] = []
    field_of_study: str = ""
    specialization: str = ""
    duration: str = ""
    position_type: List[str] = []
    working_users: List[int] = []
    deadline: Optional[str] = None  # free-form, see parse_deadline()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator(
        "name", "short_desc", "long_desc", "field_of_study", "specialization", "duration",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""

    @field_validator("tags", "position_type", "working_users", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []


class ResearchPreference(_Record):
    """Optional questionnaire answers (zero or one per student)."""
    field_of_study: str = ""
    experience_level: str = ""
    interest_areas: str = ""
    goals: str = ""
    current_year: Optional[int] = None
    time_commitment: Optional[int] = None
    prior_experience: str = ""
    preferred_format: str = ""

    @field_validator(
        "field_of_study", "experience_level", "interest_areas", "goals",
        "prior_experience", "preferred_format",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v):
        return v or ""


class ApplicationRecord(_Record):
    """Student -> project application with its workflow status."""
    application_id: int
    user_id: int
    project_id: int
    status: str
    time_created: datetime


class RecommendationResult(_Record):
    """One ranked recommendation. Built per request, never stored."""
    project: ProjectListing
    match_score: float
    match_reasons: List[str]
