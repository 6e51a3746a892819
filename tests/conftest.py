import pytest

from researchhub.models import StudentProfile, ProjectListing, ResearchPreference


@pytest.fixture
def make_student():
    def _make(user_id=100, **kwargs):
        return StudentProfile(user_id=user_id, **kwargs)
    return _make


@pytest.fixture
def make_project():
    def _make(project_id=1, creator_id=900, **kwargs):
        kwargs.setdefault("name", f"Project {project_id}")
        return ProjectListing(project_id=project_id, creator_id=creator_id, **kwargs)
    return _make


@pytest.fixture
def make_preferences():
    def _make(**kwargs):
        kwargs.setdefault("field_of_study", "Computer Science")
        kwargs.setdefault("experience_level", "intermediate")
        kwargs.setdefault("goals", "publish a paper")
        return ResearchPreference(**kwargs)
    return _make


@pytest.fixture
def ml_student(make_student):
    return make_student(
        skills=["machine learning", "python", "data analysis"],
        research_interest="deep learning for medical imaging",
    )


@pytest.fixture
def ml_project(make_project):
    """Scores well above the recommendation threshold for ml_student."""
    def _make(project_id=1, **kwargs):
        kwargs.setdefault("tags", ["machine learning", "python", "data analysis"])
        kwargs.setdefault("long_desc", "We apply deep learning to medical imaging datasets")
        return make_project(project_id=project_id, **kwargs)
    return _make
