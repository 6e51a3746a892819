from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from researchhub.main import app
from researchhub.core.auth import get_current_user, get_current_student
from researchhub.db import postgres, mongodb
from researchhub.api.routes import profile_routes, roadmap_routes
from researchhub.models import ProjectListing, RecommendationResult, ResearchPreference
from researchhub.services.recommendation_service import StudentProfileNotFound
from researchhub.services.roadmap_service import RoadmapGenerationError, RoadmapRateLimited

client = TestClient(app)

STUDENT = {"user_id": 100, "email": "ada@uni.edu", "full_name": "Ada", "role": "student"}
FACULTY = {"user_id": 900, "email": "prof@uni.edu", "full_name": "Prof", "role": "faculty"}


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def as_student():
    app.dependency_overrides[get_current_user] = lambda: STUDENT
    app.dependency_overrides[get_current_student] = lambda: STUDENT


@pytest.fixture
def as_faculty():
    app.dependency_overrides[get_current_user] = lambda: FACULTY


class FakeRecommendationService:
    def __init__(self, results=None, preferences=None, missing_profile=False):
        self.results = results or []
        self.preferences = preferences
        self.missing_profile = missing_profile

    def get_recommendations(self, user_id):
        if self.missing_profile:
            raise StudentProfileNotFound(user_id)
        return self.results

    def get_preferences(self, user_id):
        return self.preferences


class FakeRoadmapService:
    def __init__(self, error=None):
        self.error = error

    def generate(self, user_id, preferences):
        if self.error:
            raise self.error
        return {"message": "Roadmap generated successfully", "roadmap": {"title": "Into NLP"},
                "cached": False, "roadmap_id": "abc123"}

    def history_for_user(self, user_id):
        return [{
            "_id": "abc123", "title": "Into NLP", "roadmap_type": "research",
            "preference_hash": "f" * 64, "generated_by": "ai",
            "roadmap_data": {"title": "Into NLP"}, "created_at": datetime(2025, 1, 2),
        }]


def test_health(monkeypatch):
    monkeypatch.setattr(postgres, "test_postgres_connection", lambda: True)
    monkeypatch.setattr(mongodb, "test_mongo_connection", lambda: False)

    r = client.get("/health")

    assert r.status_code == 200
    assert r.json() == {"status": "healthy", "postgres": "connected", "mongodb": "disconnected"}


def test_request_id_is_echoed():
    r = client.get("/", headers={"X-Request-ID": "req-42"})
    assert r.headers["X-Request-ID"] == "req-42"


def test_request_id_is_generated():
    r = client.get("/")
    assert r.headers["X-Request-ID"]


def test_validation_error_shape():
    r = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "x"}, headers={"X-Request-ID": "req-7"})

    assert r.status_code == 422
    body = r.json()
    assert body["error"] == "Invalid request payload"
    assert body["details"]
    assert body["request_id"] == "req-7"


def test_recommendations_require_auth():
    r = client.get("/api/profile/student/recommendations")
    assert r.status_code in (401, 403)


def test_recommendations_reject_faculty(as_faculty):
    r = client.get("/api/profile/student/recommendations")
    assert r.status_code == 403


def test_recommendations(monkeypatch, as_student):
    project = ProjectListing(
        project_id=5, creator_id=900, creator_name="Prof", name="Medical Imaging Lab",
        tags=["machine learning"], deadline="2030-01-01",
    )
    fake = FakeRecommendationService(results=[
        RecommendationResult(project=project, match_score=51.3, match_reasons=["Multiple matching skills"])
    ])
    monkeypatch.setattr(profile_routes, "get_recommendation_service", lambda: fake)

    r = client.get("/api/profile/student/recommendations")

    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    rec = body["recommendations"][0]
    assert rec["match_score"] == 51.3
    assert rec["match_reasons"] == ["Multiple matching skills"]
    assert rec["project"]["name"] == "Medical Imaging Lab"
    assert rec["project"]["creator_name"] == "Prof"


def test_recommendations_without_profile(monkeypatch, as_student):
    monkeypatch.setattr(
        profile_routes, "get_recommendation_service",
        lambda: FakeRecommendationService(missing_profile=True)
    )
    r = client.get("/api/profile/student/recommendations")
    assert r.status_code == 404


def _patch_roadmap(monkeypatch, preferences=None, error=None):
    prefs = preferences if preferences is not None else ResearchPreference(
        field_of_study="Computer Science", experience_level="beginner", goals="publish"
    )
    monkeypatch.setattr(
        roadmap_routes, "get_recommendation_service",
        lambda: FakeRecommendationService(preferences=prefs)
    )
    monkeypatch.setattr(roadmap_routes, "get_roadmap_service", lambda: FakeRoadmapService(error))


def test_generate_roadmap(monkeypatch, as_student):
    _patch_roadmap(monkeypatch)

    r = client.post("/api/roadmap/generate")

    assert r.status_code == 200
    assert r.json() == {"message": "Roadmap generated successfully", "roadmap": {"title": "Into NLP"},
                        "cached": False, "roadmap_id": "abc123"}


def test_generate_roadmap_rate_limited(monkeypatch, as_student):
    _patch_roadmap(monkeypatch, error=RoadmapRateLimited(7))

    r = client.post("/api/roadmap/generate")

    assert r.status_code == 429
    assert r.headers["Retry-After"] == "7"
    assert "7 seconds" in r.json()["detail"]


def test_generate_roadmap_ai_failure(monkeypatch, as_student):
    _patch_roadmap(monkeypatch, error=RoadmapGenerationError("AI returned invalid JSON"))
    r = client.post("/api/roadmap/generate")
    assert r.status_code == 502


def test_generate_roadmap_without_preferences(monkeypatch, as_student):
    monkeypatch.setattr(roadmap_routes, "get_recommendation_service", lambda: FakeRecommendationService())
    r = client.post("/api/roadmap/generate")
    assert r.status_code == 404


def test_roadmap_history(monkeypatch, as_student):
    _patch_roadmap(monkeypatch)

    r = client.get("/api/roadmap/history")

    assert r.status_code == 200
    [item] = r.json()
    assert item["roadmap_id"] == "abc123"
    assert item["roadmap"] == {"title": "Into NLP"}
