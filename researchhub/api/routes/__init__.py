"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from researchhub.api.routes.auth_routes import router as auth_router
from researchhub.api.routes.profile_routes import router as profile_router
from researchhub.api.routes.project_routes import router as project_router
from researchhub.api.routes.project_routes import applications_router
from researchhub.api.routes.roadmap_routes import router as roadmap_router

api_router = APIRouter()

api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(project_router)
api_router.include_router(applications_router)
api_router.include_router(roadmap_router)
