"""
ResearchHub - Main Application

FastAPI backend with:
- PostgreSQL for users, profiles, projects, applications
- MongoDB for generated roadmaps
- OpenAI-compatible AI for roadmap drafting
- JWT authentication

Run: uvicorn researchhub.main:app --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from researchhub.api.routes import api_router
from researchhub.core.config import get_settings
from researchhub.core.logging import get_logger, request_id_ctx
from researchhub.db.mongodb import init_mongo_indexes

settings = get_settings()
logger = get_logger("researchhub.app")

app = FastAPI(
    title="ResearchHub",
    description="""
    Connects students with faculty research projects.

    ## Features
    - **Authentication**: JWT-based auth for students and faculty
    - **Profiles**: Skills, research interests, past projects
    - **Projects**: Faculty post projects, students apply
    - **Applications**: Review workflow with interviews
    - **Recommendations**: Ranked projects with match reasons
    - **Roadmaps**: AI-drafted research roadmaps, cached by preferences
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


# ============================================================
# REQUEST ID + ACCESS LOG
# ============================================================

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("X-Request-ID", str(uuid4()))
    request.state.request_id = rid
    token = request_id_ctx.set(rid)
    try:
        logger.info(f"Incoming {request.method} {request.url.path}")
        resp = await call_next(request)
        resp.headers["X-Request-ID"] = rid
        logger.info(f"Completed {request.method} {request.url.path} -> {resp.status_code}")
        return resp
    finally:
        request_id_ctx.reset(token)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", request_id_ctx.get())


# ============================================================
# EXCEPTION HANDLERS
# HTTPException keeps FastAPI's default {"detail": ...} body
# ============================================================

@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    rid = _request_id(request)
    logger.warning(f"ValidationError {request.url.path} | detail={exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request payload", "details": jsonable_encoder(exc.errors()), "request_id": rid},
    )


@app.exception_handler(Exception)
async def internal_handler(request: Request, exc: Exception):
    rid = _request_id(request)
    logger.exception(f"UnhandledError {request.url.path} | req={rid} | {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "request_id": rid},
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes on startup."""
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning(f"MongoDB index initialization failed: {e}")


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "ResearchHub"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from researchhub.db.postgres import test_postgres_connection
    from researchhub.db.mongodb import test_mongo_connection

    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
