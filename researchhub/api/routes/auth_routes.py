"""
Account Routes

POST /auth/signup - Create a student or faculty account (returns a token)
POST /auth/login - Exchange email + password for a token
POST /auth/refresh - Exchange a valid token for a fresh one
GET /auth/me - Current account
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from researchhub.db.postgres import get_db_session, fetch_one
from researchhub.core.auth import hash_password, verify_password, create_user_token, get_current_user
from researchhub.core.logging import get_logger
from researchhub.schemas.schemas import (
    SignupRequest, LoginRequest, TokenResponse, UserResponse
)

router = APIRouter(prefix="/auth", tags=["Accounts"])
logger = get_logger(__name__)


def _token_response(user_id: int, role: str) -> TokenResponse:
    return TokenResponse(access_token=create_user_token(user_id, role), user_id=user_id, role=role)


@router.post("/signup", response_model=TokenResponse, status_code=201)
async def signup(request: SignupRequest):
    """
    Create an account and log it in straight away.

    Students fill in their profile next; faculty can post projects.
    """
    if fetch_one("SELECT 1 FROM users WHERE email = :email", {"email": request.email}):
        raise HTTPException(status_code=409, detail="Email already registered")

    try:
        with get_db_session() as db:
            result = db.execute(
                text("""
                    INSERT INTO users (email, password_hash, full_name, role)
                    VALUES (:email, :password_hash, :full_name, :role)
                    RETURNING user_id
                """),
                {
                    "email": request.email,
                    "password_hash": hash_password(request.password),
                    "full_name": request.full_name,
                    "role": request.role.value
                }
            )
            user_id = result.scalar_one()
    except IntegrityError:
        # lost a race with a concurrent signup for the same email
        raise HTTPException(status_code=409, detail="Email already registered")

    logger.info(f"New {request.role.value} account {user_id}")
    return _token_response(user_id, request.role.value)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Include the returned token in requests: Authorization: Bearer <token>
    """
    user = fetch_one(
        "SELECT user_id, password_hash, role, is_active FROM users WHERE email = :email",
        {"email": request.email}
    )

    if not user or not verify_password(request.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user["is_active"]:
        raise HTTPException(status_code=403, detail="Account deactivated")

    return _token_response(user["user_id"], user["role"])


@router.post("/refresh", response_model=TokenResponse)
async def refresh(user: dict = Depends(get_current_user)):
    return _token_response(user["user_id"], user["role"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    row = fetch_one(
        "SELECT user_id, email, full_name, role, is_active, created_at FROM users WHERE user_id = :id",
        {"id": user["user_id"]}
    )
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse(**row)
