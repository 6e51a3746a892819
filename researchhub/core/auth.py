"""
Authentication - bcrypt passwords, JWT bearer tokens, role guards.

Tokens carry the user id in "sub" and the role in "role". The role in
the token is informational only: every request re-reads the user row,
so deactivating an account or changing a role takes effect at once.

Route usage:
    @router.get("/mine")
    async def mine(student: dict = Depends(get_current_student)):
        ...
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext

from researchhub.core.config import get_settings
from researchhub.core.logging import get_logger
from researchhub.db.postgres import fetch_one

settings = get_settings()
logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer()


# ============================================================
# PASSWORDS & TOKENS
# ============================================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign `data` plus an "exp" claim (default lifetime from settings)."""
    claims = dict(data)
    claims["exp"] = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_user_token(user_id: int, role: str) -> str:
    return create_access_token({"sub": str(user_id), "role": role})


def decode_token(token: str) -> Optional[dict]:
    """Claims of a valid token, None for a bad signature, malformed or expired token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        return None


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

_INVALID_TOKEN = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    Resolve the bearer token to {"user_id", "email", "full_name", "role"}.

    401 for a bad token or unknown user, 403 for a deactivated account.
    """
    payload = decode_token(credentials.credentials)
    subject = payload.get("sub") if payload else None
    if not subject or not str(subject).isdigit():
        raise _INVALID_TOKEN

    user = fetch_one(
        "SELECT user_id, email, full_name, role, is_active FROM users WHERE user_id = :id",
        {"id": int(subject)}
    )
    if not user:
        raise _INVALID_TOKEN

    if not user.pop("is_active"):
        raise HTTPException(status_code=403, detail="Account deactivated")

    return user


def require_role(role: str, detail: str) -> Callable:
    """Build a dependency that lets only users with `role` through."""
    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] != role:
            raise HTTPException(status_code=403, detail=detail)
        return user
    return dependency


get_current_student = require_role("student", "Students only")
get_current_faculty = require_role("faculty", "Faculty only")
