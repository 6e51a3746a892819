"""
MongoDB access for generated roadmaps.

Collections:
- roadmap_cache: one document per (roadmap_type, preference_hash),
  shared by every user whose preferences hash the same
- roadmaps: one history document per generate request, per user

Roadmap JSON comes straight from the language model and its shape is
not fixed, which is why it lives here and not in PostgreSQL.
"""
from typing import Optional

from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database

from researchhub.core.config import get_settings
from researchhub.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

ROADMAP_CACHE = "roadmap_cache"
ROADMAP_HISTORY = "roadmaps"

# Fail fast in health checks instead of pymongo's 30s default
SERVER_SELECTION_TIMEOUT_MS = 3000

_client: Optional[MongoClient] = None


def get_mongo_client() -> MongoClient:
    """Process-wide client; pymongo pools connections internally."""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS)
    return _client


def get_mongo_db() -> Database:
    return get_mongo_client()[settings.mongodb_db]


def get_collection(name: str) -> Collection:
    return get_mongo_db()[name]


def test_mongo_connection() -> bool:
    try:
        get_mongo_client().admin.command("ping")
        return True
    except Exception as e:
        logger.error(f"MongoDB connection failed: {e}")
        return False


def init_mongo_indexes() -> None:
    """
    Called from the startup hook.

    The unique cache index makes concurrent upserts for one hash land
    on a single document.
    """
    db = get_mongo_db()

    db[ROADMAP_CACHE].create_index(
        [("roadmap_type", ASCENDING), ("preference_hash", ASCENDING)],
        unique=True
    )
    db[ROADMAP_HISTORY].create_index(
        [("user_id", ASCENDING), ("created_at", DESCENDING)]
    )

    logger.info("MongoDB indexes ensured")
