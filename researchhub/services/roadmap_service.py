"""
Roadmap Service

PURPOSE:
Turn a student's research preferences into a learning roadmap.

HOW IT WORKS:
1. Per-user cooldown (UserRateLimiter) rejects rapid repeat requests
2. Preferences are hashed (SHA-256 of normalized key fields)
3. Cache hit in MongoDB -> reuse, bump usage_count
4. Cache miss -> AI call, collapsed across concurrent identical
   requests by RequestDeduplicator, then cached
5. Either way a per-user history entry is written

COST OPTIMIZATION:
- Identical preferences from different students share one AI call
- Concurrent clicks on "generate" never double-bill
"""

import hashlib
import json
from datetime import datetime
from typing import List, Optional

from pymongo.collection import Collection

from researchhub.core.config import get_settings
from researchhub.core.logging import get_logger
from researchhub.db.mongodb import get_collection, ROADMAP_CACHE, ROADMAP_HISTORY
from researchhub.models import ResearchPreference
from researchhub.services.ai_client import get_ai_client, RoadmapAIClient
from researchhub.utils.throttling import UserRateLimiter, RequestDeduplicator

settings = get_settings()
logger = get_logger(__name__)

ROADMAP_TYPE_RESEARCH = "research"
DEFAULT_ROADMAP_TITLE = "Research Roadmap"


class RoadmapGenerationError(Exception):
    """The AI backend failed or returned something that is not a roadmap."""


class RoadmapRateLimited(Exception):
    def __init__(self, retry_after: int):
        super().__init__(f"Please wait {retry_after} seconds before generating another roadmap")
        self.retry_after = retry_after


def generate_preference_hash(preferences: ResearchPreference) -> str:
    """Hash the fields that shape a roadmap. Case and outer whitespace are ignored."""
    data = "|".join(
        value.strip().lower()
        for value in (
            preferences.field_of_study,
            preferences.experience_level,
            preferences.goals,
            preferences.interest_areas,
        )
    )
    return hashlib.sha256(data.encode()).hexdigest()


def extract_title(roadmap: dict) -> str:
    title = roadmap.get("title") if isinstance(roadmap, dict) else None
    return title or DEFAULT_ROADMAP_TITLE


def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


# ============================================================
# ROADMAP CACHE COLLECTION
# One document per (roadmap type, preference hash)
# ============================================================

class RoadmapCacheService:
    """
    Shared cache of generated roadmaps keyed by preference hash.
    """

    def __init__(self, collection: Optional[Collection] = None):
        self.collection: Collection = collection if collection is not None else get_collection(ROADMAP_CACHE)

    def get(self, roadmap_type: str, preference_hash: str) -> Optional[dict]:
        doc = self.collection.find_one({
            "roadmap_type": roadmap_type,
            "preference_hash": preference_hash
        })
        return serialize_doc(doc)

    def increment_usage(self, roadmap_type: str, preference_hash: str) -> None:
        self.collection.update_one(
            {"roadmap_type": roadmap_type, "preference_hash": preference_hash},
            {"$inc": {"usage_count": 1}, "$set": {"updated_at": datetime.utcnow()}}
        )

    def store(self, roadmap_type: str, preference_hash: str, preferences: ResearchPreference, roadmap: dict) -> None:
        """Upsert: a concurrent writer for the same hash just overwrites."""
        now = datetime.utcnow()
        self.collection.update_one(
            {"roadmap_type": roadmap_type, "preference_hash": preference_hash},
            {
                "$set": {
                    "field_of_study": preferences.field_of_study,
                    "experience_level": preferences.experience_level,
                    "roadmap_data": roadmap,
                    "updated_at": now,
                },
                "$setOnInsert": {"usage_count": 1, "created_at": now},
            },
            upsert=True
        )


# ============================================================
# ROADMAP HISTORY COLLECTION
# One document per generate request
# ============================================================

class RoadmapHistoryService:
    """
    Per-user list of roadmaps the user has generated.
    """

    def __init__(self, collection: Optional[Collection] = None):
        self.collection: Collection = collection if collection is not None else get_collection(ROADMAP_HISTORY)

    def add(self, user_id: int, preference_hash: str, roadmap: dict, generated_by: str,
            roadmap_type: str = ROADMAP_TYPE_RESEARCH) -> str:
        doc = {
            "user_id": user_id,
            "roadmap_type": roadmap_type,
            "preference_hash": preference_hash,
            "title": extract_title(roadmap),
            "roadmap_data": roadmap,
            "generated_by": generated_by,
            "created_at": datetime.utcnow()
        }
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def list_for_user(self, user_id: int) -> List[dict]:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
        return [serialize_doc(doc) for doc in cursor]


# ============================================================
# ROADMAP SERVICE
# ============================================================

# Process-wide throttling state, shared by every request
_rate_limiter = UserRateLimiter(settings.roadmap_cooldown_seconds)
_deduplicator = RequestDeduplicator(settings.roadmap_dedup_timeout_seconds)


class RoadmapService:
    """
    Generates roadmaps with caching, throttling and deduplication.
    """

    def __init__(
        self,
        ai_client: Optional[RoadmapAIClient] = None,
        cache: Optional[RoadmapCacheService] = None,
        history: Optional[RoadmapHistoryService] = None,
        rate_limiter: Optional[UserRateLimiter] = None,
        deduplicator: Optional[RequestDeduplicator] = None,
    ):
        self.ai_client = ai_client or get_ai_client()
        self.cache = cache or RoadmapCacheService()
        self.history = history or RoadmapHistoryService()
        self.rate_limiter = rate_limiter or _rate_limiter
        self.deduplicator = deduplicator or _deduplicator

    def _generate_uncached(self, preferences: ResearchPreference) -> dict:
        try:
            roadmap = self.ai_client.generate_roadmap(preferences)
        except json.JSONDecodeError as e:
            raise RoadmapGenerationError("AI returned invalid JSON") from e
        except Exception as e:
            logger.error(f"Roadmap generation failed: {e}")
            raise RoadmapGenerationError(f"Failed to generate roadmap: {e}") from e

        if not isinstance(roadmap, dict):
            raise RoadmapGenerationError("AI returned JSON that is not a roadmap object")
        return roadmap

    def generate(self, user_id: int, preferences: ResearchPreference) -> dict:
        """
        Generate (or reuse) a roadmap for a user.

        Returns:
            {"message", "roadmap", "cached", "roadmap_id"}

        Raises:
            RoadmapRateLimited: user is inside the cooldown window
            RoadmapGenerationError: AI call failed or returned bad data
        """
        allowed, retry_after = self.rate_limiter.allow_request(user_id, ROADMAP_TYPE_RESEARCH)
        if not allowed:
            raise RoadmapRateLimited(retry_after)

        preference_hash = generate_preference_hash(preferences)

        cached = self.cache.get(ROADMAP_TYPE_RESEARCH, preference_hash)
        if cached:
            self.cache.increment_usage(ROADMAP_TYPE_RESEARCH, preference_hash)
            roadmap = cached["roadmap_data"]
            roadmap_id = self.history.add(user_id, preference_hash, roadmap, generated_by="ai-cached")
            logger.info(f"Roadmap cache hit for user {user_id} (hash {preference_hash[:12]})")
            return {
                "message": "Roadmap retrieved from cache",
                "roadmap": roadmap,
                "cached": True,
                "roadmap_id": roadmap_id,
            }

        def generate_and_cache() -> dict:
            roadmap = self._generate_uncached(preferences)
            self.cache.store(ROADMAP_TYPE_RESEARCH, preference_hash, preferences, roadmap)
            return roadmap

        roadmap = self.deduplicator.run(f"{ROADMAP_TYPE_RESEARCH}_{preference_hash}", generate_and_cache)
        roadmap_id = self.history.add(user_id, preference_hash, roadmap, generated_by="ai")
        logger.info(f"Roadmap generated for user {user_id} (hash {preference_hash[:12]})")

        return {
            "message": "Roadmap generated successfully",
            "roadmap": roadmap,
            "cached": False,
            "roadmap_id": roadmap_id,
        }

    def history_for_user(self, user_id: int) -> List[dict]:
        return self.history.list_for_user(user_id)


def get_roadmap_service() -> RoadmapService:
    """Get roadmap service instance."""
    return RoadmapService()
