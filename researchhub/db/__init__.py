"""
Database module - PostgreSQL (relational records) and MongoDB (roadmaps).
"""
from researchhub.db.postgres import get_db_session, execute_raw_sql, fetch_one
from researchhub.db.mongodb import get_mongo_db, get_collection

__all__ = [
    "get_db_session",
    "execute_raw_sql",
    "fetch_one",
    "get_mongo_db",
    "get_collection",
]
