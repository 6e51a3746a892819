"""
PostgreSQL access layer.

All queries are raw SQL through sqlalchemy.text(); there is no ORM
mapping. Two styles are used by the routes:

- get_db_session(): explicit transaction for multi-statement writes
  (e.g. accepting an application also updates the project)
- execute_raw_sql() / fetch_one(): single queries returning dicts
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from researchhub.core.config import Settings, get_settings
from researchhub.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)


def _build_engine(cfg: Settings) -> Engine:
    # No connection is opened until the first query
    return create_engine(
        cfg.postgres_url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        echo=cfg.debug,
    )


engine = _build_engine(settings)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session() -> Iterator[Session]:
    """
    One transaction: commit when the block exits cleanly, roll back
    and re-raise otherwise.

        with get_db_session() as db:
            db.execute(text("UPDATE projects SET ..."), params)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def execute_raw_sql(sql: str, params: Optional[dict] = None) -> List[dict]:
    """Run one statement in its own transaction, rows as dicts."""
    with get_db_session() as db:
        result = db.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings().fetchall()]


def fetch_one(sql: str, params: Optional[dict] = None) -> Optional[dict]:
    rows = execute_raw_sql(sql, params)
    return rows[0] if rows else None


def test_postgres_connection() -> bool:
    """True if a trivial query succeeds."""
    try:
        row = fetch_one("SELECT 1 AS ok")
        return row is not None and row["ok"] == 1
    except Exception as e:
        logger.error(f"PostgreSQL connection failed: {e}")
        return False
