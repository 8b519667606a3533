"""
Engine and session management.

Uses DATABASE_URL for PostgreSQL when set; otherwise SQLite at
LDGROWTH_DB_PATH (default ldgrowth.db). One cached engine per process;
tests call reset_engine_for_test() after pointing the env at a temp file.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from backend_ldgrowth.config.settings import get_database_url
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)

_engine = None
_SessionLocal: sessionmaker | None = None


def get_engine():
    """Create or return the cached engine."""
    global _engine
    if _engine is None:
        url = get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("database_engine_created", url=url.split("?")[0].split("//")[-1])
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


@contextmanager
def session_scope() -> Iterator[Session]:
    """Context manager for a single session. Commits on success, rolls back on error."""
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create all tables if missing."""
    from backend_ldgrowth.database.models import Base

    Base.metadata.create_all(bind=get_engine())
    logger.info("database_initialized", tables=len(Base.metadata.tables))


def reset_engine_for_test() -> None:
    """Dispose the cached engine so the next call picks up a new database URL."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


def load_json(raw: str | None, default: Any) -> Any:
    """Decode a JSON text column; empty or corrupt values yield default."""
    if not raw:
        return default
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("json_column_decode_failed", raw=raw[:80])
        return default


def dump_json(value: Any) -> str:
    return json.dumps(value, default=str)
