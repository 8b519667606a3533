"""
Persistence layer: SQLAlchemy engine, session scope and models.
"""

from backend_ldgrowth.database.connection import (  # noqa: F401
    init_db,
    reset_engine_for_test,
    session_scope,
)

__all__ = ["init_db", "reset_engine_for_test", "session_scope"]
