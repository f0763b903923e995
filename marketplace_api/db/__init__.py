# marketplace_api/db/__init__.py
"""
Database package for SQLAlchemy setup, session management, and base models.
"""

from marketplace_api.db.base import Base, utcnow
from marketplace_api.db.session import (
    create_database_engine,
    create_sessionmaker,
    init_models,
    session_scope,
)

__all__ = [
    "Base",
    "utcnow",
    "create_database_engine",
    "create_sessionmaker",
    "init_models",
    "session_scope",
]
