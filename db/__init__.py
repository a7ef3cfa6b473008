"""
Database package.
Provides SQLAlchemy engine, session management, table definitions and roadmap repository functions.
"""

from db.engine import dispose_engine, get_engine
from db.repository import get_roadmap, upsert_roadmap
from db.session import SessionLocal, get_db
from db.tables import init_db, metadata, roadmaps

__all__ = [
    "SessionLocal",
    "dispose_engine",
    "get_db",
    "get_engine",
    "get_roadmap",
    "init_db",
    "metadata",
    "roadmaps",
    "upsert_roadmap",
]
