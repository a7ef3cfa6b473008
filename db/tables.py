"""
Table definitions.

One roadmap row per user; ``steps`` and ``metadata`` are stored as JSON
documents. Tables are created at startup by ``init_db`` (no migrations).
"""

from sqlalchemy import JSON, Column, DateTime, Engine, Integer, MetaData, String, Table

from db.engine import get_engine
from utils.logger import get_logger

logger = get_logger(__name__)

metadata = MetaData()

roadmaps = Table(
    "roadmaps",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(128), nullable=False, unique=True, index=True),
    Column("steps", JSON, nullable=False),
    Column("roadmap_metadata", JSON, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def init_db(engine: Engine | None = None) -> None:
    """Create missing tables."""
    engine = engine or get_engine()
    metadata.create_all(engine)
    logger.info(
        "Database tables ready",
        extra={"extra_fields": {"tables": sorted(metadata.tables)}},
    )
