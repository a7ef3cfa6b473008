"""
Repository functions for persisted roadmaps (SQLAlchemy Core).

Design principles:
- Functions do NOT commit - caller commits for transaction control
- One row per user; regeneration replaces the row (upsert), never appends
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from db.tables import roadmaps
from models.roadmap import Roadmap, RoadmapMetadata, RoadmapStep
from utils.logger import get_logger

logger = get_logger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite drops tzinfo; values are always written in UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat().replace("+00:00", "Z")


def _row_to_roadmap(row: Any) -> Roadmap:
    return Roadmap(
        user_id=row.user_id,
        steps=[RoadmapStep.from_dict(s) for s in row.steps or []],
        metadata=RoadmapMetadata.from_dict(row.roadmap_metadata),
        created_at=_iso(row.created_at),
        updated_at=_iso(row.updated_at),
    )


def upsert_roadmap(
    db: Session, user_id: str, steps: list[RoadmapStep], metadata: RoadmapMetadata
) -> Roadmap:
    """
    Insert or replace the roadmap for ``user_id``.

    Uses the dialect's INSERT ... ON CONFLICT DO UPDATE so a regeneration is a
    single statement with no read-modify-write.

    Raises:
        ValueError: database dialect without ON CONFLICT support
    """
    dialect = db.get_bind().dialect.name
    insert_fn = _UPSERT_INSERTS.get(dialect)
    if insert_fn is None:
        raise ValueError(f"Roadmap upsert is not supported on dialect '{dialect}'")

    now = datetime.now(timezone.utc)
    steps_json = [s.to_dict() for s in steps]
    metadata_json = metadata.to_dict()

    stmt = insert_fn(roadmaps).values(
        user_id=user_id,
        steps=steps_json,
        roadmap_metadata=metadata_json,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "steps": stmt.excluded.steps,
            "roadmap_metadata": stmt.excluded.roadmap_metadata,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    db.execute(stmt)

    logger.info(
        "Upserted roadmap",
        extra={
            "extra_fields": {
                "user_id": user_id,
                "steps": len(steps_json),
                "generated_with": metadata.generated_with,
                "methodology": metadata.methodology,
            }
        },
    )

    stored = get_roadmap(db, user_id)
    if stored is None:  # pragma: no cover - the row was just written
        raise RuntimeError(f"Roadmap for {user_id} missing after upsert")
    return stored


def get_roadmap(db: Session, user_id: str) -> Roadmap | None:
    stmt = select(roadmaps).where(roadmaps.c.user_id == user_id)
    row = db.execute(stmt).first()
    if row is None:
        return None
    return _row_to_roadmap(row)
