"""
SQLAlchemy session management.
Provides get_db() dependency for FastAPI and a lazily bound session factory.

The session factory must NOT call get_engine() at import time.
"""

from collections.abc import Generator

from sqlalchemy.orm import Session, sessionmaker

from db.engine import get_engine

# Session factory (unbound at import time)
_SessionFactory = sessionmaker(autocommit=False, autoflush=False)


def SessionLocal() -> Session:
    """
    Lazy session factory that binds engine on first use.

    Usage:
        session = SessionLocal()
        try:
            ...
            session.commit()
        finally:
            session.close()
    """
    _SessionFactory.configure(bind=get_engine())
    return _SessionFactory()


def get_db() -> Generator[Session, None, None]:
    """
    Get a database session (FastAPI dependency).

    Usage:
        @router.get("/v1/roadmap/{user_id}")
        def read(user_id: str, db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
