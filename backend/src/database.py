"""Database session factory and configuration.

Provides database connectivity and session management for the documents API.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from config import get_settings

DATABASE_URL = get_settings().DATABASE_URL

# Pool settings only apply to server databases (not SQLite)
_engine_kwargs = {
    "pool_pre_ping": True,  # Verify connections before using
    "echo": False,  # Set to True for SQL query logging
}

if DATABASE_URL.startswith("sqlite"):
    # Request handlers run on the threadpool
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10

engine = create_engine(DATABASE_URL, **_engine_kwargs)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/documents/{doc_id}")
        def get_document(doc_id: str, db: Session = Depends(get_db)):
            return db.get(Document, doc_id)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create all tables known to the ORM metadata (idempotent)."""
    # Imported for the side effect of registering every model on Base.metadata
    import models  # noqa: F401
    from models.base import Base

    Base.metadata.create_all(bind=engine)
