"""Database session factory and configuration.

Provides database connectivity and session management for the backend.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from .config import get_settings

DATABASE_URL = get_settings().DATABASE_URL

_engine_kwargs = {
    "pool_pre_ping": True,  # Verify connections before using
    "echo": False,
}

# Pool settings only apply to PostgreSQL (not SQLite)
if DATABASE_URL.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    _engine_kwargs["pool_size"] = 5
    _engine_kwargs["max_overflow"] = 10

engine = create_engine(DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)



def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints.

    Usage:
        @router.get("/document-requests/{request_id}")
        def get_request(request_id: UUID, db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
