"""Database engine and session handling."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tasktracker.config import get_settings


def engine_options(database_url: str) -> dict[str, Any]:
    """Connection options for the configured backend.

    SQLite sessions are shared with the in-process scanner thread, so the
    same-thread check is turned off. Server databases get a small checked pool.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


settings = get_settings()
engine = create_engine(settings.database_url, **engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create every table; used instead of migrations when CREATE_TABLES is set."""
    # Models must be imported so their tables are on Base.metadata
    from tasktracker import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
