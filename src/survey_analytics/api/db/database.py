"""Database configuration and session management.

Provides SQLAlchemy engine, session factory, and dependency injection
for FastAPI routes.

Development: SQLite (file-based, no external service)
Production: any SQLAlchemy URL holding the survey tables (e.g. MySQL, PostgreSQL)
"""

from collections.abc import Generator
from pathlib import Path
from typing import Annotated

from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from survey_analytics.api.models.database import Base
from survey_analytics.core.config import DATABASE_URL, SQL_ECHO

# For SQLite: check_same_thread=False allows multi-threaded access (FastAPI threadpool)
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=SQL_ECHO,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def _ensure_sqlite_directory() -> None:
    url = make_url(DATABASE_URL)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_tables() -> None:
    """Create all database tables.

    Called on application startup to ensure schema exists.
    Existing tables are left untouched.
    """
    _ensure_sqlite_directory()
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database session injection.

    Yields:
        Session: SQLAlchemy session, closed after the request completes
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DBSession = Annotated[Session, Depends(get_db)]
