"""Database configuration and session management."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from traffic_flower.config import get_settings

settings = get_settings()


def engine_options(database_url: str) -> dict[str, Any]:
    """Driver options for ``create_engine``.

    PostgreSQL sessions run in UTC so hour and date extraction on
    ``timestamptz`` columns lines up with the UTC day windows.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    if database_url.startswith("postgresql"):
        return {"connect_args": {"options": "-c timezone=utc"}}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
    **engine_options(settings.database_url),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
