"""Database configuration and session management.

This module provides the application database engine and session factory.
Ratings and responses live in the same application database.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from entity_feedback.config import get_app_database_url


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


# ============================================================================
# Application Database Engine
# ============================================================================


def create_app_engine(database_url: str) -> Engine:
    """Create an engine for the given URL.

    SQLite (used for local runs and tests) needs ``check_same_thread=False``
    because FastAPI hands sessions across threadpool workers.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        database_url,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
    )


DATABASE_URL = get_app_database_url()

engine = create_app_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the feedback tables if they do not exist."""
    # Import models so they register on Base.metadata
    from entity_feedback.lib.feedback import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
