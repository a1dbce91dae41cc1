"""
Database engine and session management.

Provides the SQLAlchemy engine and session factory behind the key-value
storage. Storage calls are synchronous and run to completion without
yielding to the event loop.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from starcard.config import settings
from starcard.models.db import Base


def create_storage_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite shares one connection so every session sees the same
    database.
    """
    if url.startswith("sqlite") and ":memory:" in url:
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = create_storage_engine(settings.storage_url, echo=settings.debug)

# Session factory
session_factory = sessionmaker(engine, class_=Session, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
    """
    Initialize database tables.

    Creates all tables defined in the ORM models.
    Should be called once at application startup.
    """
    Base.metadata.create_all(bind or engine)


def drop_db(bind: Engine | None = None) -> None:
    """
    Drop all database tables.

    WARNING: Destroys all data. Use only for testing.
    """
    Base.metadata.drop_all(bind or engine)
