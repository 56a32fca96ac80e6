"""
Database configuration for SQLAlchemy + SQLite.

Used by the "sqlite" search-history backend. The engine is built from
settings at startup rather than at import time, so tests can point it at a
temporary file.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""
    pass


def make_engine(sqlite_path: str) -> Engine:
    # History I/O runs in worker threads (asyncio.to_thread), so the
    # connection must not be pinned to the creating thread.
    return create_engine(
        f"sqlite:///{sqlite_path}",
        connect_args={"check_same_thread": False},
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Create tables if needed and return a session factory bound to ``engine``."""
    # models registers its tables on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
