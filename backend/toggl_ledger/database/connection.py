"""
Database connection management for the Toggl ledger.

Provides database engines, session factories, and a transactional scope.
"""
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from .models import Base


# PUBLIC_INTERFACE
def make_engine(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given database URL.

    SQLite engines share a single connection so that in-memory databases
    survive across sessions.

    Args:
        url: SQLAlchemy database URL
        echo: Whether to log emitted SQL

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False}
        )
    return create_engine(url, echo=echo)


def make_session_factory(bind: Engine) -> sessionmaker:
    """Create a session factory for an engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite connections."""
    if "sqlite" in str(dbapi_connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_tables(bind: Engine):
    """Create all database tables."""
    Base.metadata.create_all(bind=bind)


# PUBLIC_INTERFACE
@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Commits when the block exits cleanly and rolls back when it raises.

    Args:
        factory: Session factory to open the session from

    Yields:
        Session: SQLAlchemy database session
    """
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
