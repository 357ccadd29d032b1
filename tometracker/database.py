"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the TomeTracker API.

We use SYNCHRONOUS SQLAlchemy. FastAPI runs sync endpoints in a
threadpool, so concurrent requests still run in parallel, each with its
own session and its own transaction.

Session Management Pattern
==========================
"Session per request":
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure (the ledger does this itself)
4. Close session when request ends

Statement Timeouts
==================
Every connection is opened with a bounded wait (settings.db_timeout_seconds):
- PostgreSQL: statement_timeout and lock_timeout
- SQLite: the busy timeout used while another writer holds the lock

SQLite also ships with foreign key enforcement switched off; every
SQLite connection turns it on when it is opened.

A timed-out statement raises OperationalError, which the inventory ledger
rolls back and reports as a retryable StorageUnavailableError.
"""

from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from tometracker.config import get_settings

settings = get_settings()


def timeout_connect_args(database_url: str, timeout_seconds: float) -> dict[str, Any]:
    """
    Build DBAPI connect arguments that bound every wait on the database.

    Args:
        database_url: SQLAlchemy URL the engine will connect to
        timeout_seconds: Maximum time a statement or lock wait may take

    Returns:
        Dialect-specific keyword arguments for create_engine(connect_args=...)
    """
    backend = make_url(database_url).get_backend_name()
    milliseconds = int(timeout_seconds * 1000)

    if backend == "postgresql":
        return {
            "connect_timeout": max(1, int(timeout_seconds)),
            "options": (
                f"-c statement_timeout={milliseconds} "
                f"-c lock_timeout={milliseconds}"
            ),
        }
    if backend == "sqlite":
        # check_same_thread=False: sessions hop between threadpool workers
        return {"timeout": timeout_seconds, "check_same_thread": False}
    return {}


def enforce_sqlite_foreign_keys(engine: Engine) -> Engine:
    """Run PRAGMA foreign_keys=ON on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def build_engine(database_url: str, **kwargs: Any) -> Engine:
    """
    Create an engine with the configured timeouts applied.

    Pool sizing only applies to server databases; SQLite picks its own pool.
    """
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": settings.debug,
        "connect_args": timeout_connect_args(
            database_url, settings.db_timeout_seconds
        ),
    }
    is_sqlite = make_url(database_url).get_backend_name() == "sqlite"
    if not is_sqlite:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    options.update(kwargs)

    engine = create_engine(database_url, **options)
    if is_sqlite:
        enforce_sqlite_foreign_keys(engine)
    return engine


# =============================================================================
# Database Engine
# =============================================================================
engine = build_engine(settings.database_url)


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: the ledger decides when a borrow/return commits
# - autoflush=False: nothing reaches the database before we ask for it
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic reads Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Yields a fresh session and always closes it when the request ends,
    even if the handler raised.

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """
    Session factory dependency for work that outlives the request.

    Background jobs (library stocking) must not reuse the request session,
    which is closed as soon as the response is sent.
    """
    return SessionLocal

