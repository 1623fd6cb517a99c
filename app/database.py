"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the book store.

We're using SYNCHRONOUS SQLAlchemy: endpoints are plain `def` functions that
FastAPI runs on its threadpool, so each request gets its own worker thread and
the engine's connection pool is shared between them.

Session Management Pattern
==========================
The engine and session factory are built once per process (see
app.dependencies.build_container). The book store opens a short-lived
session per operation:
1. Operation starts → create a new session
2. Run the statement(s)
3. Commit on success, rollback on failure
4. Close the session
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

        class Book(Base):
            __tablename__ = "books"
            ...
    """
    pass


# =============================================================================
# Engine / Session Factory
# =============================================================================
def create_db_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Key parameters:
    - pool_size: Number of connections to keep open permanently
    - max_overflow: How many extra connections can be created during high load
    - pool_pre_ping: Test connection health before using
    - echo: Log all SQL statements in debug mode

    SQLite URLs (local runs) don't accept the pool sizing arguments.
    """
    if settings.database_url.startswith("sqlite"):
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Create the session factory bound to an engine.

    - autoflush=False: Don't auto-flush before queries (more predictable)
    - expire_on_commit=False: Rows stay readable after the session commits,
      since the store hands them back after closing the session
    """
    return sessionmaker(
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables(engine: Engine) -> None:
    """
    Create all database tables that don't exist yet.

    Called on startup when `db_create_tables` is enabled, and by the tests.
    """
    # Models must be imported so they register with Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Only use in development and tests.
    """
    Base.metadata.drop_all(bind=engine)
