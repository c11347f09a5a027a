"""
Database connection and session management for the report/package store.

This module provides:
- Database engine creation and configuration
- Session factory for database operations
- Database initialization (create tables)
- WAL mode and foreign key enforcement for SQLite
"""

from typing import Optional
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..utils.config import get_config
from ..models.base import Base

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    Set SQLite pragmas on connection.

    Enables foreign key constraints and WAL mode. Skipped for other
    database drivers.
    """
    if dbapi_connection.__class__.__module__.split(".")[0] != "sqlite3":
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create and configure the database engine.

    Store calls are made from worker threads, so SQLite connections are
    opened with check_same_thread disabled.

    Args:
        database_url: Optional database URL. If None, uses config default.
        echo: If True, log all SQL statements (useful for debugging)

    Returns:
        Configured SQLAlchemy Engine
    """
    if database_url is None:
        database_url = get_config().database_url

    logger.info(f"Creating database engine: {database_url}")

    if ":memory:" in database_url or "mode=memory" in database_url:
        # In-memory databases must share one connection across threads
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    return engine


def init_database(engine: Optional[Engine] = None) -> None:
    """
    Initialize the database by creating all tables.

    Safe to call multiple times - existing tables won't be recreated.

    Args:
        engine: Optional engine to use. If None, uses global engine.
    """
    if engine is None:
        engine = get_engine()

    logger.info("Initializing database tables")

    # Import models so they're registered with Base
    from ..models import report, package  # noqa: F401

    Base.metadata.create_all(engine)

    logger.info("Database tables initialized successfully")


def get_engine(force_recreate: bool = False) -> Engine:
    """
    Get the global database engine.

    Args:
        force_recreate: If True, recreate the engine even if one exists

    Returns:
        Database engine
    """
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()

    return _engine


def get_session_factory() -> sessionmaker:
    """
    Get the global session factory.

    Returns:
        Session factory (sessionmaker)
    """
    global _SessionFactory

    if _SessionFactory is None:
        engine = get_engine()
        _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """
    Create a new database session.

    Returns:
        New Session instance
    """
    session_factory = get_session_factory()
    return session_factory()


@contextmanager
def session_scope():
    """
    Provide a transactional scope for database operations.

    This context manager handles session lifecycle automatically:
    - Creates a new session
    - Commits on success
    - Rolls back on exception
    - Always closes the session

    Yields:
        Database session

    Example:
        with session_scope() as session:
            report = Report(report_id="R-100", employee_id="E-7")
            session.add(report)
            # Commit happens automatically if no exception
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def verify_database() -> bool:
    """
    Verify that the database is accessible and has tables.

    Returns:
        True if database is valid, False otherwise
    """
    try:
        engine = get_engine()
        tables = inspect(engine).get_table_names()
        return "reports" in tables and "packages" in tables
    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        return False


def close_connections() -> None:
    """
    Close all database connections.

    Useful for cleanup or before application exit.
    """
    global _engine, _SessionFactory

    _SessionFactory = None

    if _engine is not None:
        _engine.dispose()
        _engine = None

    logger.info("Database connections closed")


def initialize_app_database() -> None:
    """
    Initialize the application database.

    Main entry point for setting up the database when the app starts.
    Creates the database file and tables if they don't exist.
    """
    config = get_config()

    if not config.database_exists():
        logger.info(f"Creating new database at: {config.database_path}")
    else:
        logger.info(f"Using existing database at: {config.database_path}")

    engine = get_engine()
    init_database(engine)

    if verify_database():
        logger.info("Database initialized and verified successfully")
    else:
        logger.warning("Database verification failed - tables may not exist")
