"""
Database connection and session management for the Bakery Cost Engine.

This module provides:
- Database engine creation and configuration
- Session factory for database operations
- Database initialization (create tables)
- SQLite pragmas (foreign keys, WAL)
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..utils.config import get_config

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """
    Set SQLite pragmas on every new connection.

    Foreign keys must be on for the RESTRICT rules that protect recipes
    and stock items still used as components.
    """
    if type(dbapi_connection).__module__.split(".")[0] not in ("sqlite3", "pysqlite2"):
        return

    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_database_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create and configure the database engine.

    Args:
        database_url: Optional database URL. If None, uses config default.
        echo: If True, log all SQL statements

    Returns:
        Configured SQLAlchemy Engine
    """
    config = get_config()
    if database_url is None:
        config.ensure_directories()
        database_url = config.database_url

    logger.info(f"Creating database engine: {database_url}")

    if ":memory:" in database_url or "mode=memory" in database_url:
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": config.db_timeout},
        )

    return engine


def init_database(engine: Optional[Engine] = None) -> None:
    """
    Create all tables that don't exist yet. Safe to call repeatedly.

    Args:
        engine: Optional engine to use. If None, uses global engine.
    """
    if engine is None:
        engine = get_engine()

    logger.info("Initializing database tables")

    # Register every model with Base.metadata
    from .. import models  # noqa: F401

    Base.metadata.create_all(engine)

    logger.info("Database tables initialized successfully")


def get_engine(force_recreate: bool = False) -> Engine:
    """
    Get the global database engine, creating it on first use.

    Args:
        force_recreate: If True, recreate the engine even if one exists
    """
    global _engine

    if _engine is None or force_recreate:
        _engine = create_database_engine()

    return _engine


def get_session_factory() -> sessionmaker:
    """Get the global session factory."""
    global _SessionFactory

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine(), expire_on_commit=False)

    return _SessionFactory


def get_session() -> Session:
    """Create a new database session. Callers own commit/rollback/close."""
    session_factory = get_session_factory()
    return session_factory()


@contextmanager
def session_scope():
    """
    Provide a transactional scope for database operations.

    - Creates a new session
    - Commits on success
    - Rolls back on exception
    - Always closes the session

    Yields:
        Database session

    Example:
        with session_scope() as session:
            session.add(StockItem(name="Flour", unit="kg", cost=Decimal("4.50")))
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
    Verify that the database is reachable and has the expected tables.

    Returns:
        True if database is valid, False otherwise
    """
    try:
        inspector = inspect(get_engine())
        tables = inspector.get_table_names()
        return all(table in tables for table in ("stock_items", "recipes", "recipe_components"))
    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        return False


def reset_database(confirm: bool = False) -> None:
    """
    Drop all tables and recreate them.

    WARNING: This will delete all data!

    Args:
        confirm: Must be True to actually reset. Safety check.

    Raises:
        ValueError: If confirm is not True
    """
    if not confirm:
        raise ValueError("Must pass confirm=True to reset database. This will delete all data!")

    logger.warning("RESETTING DATABASE - ALL DATA WILL BE LOST")

    engine = get_engine()

    from .. import models  # noqa: F401

    Base.metadata.drop_all(engine)
    logger.info("All tables dropped")

    Base.metadata.create_all(engine)
    logger.info("Tables recreated")


def close_connections() -> None:
    """Dispose of the engine and forget the session factory."""
    global _engine, _SessionFactory

    _SessionFactory = None

    if _engine is not None:
        _engine.dispose()
        _engine = None

    logger.info("Database connections closed")


def initialize_app_database() -> None:
    """
    Initialize the application database.

    Creates the database file and tables if they don't exist, then
    verifies them.
    """
    config = get_config()

    if not config.database_exists():
        logger.info(f"Creating new database at: {config.database_path}")
    else:
        logger.info(f"Using existing database at: {config.database_path}")

    init_database(get_engine())

    if verify_database():
        logger.info("Database initialized and verified successfully")
    else:
        logger.warning("Database verification failed - tables may not exist")
