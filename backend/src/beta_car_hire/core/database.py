"""
Database engine and session management for Beta Car Hire.

PostgreSQL in production; SQLite (file or in-memory) for development and tests.
"""

import logging
from typing import Generator
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.exc import SQLAlchemyError
from contextlib import contextmanager

from beta_car_hire.core.config import get_config

config = get_config()
logger = logging.getLogger(__name__)


def _engine_options() -> dict:
    """Build engine keyword arguments for the configured backend."""
    if config.database.is_sqlite:
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in config.get_database_url() or config.get_database_url() in ("sqlite://", "sqlite:///"):
            # A single shared connection keeps the in-memory database alive across threads
            options["poolclass"] = StaticPool
        return options

    return {
        "poolclass": QueuePool,
        "pool_size": config.database.db_pool_size,
        "max_overflow": config.database.db_max_overflow,
        "pool_timeout": config.database.db_pool_timeout,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


engine = create_engine(
    config.get_database_url(),
    echo=config.application.debug,
    **_engine_options(),
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Get database session with proper error handling and cleanup.

    Yields:
        Database session

    Raises:
        SQLAlchemyError: If database connection fails
    """
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_transaction():
    """
    Get database session with transaction management.

    Commits on success and rolls back on any error.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception as e:
        logger.error(f"Database transaction error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def create_tables():
    """Create all database tables."""
    try:
        # Import all models to ensure they are registered with SQLAlchemy
        from beta_car_hire.models import Base
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise


def drop_tables():
    """Drop all database tables."""
    from beta_car_hire.models import Base
    Base.metadata.drop_all(bind=engine)
    logger.info("Database tables dropped")


def check_database_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connection check successful")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection check failed: {e}")
        return False


@event.listens_for(engine, "connect")
def set_connection_pragmas(dbapi_connection, connection_record):
    """Per-connection settings for the active backend."""
    if config.database.is_sqlite:
        # SQLite leaves foreign keys unenforced unless asked
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    else:
        with dbapi_connection.cursor() as cursor:
            cursor.execute("SET statement_timeout = '300s'")
            cursor.execute("SET idle_in_transaction_session_timeout = '600s'")


def initialize_database():
    """Initialize database connection and create tables if needed."""
    try:
        if not check_database_connection():
            raise RuntimeError("Database connection failed")

        create_tables()

        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
