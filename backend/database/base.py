# backend/database/base.py
"""
SQLAlchemy Base and Engine Configuration

Provides the declarative base for all models and engine factory.

CRITICAL SAFETY: When TESTING=true, this module refuses to connect to the
production database (budget_db).
"""

import logging
import os
from contextlib import contextmanager

from dotenv import load_dotenv
from sqlalchemy import URL, create_engine, event, make_url
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError, TimeoutError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

load_dotenv(override=False)

logger = logging.getLogger(__name__)

# ============================================================================
# CRITICAL: TEST DATABASE SAFETY CHECK
# ============================================================================
IS_TESTING = os.getenv("TESTING", "").lower() in ("true", "1", "yes")
PRODUCTION_DB_NAME = "budget_db"
TEST_DB_NAME = os.getenv("POSTGRES_TEST_DB", "budget_db_test")


def build_database_url():
    """Resolve the database URL.

    DATABASE_URL wins when set; otherwise a PostgreSQL URL is assembled from
    the POSTGRES_* variables (URL.create keeps the password out of logs).
    """
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return make_url(explicit)

    db_name = os.getenv("POSTGRES_DB", PRODUCTION_DB_NAME)
    if IS_TESTING and db_name == PRODUCTION_DB_NAME:
        logger.warning(
            f"TESTING=true but POSTGRES_DB was production. Forcing test database: {TEST_DB_NAME}"
        )
        db_name = TEST_DB_NAME

    return URL.create(
        "postgresql",
        username=os.getenv("POSTGRES_USER", "budget_user"),
        password=os.getenv("POSTGRES_PASSWORD", "budget_password"),
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=int(os.getenv("POSTGRES_PORT", "5432")),
        database=db_name,
    )


def create_db_engine(url):
    """Create an engine with pooling suited to the backend."""
    if url.get_backend_name() == "sqlite":
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )

        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        max_overflow=0,
        pool_pre_ping=True,  # Verify connections before use
        echo=False,  # Set to True for SQL logging during development
        hide_parameters=True,  # Redact password in logs
    )


DATABASE_URL = build_database_url()

# Declarative base for all models
Base = declarative_base()

engine = create_db_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session():
    """Get a new SQLAlchemy session (context manager)."""
    try:
        db = SessionLocal()
    except TimeoutError:
        logger.error("Connection pool exhausted (all connections in use)")
        raise
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise

    try:
        yield db
    except Exception as e:
        logger.error(f"Session error: {e}")
        db.rollback()  # Explicit rollback on error
        raise
    finally:
        db.close()


def dialect_insert(model):
    """INSERT construct with ON CONFLICT support for the active backend."""
    if engine.dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)


def init_db():
    """Create all tables that do not exist yet."""
    # Import models so they register with Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")
