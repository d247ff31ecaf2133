"""Database connection and session management.

The engine is process-wide state: created lazily on first use, reused by every
request, and disposed only at shutdown.
"""

import threading
from typing import Generator, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
import logging

from ..config import settings

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
_lock = threading.Lock()


def _build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=settings.database.echo, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=settings.database.echo
    )


def init_engine(database_url: Optional[str] = None) -> Engine:
    """Create the engine and session factory once; later calls return the existing engine.

    Args:
        database_url: Optional override of settings.database.url

    Returns:
        Engine: The process-wide engine
    """
    global _engine, _session_factory

    if _engine is not None:
        return _engine

    with _lock:
        if _engine is None:
            url = database_url or settings.database.url
            engine = _build_engine(url)
            _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
            _engine = engine
            logger.info(f"Database engine initialized for {engine.url.render_as_string(hide_password=True)}")

    return _engine


def get_engine() -> Engine:
    """Get the process-wide engine, initializing it on first use."""
    return init_engine()


def get_session_factory() -> sessionmaker:
    init_engine()
    return _session_factory


def dispose_engine() -> None:
    """Dispose of the engine. Safe to call when no engine exists."""
    global _engine, _session_factory

    with _lock:
        if _engine is not None:
            _engine.dispose()
            logger.info("Database engine disposed")
        _engine = None
        _session_factory = None


def get_db() -> Generator[Session, None, None]:
    """Get database session.

    Yields:
        Session: Database session
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database with all tables."""
    try:
        # Import all models to ensure they are registered
        from ..models import property_models  # noqa: F401

        Base.metadata.create_all(bind=get_engine())
        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise


def check_db_connection() -> bool:
    """Check if database connection is working.

    Returns:
        bool: True if connection is working, False otherwise
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
