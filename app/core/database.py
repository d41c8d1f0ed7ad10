"""
Database connection and session management.

Uses synchronous SQLAlchemy sessions (SQLModel flavour). The engine is created
lazily on first use so importing the app never opens a connection; tests swap
in their own engine with set_engine().
"""

from typing import Generator, Optional
from contextlib import contextmanager
from urllib.parse import urlparse
from sqlmodel import Session, SQLModel, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy import text
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None

# Unbound factory; every session is bound to the current engine at creation
SessionLocal = sessionmaker(
    class_=Session,
    expire_on_commit=False,  # Returned entities stay readable after commit
    autoflush=False,         # Explicit control over when to flush
)


def normalize_database_url(url: str) -> str:
    """Force the psycopg3 driver for plain PostgreSQL URLs; leave others alone."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _create_engine() -> Engine:
    url = normalize_database_url(settings.DATABASE_URL)
    if not url:
        raise ValueError("DATABASE_URL is not configured")

    # Never log the password
    parsed = urlparse(url)
    logger.info(f"Database driver: {parsed.scheme}")
    if parsed.hostname:
        logger.info(f"Database host: {parsed.hostname}:{parsed.port}")

    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed between FastAPI's threadpool workers
        connect_args["check_same_thread"] = False

    return create_engine(url, connect_args=connect_args, pool_pre_ping=True, echo=False)


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = _create_engine()
    return _engine


def set_engine(engine: Optional[Engine]) -> None:
    """Replace the process-wide engine (tests, alternative deployments)."""
    global _engine
    _engine = engine


def new_session() -> Session:
    """Plain session bound to the current engine. Caller owns commit/close."""
    return SessionLocal(bind=get_engine())


def init_db() -> None:
    """Create all tables known to the SQLModel metadata (idempotent)."""
    import app.models.database  # noqa: F401  (registers every table)

    SQLModel.metadata.create_all(get_engine())
    logger.info("Database tables ensured")


def check_connection() -> bool:
    """Return True if a trivial query succeeds."""
    try:
        with new_session() as session:
            session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


def get_db() -> Generator[Session, None, None]:
    # FastAPI dependency: one session per request.
    # Commits if the route returned normally, rolls back otherwise.
    db = new_session()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside FastAPI dependencies.
    Used by generation routes that persist after a provider call.
    Auto-commits on success, auto-rolls back on exception.
    """
    session = new_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
