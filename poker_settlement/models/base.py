"""
Database engine, session management, and base model.

This module is the foundation for all database operations.
Every model inherits from Base. Every request gets a session
from get_db().
"""

from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase

from poker_settlement.config import get_settings
from poker_settlement.exceptions import PersistenceError

settings = get_settings()


def engine_options(database_url: str) -> dict:
    """Engine keyword arguments appropriate for the target database."""
    options = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        # Sessions are handed across threads by the API server and
        # by the concurrency tests.
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    return options


# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# which handles cases where the database restarted or a
# connection went stale.
engine = create_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# --- Session Factory ---
# autocommit=False: the caller decides when a unit of work commits.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session):
    """
    Run a block as one unit of work.

    Commits when the block finishes, rolls back on any error.
    Storage failures surface as PersistenceError so callers can
    tell "computation failed" apart from bad input.
    """
    try:
        yield db
        db.commit()
    except PersistenceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Storage write failed: {e}") from e
    except Exception:
        db.rollback()
        raise
