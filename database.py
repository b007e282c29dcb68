# backend/database.py
import logging
from contextlib import contextmanager

from sqlmodel import create_engine, SQLModel, Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv

from core.config import settings
from core.exceptions import ConflictError

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


def make_engine(url: str, echo: bool = False):
    """Build an engine; in-memory SQLite shares one connection so every session sees the same data."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, echo=echo, pool_recycle=3600)


# Create the engine
engine = make_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def create_db_and_tables(bind=None):
    """Initializes the database and creates all tables from models package"""
    # Importing models package ensures SQLModel metadata is populated
    import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


# Dependency to get a database session
def get_session():
    """Provides a transactional database session."""
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope(bind=None):
    """
    with session_scope() as session:
        ...
    Commits on success, rolls back and re-raises on error.
    """
    with Session(bind or engine) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def run_in_transaction(session: Session, fn):
    """
    Runs fn() and commits; any error rolls the whole unit back and is re-raised.
    Unique-constraint violations surface as ConflictError.
    """
    try:
        result = fn()
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning("Write rejected by a storage constraint: %s", exc.orig)
        raise ConflictError("The record conflicts with an existing one, please retry.") from exc
    except Exception:
        session.rollback()
        raise
    return result
