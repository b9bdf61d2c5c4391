"""Database configuration and session management."""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.config import settings

DATABASE_URL = settings.database_url


def create_db_engine(url: str) -> Engine:
    """Create an engine with database-specific tuning."""
    if url.startswith("sqlite"):
        # The permission poller reads from its own thread.
        sqlite_engine = create_engine(
            url,
            connect_args={"check_same_thread": False}
        )

        # SQLite defaults foreign_keys to OFF; CASCADE constraints are silently
        # ignored unless we enable them on every connection.
        @event.listens_for(sqlite_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    # Detects stale connections before use (prevents "server closed the connection" errors).
    return create_engine(url, pool_pre_ping=True)


engine = create_db_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()


@contextmanager
def get_db():
    """Open a database session for one unit of work.

    Rolls back the transaction on unhandled exceptions so that the
    connection is returned to the pool in a clean state.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
