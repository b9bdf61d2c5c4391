"""Shared test fixtures for the LetterGate test suite.

Tests run against a throwaway SQLite file unless TEST_DATABASE_URL points
somewhere else (e.g. a local PostgreSQL). Tables are created once at import;
each test starts from empty tables.
"""

import os
import tempfile

# Point the package at the test database before any package imports.
_TMP_DIR = tempfile.mkdtemp(prefix="lettergate-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_TMP_DIR, 'lettergate_test.db')}",
)
os.environ["LOG_FORMAT"] = "text"
os.environ["SYNC_POLL_INTERVAL"] = "2.0"

import pytest
from sqlalchemy import text

from lettergate.core.schema import init_schema
from lettergate.database import SessionLocal, engine
from lettergate.store import RelationStore

init_schema(engine)

# Delete order respects the grant foreign keys.
_CLEAN_TABLES = ["grants", "tokens", "subjects"]


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all tables before each test for isolation.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    db = SessionLocal()
    try:
        for table in _CLEAN_TABLES:
            db.execute(text(f"DELETE FROM {table}"))
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def store(db) -> RelationStore:
    return RelationStore(db)


@pytest.fixture()
def seed(store):
    """Factory creating subjects with their tokens, e.g. ``seed({"alice": "ab", "bob": ""})``."""

    def _seed(grants: dict) -> None:
        for name, values in grants.items():
            store.create_subject_with_tokens(name, list(values))

    return _seed
