"""Schema bootstrap for the relation tables.

Handles both fresh and existing databases:
- Fresh (any relation table missing): creates the missing tables from the models
- Existing: leaves the schema untouched

Usage:
    from lettergate.core.schema import init_schema
    from lettergate.database import engine

    init_schema(engine)
"""

import logging
from typing import Optional

from sqlalchemy import Engine, inspect
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import DatabaseError

logger = logging.getLogger(__name__)

REQUIRED_TABLES = frozenset({"subjects", "tokens", "grants"})


def _missing_tables(engine: Engine) -> set[str]:
    inspector = inspect(engine)
    return set(REQUIRED_TABLES - set(inspector.get_table_names()))


def init_schema(engine: Engine, base: Optional[type] = None) -> bool:
    """Create the relation tables if any are missing. Idempotent.

    Args:
        engine: SQLAlchemy engine
        base: Declarative base holding the models; defaults to the package Base

    Returns:
        True if tables were created, False if the schema was already present

    Raises:
        DatabaseError: If inspection or table creation fails
    """
    if base is None:
        from ..database import Base
        base = Base
    # Registers the models on Base.metadata.
    from .. import models  # noqa: F401

    try:
        missing = _missing_tables(engine)
        if not missing:
            logger.info("Existing schema detected")
            return False

        logger.info("Creating tables: %s", ", ".join(sorted(missing)))
        base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.error("Schema initialization failed: %s", e)
        raise DatabaseError("Failed to initialize schema", original_error=e) from e
    return True
