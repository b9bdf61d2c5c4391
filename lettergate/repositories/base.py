"""Base repository with shared existence-check and insert-if-absent patterns.

Subclasses specify model_class; the base provides an id existence check and
a dialect-aware INSERT construct that supports ``ON CONFLICT DO NOTHING``
(SQLite and PostgreSQL both implement it).

Repositories never commit. The RelationStore owns transaction boundaries.
"""

from typing import Generic, Type, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..database import Base
from ..exceptions import DatabaseError

ModelT = TypeVar("ModelT", bound=Base)

# Dialect name -> insert() construct with on_conflict_do_nothing().
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for SQLAlchemy models.

    Class variables to set in subclasses:
        model_class: The SQLAlchemy model (e.g., Subject)
    """

    model_class: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def exists(self, entity_id: int) -> bool:
        return (
            self.db.query(self.model_class.id)
            .filter(self.model_class.id == entity_id)
            .first()
            is not None
        )

    def _insert(self):
        """INSERT construct for the bound dialect, supporting on_conflict_do_nothing()."""
        dialect = self.db.get_bind().dialect.name
        try:
            insert = _UPSERT_INSERTS[dialect]
        except KeyError:
            raise DatabaseError(f"Unsupported database dialect: {dialect}") from None
        return insert(self.model_class)
