"""Subject repository for database operations."""

from typing import List, Optional

from ..models import Subject
from .base import BaseRepository


class SubjectRepository(BaseRepository[Subject]):
    """Repository for subject rows. Names are unique; ids are never reused."""

    model_class = Subject

    def get_id_by_name(self, name: str) -> Optional[int]:
        return self.db.query(Subject.id).filter(Subject.name == name).scalar()

    def insert_if_absent(self, name: str) -> int:
        """Insert the name unless it exists; return its id either way."""
        self.db.execute(self._insert().values(name=name).on_conflict_do_nothing())
        return self.get_id_by_name(name)

    def list_names(self) -> List[str]:
        """All subject names in insertion order."""
        return [row.name for row in self.db.query(Subject.name).order_by(Subject.id).all()]

    def rename(self, subject_id: int, name: str) -> int:
        """Set a new name. Returns the number of rows updated (0 or 1)."""
        return (
            self.db.query(Subject)
            .filter(Subject.id == subject_id)
            .update({Subject.name: name}, synchronize_session=False)
        )

    def delete(self, subject_id: int) -> int:
        return (
            self.db.query(Subject)
            .filter(Subject.id == subject_id)
            .delete(synchronize_session=False)
        )
