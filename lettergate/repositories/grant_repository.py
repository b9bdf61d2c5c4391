"""Grant repository for database operations."""

from typing import Set

from sqlalchemy import Integer, literal, select

from ..models import Grant, Subject, Token
from .base import BaseRepository


class GrantRepository(BaseRepository[Grant]):
    """Repository for (subject, token) pairs.

    Inserts select both ids from their parent tables, so a grant row can
    only be written while both the subject and the token exist, whatever
    the backend's foreign-key enforcement.
    """

    model_class = Grant

    def insert_if_absent(self, subject_id: int, token_id: int) -> bool:
        """Write the pair unless it exists or a side is missing.

        Returns True if a new row was written.
        """
        source = (
            select(Subject.id, Token.id)
            .join(Token, Token.id == token_id)
            .where(Subject.id == subject_id)
        )
        stmt = (
            self._insert()
            .from_select(["subject_id", "token_id"], source)
            .on_conflict_do_nothing()
        )
        return self.db.execute(stmt).rowcount > 0

    def exists_pair(self, subject_id: int, token_id: int) -> bool:
        return (
            self.db.query(Grant.subject_id)
            .filter(Grant.subject_id == subject_id, Grant.token_id == token_id)
            .first()
            is not None
        )

    def insert_all_for_subject(self, subject_id: int) -> int:
        """Grant every existing token to the subject. Returns rows written."""
        # The WHERE clause keeps SQLite from parsing ON CONFLICT as a join constraint.
        source = (
            select(literal(subject_id, Integer), Token.id)
            .where(Token.id.isnot(None))
        )
        stmt = (
            self._insert()
            .from_select(["subject_id", "token_id"], source)
            .on_conflict_do_nothing()
        )
        return self.db.execute(stmt).rowcount

    def delete(self, subject_id: int, token_id: int) -> bool:
        """Remove the pair. Returns True if a row was removed."""
        count = (
            self.db.query(Grant)
            .filter(Grant.subject_id == subject_id, Grant.token_id == token_id)
            .delete(synchronize_session=False)
        )
        return count > 0

    def delete_by_subject(self, subject_id: int) -> int:
        return (
            self.db.query(Grant)
            .filter(Grant.subject_id == subject_id)
            .delete(synchronize_session=False)
        )

    def delete_by_token(self, token_id: int) -> int:
        return (
            self.db.query(Grant)
            .filter(Grant.token_id == token_id)
            .delete(synchronize_session=False)
        )

    def values_for_subject(self, subject_id: int) -> Set[str]:
        """Token characters currently granted to the subject."""
        rows = (
            self.db.query(Token.value)
            .join(Grant, Grant.token_id == Token.id)
            .filter(Grant.subject_id == subject_id)
            .all()
        )
        return {row.value for row in rows}
