"""Token repository for database operations."""

from typing import List, Optional

from ..models import Token
from .base import BaseRepository


class TokenRepository(BaseRepository[Token]):
    """Repository for token rows, keyed by their single-character value."""

    model_class = Token

    def get_id_by_value(self, value: str) -> Optional[int]:
        return self.db.query(Token.id).filter(Token.value == value).scalar()

    def insert_if_absent(self, value: str) -> int:
        """Insert the token unless it exists; return its id either way."""
        self.db.execute(self._insert().values(value=value).on_conflict_do_nothing())
        return self.get_id_by_value(value)

    def list_values(self) -> List[str]:
        """All token values in insertion order."""
        return [row.value for row in self.db.query(Token.value).order_by(Token.id).all()]

    def rename(self, token_id: int, value: str) -> int:
        return (
            self.db.query(Token)
            .filter(Token.id == token_id)
            .update({Token.value: value}, synchronize_session=False)
        )

    def delete(self, token_id: int) -> int:
        return (
            self.db.query(Token)
            .filter(Token.id == token_id)
            .delete(synchronize_session=False)
        )
