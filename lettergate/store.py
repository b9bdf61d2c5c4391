"""
Relation store: the single owner of subject/token identity and grants.

Every public method is one transaction: it commits on success and rolls
back on any failure. There is no cross-call transaction, so a
caller that resolves a name and then mutates by id may find the id gone;
that surfaces as a NOT_FOUND error from the second call, never as a
dangling row.

Writes use the backend's native insert-if-absent, which makes create and
grant idempotent and keeps the resolve/mutate race window to a single
statement where possible.
"""

import logging
from contextlib import contextmanager
from typing import Callable, Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .exceptions import (
    DatabaseError,
    LetterGateError,
    NameConflictError,
    SubjectNotFoundError,
    TokenConflictError,
    TokenNotFoundError,
)
from .repositories import GrantRepository, SubjectRepository, TokenRepository
from .schemas.validation import validate_subject_name, validate_token_value

logger = logging.getLogger(__name__)


class RelationStore:
    """Durable Subject x Token relation over one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db
        self.subjects = SubjectRepository(db)
        self.tokens = TokenRepository(db)
        self.grants = GrantRepository(db)

    @contextmanager
    def _transaction(
        self,
        action: str,
        on_integrity_error: Optional[Callable[[], LetterGateError]] = None,
    ):
        """Commit on success; roll back and translate errors on failure.

        Domain errors pass through. IntegrityError maps to the error built by
        *on_integrity_error* when given; every other SQLAlchemy error becomes
        a DatabaseError.
        """
        try:
            yield
            self.db.commit()
        except LetterGateError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            if on_integrity_error is not None:
                raise on_integrity_error() from e
            logger.error("Integrity error during %s: %s", action, e)
            raise DatabaseError(f"Failed to {action}", original_error=e) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Database error during %s: %s", action, e)
            raise DatabaseError(f"Failed to {action}", original_error=e) from e

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_subject(self, name: str) -> int:
        """Subject id for *name*. Raises SubjectNotFoundError."""
        with self._transaction("resolve subject"):
            subject_id = self.subjects.get_id_by_name(name)
        if subject_id is None:
            raise SubjectNotFoundError(name)
        return subject_id

    def resolve_token(self, value: str) -> int:
        """Token id for *value*. Raises TokenNotFoundError."""
        with self._transaction("resolve token"):
            token_id = self.tokens.get_id_by_value(value)
        if token_id is None:
            raise TokenNotFoundError(value)
        return token_id

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def ensure_token(self, value: str) -> int:
        """Return the token's id, creating it if absent."""
        value = validate_token_value(value)
        with self._transaction("ensure token"):
            return self.tokens.insert_if_absent(value)

    def create_subject(self, name: str) -> int:
        """Create a subject. Re-creating an existing name returns its id."""
        name = validate_subject_name(name)
        with self._transaction("create subject"):
            return self.subjects.insert_if_absent(name)

    def create_subject_with_tokens(self, name: str, values: Iterable[str]) -> int:
        """Create (or reuse) a subject and grant it *values*, all in one transaction."""
        name = validate_subject_name(name)
        values = [validate_token_value(v) for v in values]
        with self._transaction("create subject"):
            subject_id = self.subjects.insert_if_absent(name)
            for value in values:
                token_id = self.tokens.insert_if_absent(value)
                self.grants.insert_if_absent(subject_id, token_id)
        logger.info(
            "Created subject %s with %d token(s)", name, len(values),
            extra={"subject": name, "tokens": "".join(values)},
        )
        return subject_id

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_subjects(self) -> List[str]:
        with self._transaction("list subjects"):
            return self.subjects.list_names()

    def list_tokens(self) -> List[str]:
        with self._transaction("list tokens"):
            return self.tokens.list_values()

    def list_granted_tokens(self, subject_id: int) -> Set[str]:
        """Characters granted to the subject. Raises SubjectNotFoundError if it is gone."""
        with self._transaction("list granted tokens"):
            if not self.subjects.exists(subject_id):
                raise SubjectNotFoundError(subject_id)
            return self.grants.values_for_subject(subject_id)

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    def grant(self, subject_id: int, token_id: int) -> bool:
        """Grant the pair. Idempotent; returns True if the grant is new.

        Raises SubjectNotFoundError / TokenNotFoundError if either side no
        longer exists.
        """
        with self._transaction("grant token"):
            if self.grants.insert_if_absent(subject_id, token_id):
                return True
            if self.grants.exists_pair(subject_id, token_id):
                return False
            if not self.subjects.exists(subject_id):
                raise SubjectNotFoundError(subject_id)
            raise TokenNotFoundError(token_id)

    def revoke(self, subject_id: int, token_id: int) -> bool:
        """Revoke the pair. Idempotent; returns True if a grant was removed.

        Raises SubjectNotFoundError if the subject no longer exists. A missing
        token holds no grants, so revoking it is a no-op.
        """
        with self._transaction("revoke token"):
            if self.grants.delete(subject_id, token_id):
                return True
            if not self.subjects.exists(subject_id):
                raise SubjectNotFoundError(subject_id)
            return False

    def grant_all(self, subject_id: int) -> int:
        """Grant every known token to the subject. Returns the number of new grants."""
        with self._transaction("grant all tokens"):
            if not self.subjects.exists(subject_id):
                raise SubjectNotFoundError(subject_id)
            return self.grants.insert_all_for_subject(subject_id)

    def revoke_all(self, subject_id: int) -> int:
        """Remove every grant of the subject. Returns the number removed."""
        with self._transaction("revoke all tokens"):
            if not self.subjects.exists(subject_id):
                raise SubjectNotFoundError(subject_id)
            return self.grants.delete_by_subject(subject_id)

    # ------------------------------------------------------------------
    # Deletion and renaming
    # ------------------------------------------------------------------

    def delete_subject(self, subject_id: int) -> None:
        """Remove the subject's grants, then the subject."""
        with self._transaction("delete subject"):
            removed = self.grants.delete_by_subject(subject_id)
            if self.subjects.delete(subject_id) == 0:
                raise SubjectNotFoundError(subject_id)
        logger.info("Deleted subject %s and %d grant(s)", subject_id, removed)

    def delete_token(self, token_id: int) -> None:
        """Remove every grant of the token, then the token."""
        with self._transaction("delete token"):
            removed = self.grants.delete_by_token(token_id)
            if self.tokens.delete(token_id) == 0:
                raise TokenNotFoundError(token_id)
        logger.info("Deleted token %s and %d grant(s)", token_id, removed)

    def rename_subject(self, subject_id: int, name: str) -> None:
        """Rename a subject. Renaming to its own name is a no-op.

        Raises NameConflictError if another subject holds *name*.
        """
        name = validate_subject_name(name)
        with self._transaction("rename subject", on_integrity_error=lambda: NameConflictError(name)):
            holder = self.subjects.get_id_by_name(name)
            if holder == subject_id:
                return
            if holder is not None:
                raise NameConflictError(name)
            if self.subjects.rename(subject_id, name) == 0:
                raise SubjectNotFoundError(subject_id)

    def rename_token(self, token_id: int, value: str) -> None:
        """Change a token's character. Renaming to its own value is a no-op.

        Raises TokenConflictError if another token holds *value*. Grants
        follow the token id, so they move with the rename.
        """
        value = validate_token_value(value)
        with self._transaction("rename token", on_integrity_error=lambda: TokenConflictError(value)):
            holder = self.tokens.get_id_by_value(value)
            if holder == token_id:
                return
            if holder is not None:
                raise TokenConflictError(value)
            if self.tokens.rename(token_id, value) == 0:
                raise TokenNotFoundError(token_id)
