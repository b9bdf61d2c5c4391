"""Single-pair grant primitives addressed by subject name and token character.

Every call resolves the name through the store first; ids are never held
across calls. Grants auto-create the token but never the subject: granting
to an unknown subject is a SubjectNotFoundError.
"""

import logging

from sqlalchemy.orm import Session

from ..exceptions import TokenNotFoundError
from ..store import RelationStore

logger = logging.getLogger(__name__)


class GrantService:
    """Idempotent grant / revoke / has / toggle."""

    def __init__(self, db: Session):
        self.db = db
        self.store = RelationStore(db)

    def grant_one(self, subject_name: str, value: str) -> bool:
        """Grant *value* to the subject. Returns True if the grant is new."""
        subject_id = self.store.resolve_subject(subject_name)
        token_id = self.store.ensure_token(value)
        created = self.store.grant(subject_id, token_id)
        if created:
            logger.info(
                "Granted %s to %s", value, subject_name,
                extra={"subject": subject_name, "token": value},
            )
        return created

    def revoke_one(self, subject_name: str, value: str) -> bool:
        """Revoke *value* from the subject. Returns True if a grant was removed.

        A token that does not exist cannot be granted, so revoking it is a
        successful no-op.
        """
        subject_id = self.store.resolve_subject(subject_name)
        try:
            token_id = self.store.resolve_token(value)
        except TokenNotFoundError:
            return False
        removed = self.store.revoke(subject_id, token_id)
        if removed:
            logger.info(
                "Revoked %s from %s", value, subject_name,
                extra={"subject": subject_name, "token": value},
            )
        return removed

    def has_grant(self, subject_name: str, value: str) -> bool:
        subject_id = self.store.resolve_subject(subject_name)
        return value in self.store.list_granted_tokens(subject_id)

    def toggle(self, subject_name: str, value: str) -> bool:
        """Grant if absent, else revoke. Returns the new state.

        The check and the write are separate calls, so two concurrent
        togglers of the same cell can both observe the old state.
        """
        if self.has_grant(subject_name, value):
            self.revoke_one(subject_name, value)
            return False
        self.grant_one(subject_name, value)
        return True
