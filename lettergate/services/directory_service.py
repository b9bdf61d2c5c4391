"""Single-entity administration of subjects and tokens by name."""

import logging
from typing import FrozenSet, List

from sqlalchemy.orm import Session

from ..schemas.validation import parse_token_list
from ..store import RelationStore

logger = logging.getLogger(__name__)


class DirectoryService:
    """Add, rename and delete subjects and tokens; grant or revoke everything at once.

    Names are resolved immediately before each mutation. Deletions cascade to
    grants and carry no confirmation of their own; the caller asks first.
    """

    def __init__(self, db: Session):
        self.db = db
        self.store = RelationStore(db)

    # -- subjects --------------------------------------------------------

    def add_subject(self, name: str, tokens_text: str = "") -> List[str]:
        """Create *name* with the tokens in *tokens_text*. Returns the tokens granted.

        An existing subject is reused and gains the tokens.
        """
        tokens = parse_token_list(tokens_text)
        self.store.create_subject_with_tokens(name, tokens)
        return tokens

    def rename_subject(self, old_name: str, new_name: str) -> None:
        subject_id = self.store.resolve_subject(old_name)
        self.store.rename_subject(subject_id, new_name)
        logger.info("Renamed subject %s to %s", old_name, new_name.strip(), extra={"subject": old_name})

    def delete_subject(self, name: str) -> None:
        self.store.delete_subject(self.store.resolve_subject(name))

    def grant_all(self, name: str) -> int:
        """Grant every existing token to the subject. Returns the number of new grants."""
        count = self.store.grant_all(self.store.resolve_subject(name))
        logger.info("Granted all tokens to %s (%d new)", name, count, extra={"subject": name})
        return count

    def revoke_all(self, name: str) -> int:
        """Remove all of the subject's grants. Returns the number removed."""
        count = self.store.revoke_all(self.store.resolve_subject(name))
        logger.info("Revoked all tokens from %s (%d removed)", name, count, extra={"subject": name})
        return count

    def list_subjects(self) -> List[str]:
        return self.store.list_subjects()

    def allowed_tokens(self, name: str) -> FrozenSet[str]:
        return frozenset(self.store.list_granted_tokens(self.store.resolve_subject(name)))

    # -- tokens ----------------------------------------------------------

    def add_token(self, value: str) -> None:
        self.store.ensure_token(value)
        logger.info("Added token %s", value, extra={"token": value})

    def rename_token(self, old_value: str, new_value: str) -> None:
        """Change a token's character; its grants follow it."""
        token_id = self.store.resolve_token(old_value)
        self.store.rename_token(token_id, new_value)
        logger.info("Renamed token %s to %s", old_value, new_value, extra={"token": old_value})

    def delete_token(self, value: str) -> None:
        self.store.delete_token(self.store.resolve_token(value))

    def list_tokens(self) -> List[str]:
        return self.store.list_tokens()
