"""
Deep module for batch administration of many subjects at once.

Input is raw text as an operator types it: a subject list with one name per
line and a token list of letters separated by whitespace, ',' or ';'. The
whole request is validated up front; after that every subject is processed
independently and its failure is recorded in the report instead of
aborting the batch. Effects already applied are never rolled back.

Only grant_or_create may create subjects. Revoke and delete act on names
that already resolve, so a cleanup never materializes anyone.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..exceptions import (
    LetterGateError,
    SubjectNotFoundError,
    TokenNotFoundError,
    ValidationError,
)
from ..schemas.bulk import (
    DeleteReport,
    GrantOrCreateReport,
    OutcomeStatus,
    RevokeReport,
    SubjectOutcome,
)
from ..schemas.validation import parse_subject_list, parse_token_list
from ..store import RelationStore

logger = logging.getLogger(__name__)


class BulkService:
    """
    Batch grant-or-create, revoke and delete.

    Public methods:
        grant_or_create -- create unknown subjects with the tokens, grant to known ones
        revoke          -- remove the tokens from known subjects
        delete          -- cascade-delete known subjects (caller confirms first)
    """

    def __init__(self, db: Session):
        self.db = db
        self.store = RelationStore(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def grant_or_create(self, subjects_text: str, tokens_text: str) -> GrantOrCreateReport:
        """Grant the token list to every subject, creating unknown subjects.

        An empty token list is allowed: unknown subjects are created without
        grants and known subjects are reported as unchanged.
        """
        subjects = self._parse_subjects(subjects_text)
        tokens = parse_token_list(tokens_text)

        report = GrantOrCreateReport()
        for name in subjects:
            report.record(self._grant_or_create_one(name, tokens))

        logger.info(
            "Bulk grant-or-create finished: %s", report.summary(),
            extra={"subjects": len(subjects), "failures": len(report.failures)},
        )
        return report

    def revoke(self, subjects_text: str, tokens_text: str) -> RevokeReport:
        """Revoke the token list from every listed subject."""
        subjects = self._parse_subjects(subjects_text)
        tokens = parse_token_list(tokens_text)
        if not tokens:
            raise ValidationError("Token list is empty; nothing to revoke", field="tokens")

        report = RevokeReport()
        for name in subjects:
            report.record(self._revoke_one(name, tokens))

        logger.info(
            "Bulk revoke finished: %s", report.summary(),
            extra={"subjects": len(subjects), "failures": len(report.failures)},
        )
        return report

    def delete(self, subjects_text: str) -> DeleteReport:
        """Delete every listed subject with all its grants.

        Destructive: the calling boundary must have obtained operator
        confirmation before calling this.
        """
        subjects = self._parse_subjects(subjects_text)

        report = DeleteReport()
        for name in subjects:
            report.record(self._delete_one(name))

        logger.info(
            "Bulk delete finished: %s", report.summary(),
            extra={"subjects": len(subjects), "failures": len(report.failures)},
        )
        return report

    # ------------------------------------------------------------------
    # Per-subject steps
    # ------------------------------------------------------------------

    def _grant_or_create_one(self, name: str, tokens: List[str]) -> SubjectOutcome:
        try:
            subject_id = self.store.resolve_subject(name)
        except SubjectNotFoundError:
            return self._create_one(name, tokens)
        except LetterGateError as e:
            return self._failed(name, f"Failed to look up '{name}': {e.message}")

        attached: List[str] = []
        errors: List[str] = []
        for value in tokens:
            try:
                token_id = self.store.ensure_token(value)
                self.store.grant(subject_id, token_id)
            except SubjectNotFoundError:
                # Deleted concurrently; the remaining tokens would fail the same way.
                errors.append(f"Subject '{name}' disappeared while granting '{value}'")
                break
            except LetterGateError as e:
                errors.append(f"Failed to grant '{value}' to '{name}': {e.message}")
            else:
                attached.append(value)

        if attached:
            status = OutcomeStatus.GRANTED
        elif errors:
            status = OutcomeStatus.FAILED
        else:
            status = OutcomeStatus.UNCHANGED
        return SubjectOutcome(subject=name, status=status, tokens=attached, errors=errors)

    def _create_one(self, name: str, tokens: List[str]) -> SubjectOutcome:
        try:
            self.store.create_subject_with_tokens(name, tokens)
        except LetterGateError as e:
            return self._failed(name, f"Failed to create '{name}': {e.message}")
        return SubjectOutcome(subject=name, status=OutcomeStatus.CREATED, tokens=list(tokens))

    def _revoke_one(self, name: str, tokens: List[str]) -> SubjectOutcome:
        try:
            subject_id = self.store.resolve_subject(name)
        except SubjectNotFoundError:
            return self._failed(name, f"Subject '{name}' not found")
        except LetterGateError as e:
            return self._failed(name, f"Failed to look up '{name}': {e.message}")

        removed: List[str] = []
        errors: List[str] = []
        for value in tokens:
            try:
                token_id = self.store.resolve_token(value)
            except TokenNotFoundError:
                # No token means no grant: already satisfied.
                continue
            except LetterGateError as e:
                errors.append(f"Failed to look up token '{value}': {e.message}")
                continue
            try:
                if self.store.revoke(subject_id, token_id):
                    removed.append(value)
            except SubjectNotFoundError:
                errors.append(f"Subject '{name}' disappeared while revoking '{value}'")
                break
            except LetterGateError as e:
                errors.append(f"Failed to revoke '{value}' from '{name}': {e.message}")

        if removed:
            status = OutcomeStatus.REVOKED
        elif errors:
            status = OutcomeStatus.FAILED
        else:
            status = OutcomeStatus.NOT_REMOVED
        return SubjectOutcome(subject=name, status=status, tokens=removed, errors=errors)

    def _delete_one(self, name: str) -> SubjectOutcome:
        try:
            subject_id = self.store.resolve_subject(name)
            self.store.delete_subject(subject_id)
        except SubjectNotFoundError:
            return self._failed(name, f"Subject '{name}' not found")
        except LetterGateError as e:
            return self._failed(name, f"Failed to delete '{name}': {e.message}")
        return SubjectOutcome(subject=name, status=OutcomeStatus.DELETED)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_subjects(subjects_text: str) -> List[str]:
        subjects = parse_subject_list(subjects_text)
        if not subjects:
            raise ValidationError("Subject list is empty", field="subjects")
        return subjects

    @staticmethod
    def _failed(name: str, message: str) -> SubjectOutcome:
        logger.warning(message, extra={"subject": name})
        return SubjectOutcome(subject=name, status=OutcomeStatus.FAILED, errors=[message])
