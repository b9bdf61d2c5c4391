"""Bulk operation report schemas."""

from enum import Enum
from typing import List

from pydantic import BaseModel


class OutcomeStatus(str, Enum):
    """What happened to one subject in a batch."""
    CREATED = "created"
    GRANTED = "granted"
    UNCHANGED = "unchanged"
    REVOKED = "revoked"
    NOT_REMOVED = "not_removed"
    DELETED = "deleted"
    FAILED = "failed"


class SubjectOutcome(BaseModel):
    """Per-subject result. ``tokens`` lists the tokens actually attached or removed."""
    subject: str
    status: OutcomeStatus
    tokens: List[str] = []
    errors: List[str] = []


class BulkReport(BaseModel):
    """Ordered outcomes plus the flat, ordered list of failure messages."""
    outcomes: List[SubjectOutcome] = []
    failures: List[str] = []

    def record(self, outcome: SubjectOutcome) -> None:
        self.outcomes.append(outcome)
        self.failures.extend(outcome.errors)
        self._count(outcome)

    def _count(self, outcome: SubjectOutcome) -> None:
        """Per-operation counters; subclasses override."""

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def summary(self) -> str:
        """One-line result for the operator. Subclasses name their own counters."""
        return f"Processed subjects: {len(self.outcomes)}. Failures: {len(self.failures)}."


class GrantOrCreateReport(BulkReport):
    """Report for grant-or-create.

    ``granted`` counts existing subjects that got at least one token attached.
    """
    created: int = 0
    granted: int = 0

    def _count(self, outcome: SubjectOutcome) -> None:
        if outcome.status == OutcomeStatus.CREATED:
            self.created += 1
        elif outcome.status == OutcomeStatus.GRANTED:
            self.granted += 1

    def summary(self) -> str:
        return f"Created subjects: {self.created}. Granted to existing subjects: {self.granted}."


class RevokeReport(BulkReport):
    """``revoked`` counts subjects that had at least one grant actually removed."""
    revoked: int = 0

    def _count(self, outcome: SubjectOutcome) -> None:
        if outcome.status == OutcomeStatus.REVOKED:
            self.revoked += 1

    def summary(self) -> str:
        return f"Subjects with permissions removed: {self.revoked}."


class DeleteReport(BulkReport):
    deleted: int = 0

    def _count(self, outcome: SubjectOutcome) -> None:
        if outcome.status == OutcomeStatus.DELETED:
            self.deleted += 1

    def summary(self) -> str:
        return f"Deleted subjects: {self.deleted}."
