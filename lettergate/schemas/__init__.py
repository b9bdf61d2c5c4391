"""Input parsing and output schemas."""

from .bulk import (
    OutcomeStatus,
    SubjectOutcome,
    BulkReport,
    GrantOrCreateReport,
    RevokeReport,
    DeleteReport,
)
from .matrix import AccessMatrix, CellKind, CellState, MatrixCell
from .validation import (
    parse_subject_list,
    parse_token_list,
    validate_subject_name,
    validate_token_value,
)

__all__ = [
    "OutcomeStatus", "SubjectOutcome", "BulkReport",
    "GrantOrCreateReport", "RevokeReport", "DeleteReport",
    "AccessMatrix", "CellKind", "CellState", "MatrixCell",
    "parse_subject_list", "parse_token_list",
    "validate_subject_name", "validate_token_value",
]
