"""Access matrix schemas."""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel

CORNER_LABEL = "subject \\ token"

_STATE_SYMBOLS = {
    "granted": "✓",
    "denied": "✗",
    "error": "!",
}


class CellKind(str, Enum):
    CORNER = "corner"
    TOKEN_HEADER = "token_header"
    SUBJECT_HEADER = "subject_header"
    DATA = "data"


class CellState(str, Enum):
    """State of a data cell. ERROR means the lookup failed, not 'no access'."""
    GRANTED = "granted"
    DENIED = "denied"
    ERROR = "error"


class MatrixCell(BaseModel):
    row: int
    col: int
    kind: CellKind
    label: str = ""
    state: Optional[CellState] = None

    @property
    def is_data(self) -> bool:
        return self.kind == CellKind.DATA


class AccessMatrix(BaseModel):
    """Dense (subjects+1) x (tokens+1) grid; row 0 and column 0 are headers."""
    subjects: List[str]
    tokens: List[str]
    rows: List[List[MatrixCell]]

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.subjects) + 1, len(self.tokens) + 1

    def cell(self, row: int, col: int) -> MatrixCell:
        return self.rows[row][col]

    def state(self, subject: str, token: str) -> CellState:
        """State of the data cell for *subject* x *token*."""
        row = self.subjects.index(subject) + 1
        col = self.tokens.index(token) + 1
        return self.rows[row][col].state

    def render(self) -> str:
        """Plain-text table: ✓ granted, ✗ denied, ! lookup error."""
        texts = [
            [_STATE_SYMBOLS[c.state.value] if c.is_data else c.label for c in row]
            for row in self.rows
        ]
        widths = [max(len(row[i]) for row in texts) for i in range(len(texts[0]))]
        lines = []
        for row in texts:
            lines.append(" | ".join(text.ljust(widths[i]) for i, text in enumerate(row)).rstrip())
        return "\n".join(lines)
