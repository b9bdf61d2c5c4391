"""Dense subject x token projection of the grant relation."""

import logging
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from ..exceptions import LetterGateError
from ..schemas.matrix import (
    CORNER_LABEL,
    AccessMatrix,
    CellKind,
    CellState,
    MatrixCell,
)
from ..store import RelationStore
from .grant_service import GrantService

logger = logging.getLogger(__name__)


class MatrixService:
    """Builds the access matrix and toggles data cells."""

    def __init__(self, db: Session):
        self.db = db
        self.store = RelationStore(db)
        self.grants = GrantService(db)

    def build(self) -> AccessMatrix:
        """Snapshot every subject against every token.

        A subject whose lookup fails (for example, deleted after listing)
        gets ERROR cells rather than DENIED ones.
        """
        subjects = self.store.list_subjects()
        tokens = self.store.list_tokens()

        header = [MatrixCell(row=0, col=0, kind=CellKind.CORNER, label=CORNER_LABEL)]
        header.extend(
            MatrixCell(row=0, col=c, kind=CellKind.TOKEN_HEADER, label=value)
            for c, value in enumerate(tokens, start=1)
        )
        rows: List[List[MatrixCell]] = [header]

        for r, name in enumerate(subjects, start=1):
            granted = self._granted_or_none(name)
            row = [MatrixCell(row=r, col=0, kind=CellKind.SUBJECT_HEADER, label=name)]
            for c, value in enumerate(tokens, start=1):
                if granted is None:
                    state = CellState.ERROR
                elif value in granted:
                    state = CellState.GRANTED
                else:
                    state = CellState.DENIED
                row.append(MatrixCell(row=r, col=c, kind=CellKind.DATA, state=state))
            rows.append(row)

        return AccessMatrix(subjects=subjects, tokens=tokens, rows=rows)

    def interact(self, row: int, col: int) -> AccessMatrix:
        """Toggle the data cell at (row, col) and return a fresh matrix.

        Header and out-of-range coordinates mutate nothing. Indices are
        mapped against freshly listed subjects and tokens.
        """
        if row >= 1 and col >= 1:
            subjects = self.store.list_subjects()
            tokens = self.store.list_tokens()
            if row <= len(subjects) and col <= len(tokens):
                name, value = subjects[row - 1], tokens[col - 1]
                try:
                    self.grants.toggle(name, value)
                except LetterGateError as e:
                    logger.warning(
                        "Toggle of %s/%s failed: %s", name, value, e.message,
                        extra={"subject": name, "token": value},
                    )
        return self.build()

    def _granted_or_none(self, name: str) -> Optional[Set[str]]:
        try:
            return self.store.list_granted_tokens(self.store.resolve_subject(name))
        except LetterGateError as e:
            logger.warning("Lookup for %s failed: %s", name, e.message, extra={"subject": name})
            return None
