"""Subject model."""

from sqlalchemy import Column, Integer, String
from ..database import Base

# Names longer than this are rejected before any write.
MAX_SUBJECT_NAME_LENGTH = 256


class Subject(Base):
    """A named holder of letter permissions.

    The id is assigned by the store and never reused (``sqlite_autoincrement``),
    but callers hold names, not ids: every operation resolves the name again.
    """

    __tablename__ = "subjects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(MAX_SUBJECT_NAME_LENGTH), nullable=False, unique=True)
