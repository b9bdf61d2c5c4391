"""Token model."""

from sqlalchemy import Column, Integer, String
from ..database import Base


class Token(Base):
    """A single permitted character.

    ``value`` holds exactly one code point and is compared case-sensitively,
    so 'a', 'A' and 'а' (Cyrillic) are three distinct tokens.
    """

    __tablename__ = "tokens"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    value = Column(String(1), nullable=False, unique=True)
