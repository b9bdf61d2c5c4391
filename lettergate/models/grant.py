"""Grant model."""

from sqlalchemy import Column, ForeignKey, Index, Integer
from ..database import Base


class Grant(Base):
    """Subject x token permission pair. The pair is the identity; no payload."""

    __tablename__ = "grants"
    __table_args__ = (
        Index("ix_grants_token_id", "token_id"),
    )

    subject_id = Column(
        Integer,
        ForeignKey("subjects.id", ondelete="CASCADE"),
        primary_key=True,
    )
    token_id = Column(
        Integer,
        ForeignKey("tokens.id", ondelete="CASCADE"),
        primary_key=True,
    )
