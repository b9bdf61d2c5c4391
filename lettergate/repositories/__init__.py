"""Data access repositories."""

from .base import BaseRepository
from .subject_repository import SubjectRepository
from .token_repository import TokenRepository
from .grant_repository import GrantRepository

__all__ = [
    "BaseRepository",
    "SubjectRepository",
    "TokenRepository",
    "GrantRepository",
]
