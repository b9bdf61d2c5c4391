"""Database models."""

from .subject import Subject
from .token import Token
from .grant import Grant

__all__ = ["Subject", "Token", "Grant"]
