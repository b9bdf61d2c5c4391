"""LetterGate: who may type which letters."""

__version__ = "1.0.0"
