"""Custom exception hierarchy for LetterGate."""

from enum import Enum
from typing import Optional, Dict, Any, Union


class ErrorCode(str, Enum):
    """Standardized error codes for structured error output."""

    # Lookup errors
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"

    # Uniqueness conflicts
    NAME_CONFLICT = "NAME_CONFLICT"
    TOKEN_CONFLICT = "TOKEN_CONFLICT"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Permission session misuse
    INVALID_SESSION_STATE = "INVALID_SESSION_STATE"


class LetterGateError(Exception):
    """
    Base exception for all LetterGate errors.

    Provides structured errors with:
    - Human-readable message
    - Machine-readable error code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            details: Optional additional context/details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for JSON output.

        Returns:
            Dictionary with error, message, and details fields
        """
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class SubjectNotFoundError(LetterGateError):
    """Subject name or id does not resolve in the store."""

    def __init__(self, subject: Union[str, int]):
        super().__init__(
            f"Subject not found: {subject}",
            ErrorCode.SUBJECT_NOT_FOUND,
            details={"subject": subject}
        )


class TokenNotFoundError(LetterGateError):
    """Token character or id does not resolve in the store."""

    def __init__(self, token: Union[str, int]):
        super().__init__(
            f"Token not found: {token}",
            ErrorCode.TOKEN_NOT_FOUND,
            details={"token": token}
        )


class NameConflictError(LetterGateError):
    """Rename target is already used by a different subject."""

    def __init__(self, name: str):
        super().__init__(
            f"Subject name already taken: {name}",
            ErrorCode.NAME_CONFLICT,
            details={"name": name}
        )


class TokenConflictError(LetterGateError):
    """Rename target is already used by a different token."""

    def __init__(self, token: str):
        super().__init__(
            f"Token already exists: {token}",
            ErrorCode.TOKEN_CONFLICT,
            details={"token": token}
        )


class ValidationError(LetterGateError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            details=details
        )


class SessionStateError(LetterGateError):
    """Operation is not valid in the permission session's current state."""

    def __init__(self, message: str, state: str):
        super().__init__(
            message,
            ErrorCode.INVALID_SESSION_STATE,
            details={"state": state}
        )


class DatabaseError(LetterGateError):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            details=details
        )
