"""Business logic services."""

from .bulk_service import BulkService
from .directory_service import DirectoryService
from .grant_service import GrantService
from .matrix_service import MatrixService
from .sync_service import PermissionChange, PermissionSession, SessionState, filter_text

__all__ = [
    "BulkService",
    "DirectoryService",
    "GrantService",
    "MatrixService",
    "PermissionChange",
    "PermissionSession",
    "SessionState",
    "filter_text",
]
