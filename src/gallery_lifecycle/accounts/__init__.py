"""Account teardown: deletion preview, full user deletion and deep cleanup by email."""

from .schemas import DeepCleanupResult, DeletionPreview, DeletionResult, DeletionSummary
from .service import AccountDeletionError, AccountTeardownService, UserNotFoundError

__all__ = [
    "AccountDeletionError",
    "AccountTeardownService",
    "DeepCleanupResult",
    "DeletionPreview",
    "DeletionResult",
    "DeletionSummary",
    "UserNotFoundError",
]
