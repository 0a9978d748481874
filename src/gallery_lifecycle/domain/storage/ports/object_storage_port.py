"""Object Storage Port - Domain interface for S3-compatible storage cleanup.

This port defines the contract the retention sweeps and account teardown use
to remove media from object storage. Adapters implement it for S3, R2, MinIO
or an in-memory fake.

Architecture: Hexagonal - Port interface in domain layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from urllib.parse import urlparse


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


@dataclass
class BatchDeleteResult:
    """Outcome of deleting a set of keys.

    Attributes:
        requested: Number of keys submitted
        deleted: Number of keys the provider did not report as failed
        errors: Human-readable per-key or per-batch failures
    """
    requested: int = 0
    deleted: int = 0
    errors: List[str] = field(default_factory=list)


def storage_key_from_url(file_url: str) -> Optional[str]:
    """Resolve an upload's public URL to its storage key.

    The key is the URL path without its leading slash. Returns None for
    values that do not parse to a non-empty path.

    Example:
        >>> storage_key_from_url("https://media.example.com/events/e1/a.jpg")
        'events/e1/a.jpg'
    """
    if not file_url:
        return None
    try:
        path = urlparse(file_url).path
    except ValueError:
        return None
    key = path[1:] if path.startswith("/") else path
    return key or None


class ObjectStoragePort(ABC):
    """Port interface for S3-compatible object storage cleanup.

    Key Design Principles:
    - Event-scoped keys live under ``events/{event_id}/``
    - Batch deletes are chunked client-side to the provider ceiling (1000)
    - Deleting a missing key is not an error (idempotent)
    """

    @abstractmethod
    def list_keys(self, prefix: str) -> List[str]:
        """List every object key under a prefix.

        Raises:
            StorageError: If listing fails
        """
        pass

    @abstractmethod
    def delete_objects(self, keys: Sequence[str]) -> BatchDeleteResult:
        """Delete keys in quiet-mode batches of at most 1000.

        A failing batch is recorded in the result and the remaining batches
        are still attempted.
        """
        pass

    @abstractmethod
    def delete_object(self, key: str) -> bool:
        """Delete a single key.

        Returns:
            bool: True once the key is gone (including when it never existed)

        Raises:
            StorageError: If deletion fails
        """
        pass

    def delete_prefix(self, prefix: str) -> BatchDeleteResult:
        """List-then-batch-delete everything under a prefix.

        Raises:
            StorageError: If listing fails
        """
        keys = self.list_keys(prefix)
        if not keys:
            return BatchDeleteResult()
        return self.delete_objects(keys)
