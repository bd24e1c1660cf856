"""Single-object storage backends for S3 and GCS with optimistic concurrency."""

from .base import (
    ABSENT_FINGERPRINT,
    Conflict,
    ObjectSnapshot,
    StorageBackend,
    WriteResult,
    Written,
)
from .exceptions import (
    StorageError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageTransientError,
)
from .factory import create_storage_backend
from .retry import RetryPolicy

__all__ = [
    "ABSENT_FINGERPRINT",
    "Conflict",
    "ObjectSnapshot",
    "RetryPolicy",
    "StorageBackend",
    "StorageError",
    "StorageNotFoundError",
    "StoragePermissionError",
    "StorageTransientError",
    "WriteResult",
    "Written",
    "create_storage_backend",
]
