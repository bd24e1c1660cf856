"""Common exception hierarchy for object storage backends."""


class StorageError(Exception):
    """Base exception for all storage operations."""

    def __init__(self, message: str, key: str | None = None, cause: Exception | None = None):
        self.key = key
        self.cause = cause
        super().__init__(message)


class StorageNotFoundError(StorageError):
    """Raised when a requested key does not exist."""


class StoragePermissionError(StorageError):
    """Raised when credentials are missing or invalid, or access is denied."""


class StorageTransientError(StorageError):
    """Raised for throttling, timeouts, 5xx responses and unreachable endpoints.

    These are the only storage errors the retry policy will retry.
    """
