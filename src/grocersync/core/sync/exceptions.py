"""
Custom exceptions for state synchronization.

This module defines the error taxonomy used by the reconciliation engine,
providing structured error handling with context preservation.

Exception Hierarchy:
    SyncError (base)
    ├── NetworkUnavailableError (device is offline, nothing attempted)
    ├── TransportError (I/O or HTTP 5xx failure, retried)
    │   └── RetriesExhaustedError (retry budget used up)
    ├── ServerRejectedError (non-success response, not retried)
    ├── LocalStoreError (local persistence failure, not retried)
    └── ConfigurationError (unusable settings, raised before any sync)

Example:
    >>> from grocersync.core.sync.exceptions import TransportError
    >>> try:
    ...     raise TransportError("Connection reset", url="https://api.example.com")
    ... except TransportError as e:
    ...     print(f"{e} ({e.context})")
"""


class SyncError(Exception):
    """
    Base exception for all sync errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        """
        Initialize a sync error with message and context.

        Args:
            message: Human-readable error message
            **context: Additional context as keyword arguments
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class NetworkUnavailableError(SyncError):
    """
    Raised when the connectivity guard reports the device as offline.

    No network attempt is made and nothing is retried.
    """

    def __init__(self, message: str = "No network connectivity", **context: object) -> None:
        super().__init__(message, **context)


class TransportError(SyncError):
    """
    Exception for transient transport failures.

    Raised for connection errors, timeouts and HTTP 5xx responses. These
    are the only failures the retry executor retries. The original httpx
    exception is preserved via the __cause__ attribute.
    """


class RetriesExhaustedError(TransportError):
    """
    Raised once an operation has failed on every allowed attempt.

    Attributes:
        attempts: Number of calls made before giving up
        last_error: The failure observed on the final attempt
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        """
        Initialize from the attempt count and the last failure.

        Args:
            attempts: Number of calls made
            last_error: Exception raised by the final attempt
        """
        super().__init__(
            f"Operation failed after {attempts} attempts: {last_error}",
            attempts=attempts,
        )
        self.attempts = attempts
        self.last_error = last_error


class ServerRejectedError(SyncError):
    """
    Exception for responses the server explicitly refused.

    Covers HTTP 4xx, bodies with ``success: false`` and bodies that do not
    match the expected shape. Retrying a rejection is pointless, so these
    propagate immediately.

    Attributes:
        status_code: HTTP status code, if the rejection came from one
    """

    def __init__(self, message: str, status_code: int | None = None, **context: object) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class LocalStoreError(SyncError):
    """
    Exception for local persistence failures.

    Raised when reading or writing cached entity state fails due to file
    I/O errors, permission issues, or data corruption.

    Example:
        >>> try:
        ...     path.read_text()
        ... except OSError as e:
        ...     raise LocalStoreError("Failed to read cart state", path=str(path)) from e
    """


class ConfigurationError(SyncError):
    """
    Exception for settings a sync service cannot be built from.

    The offending value is kept in ``context["base_url"]``; it is None when
    no API base URL was configured at all.
    """


__all__ = [
    "SyncError",
    "NetworkUnavailableError",
    "TransportError",
    "RetriesExhaustedError",
    "ServerRejectedError",
    "LocalStoreError",
    "ConfigurationError",
]
