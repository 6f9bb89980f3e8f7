"""
Exceptions raised by the grant store.

Validation errors signal caller misuse and always propagate. Backend
errors are caught at the boundary of mutating and bulk operations and
reported through the observer instead of being raised.
"""

from typing import Optional


class GrantStoreError(Exception):
    """Base exception for grant store errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class ValidationError(GrantStoreError, ValueError):
    """Raised when a required identifier is missing."""
    pass


class SerializationError(GrantStoreError):
    """Raised when a grant cannot be encoded."""
    pass


class DeserializationError(GrantStoreError):
    """Raised when a stored payload is not a valid grant encoding."""
    pass


class BackendError(GrantStoreError):
    """Raised when the underlying key-value store rejects an operation."""
    pass


def require(value: Optional[str], name: str) -> str:
    """
    Ensure an identifier is present.

    Args:
        value: Identifier value
        name: Parameter name used in the error message

    Returns:
        The identifier

    Raises:
        ValidationError: If the identifier is None or empty
    """
    if not value:
        raise ValidationError(f"{name} is required")
    return value
