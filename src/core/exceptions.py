"""Custom exception classes for the Drawing Tutorial API.

Every error a manager or dependency raises derives from
``DrawingTutorialError`` and carries the HTTP status it maps to. The
handlers in ``core.error_handlers`` render them.
"""

from typing import Dict, Optional


class DrawingTutorialError(Exception):
    """Base exception for all Drawing Tutorial API errors."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message, returned to the caller.
            status_code: Optional override of the class status code.
        """
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def details(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(DrawingTutorialError):
    """Raised when input is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        """Initialize the exception.

        Args:
            message: Summary of the problem.
            fields: Mapping of field name to what is wrong with it.
        """
        super().__init__(message)
        self.fields = fields or {}

    @property
    def details(self) -> Optional[Dict[str, str]]:
        return self.fields or None


class ConflictError(DrawingTutorialError):
    """Raised when a unique field (username, email, ...) is already taken."""

    status_code = 400

    def __init__(self, field: str, message: Optional[str] = None):
        """Initialize the exception.

        Args:
            field: Name of the field that collided.
            message: Optional message; defaults to "<Field> already exists".
        """
        self.field = field
        super().__init__(message or f"{field.capitalize()} already exists")

    @property
    def details(self) -> Optional[Dict[str, str]]:
        return {"field": self.field}


class AuthError(DrawingTutorialError):
    """Raised on bad credentials or an unusable bearer token."""

    status_code = 401

    def __init__(self, message: str = "Not authorized to access this route"):
        super().__init__(message)


class AuthorizationError(DrawingTutorialError):
    """Raised when an authenticated account lacks the required privilege."""

    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFoundError(DrawingTutorialError):
    """Raised when a requested record cannot be found."""

    status_code = 404

    def __init__(self, resource: str, message: Optional[str] = None):
        """Initialize the exception.

        Args:
            resource: Kind of record, e.g. "User" or "Drawing".
            message: Optional message; defaults to "<resource> not found".
        """
        self.resource = resource
        super().__init__(message or f"{resource} not found")


class StorageUnavailableError(DrawingTutorialError):
    """Raised when the store times out or refuses a connection. Retryable."""

    status_code = 503

    def __init__(self, message: str = "Storage temporarily unavailable, please retry"):
        super().__init__(message)


class ImageStorageError(DrawingTutorialError):
    """Raised when the binary object store rejects an upload or delete."""

    status_code = 502

    def __init__(self, message: str = "Image storage error"):
        super().__init__(message)
