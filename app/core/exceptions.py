"""Custom exception classes for the application."""
from typing import Any


class AppException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, detail: Any = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class NotFoundError(AppException):
    """Resource not found."""
    pass


class ValidationError(AppException):
    """Malformed or missing field on a create, update or imported row.

    Reported per item; never fatal to a bulk import.
    """
    pass


class RemoteError(AppException):
    """Store call failed. Local catalog state stays at the last known good value."""
    pass


class ConflictError(RemoteError):
    """Write rejected because the property changed since it was read (version mismatch)."""
    pass


class ParseError(AppException):
    """Workbook unreadable, empty or too large. Aborts an import before any row is submitted."""
    pass


class ExportError(AppException):
    """Error during data export."""
    pass
