"""Exceptions raised by the analytics services and stores."""

from typing import Any


class AnalyticsError(Exception):
    """Base exception carrying an HTTP-ish status and a machine-readable code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AnalyticsError):
    """Malformed input, reported before any state is touched."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class NotFoundError(AnalyticsError):
    """The requested entity does not exist (as opposed to existing with no data)."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource


class StorageError(AnalyticsError):
    """Stored data could not be read back."""

    code = "STORAGE_ERROR"
