"""
Domain errors raised by the grading services.

Each error carries the HTTP status it is rendered with; handlers in
app.main translate them into the standard error_response payload.
"""

from typing import Optional, Any, Dict


class GradebookError(Exception):
    """Base exception for all gradebook errors."""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = details or {}


class ValidationError(GradebookError):
    """Raised when request data is malformed."""
    status_code = 400
    default_message = "Invalid request"


class InvalidWeights(ValidationError):
    """Raised when grade weights are not non-negative integers totalling 100."""
    default_message = "Percentages must total 100%"


class InvalidScore(ValidationError):
    """Raised when a score or max score is not a usable number."""
    default_message = "Invalid score"


class NotFound(GradebookError):
    status_code = 404
    default_message = "Not found"


class Forbidden(GradebookError):
    status_code = 403
    default_message = "Access denied"


class Conflict(GradebookError):
    status_code = 409
    default_message = "Resource already exists"


class StoreUnavailable(GradebookError):
    """Raised when the external data store fails. Never retried here."""
    status_code = 500
    default_message = "Data store unavailable"
