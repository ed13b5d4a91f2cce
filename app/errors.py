"""Exception hierarchy for the intake API.

Each error carries the HTTP status, a machine-readable code and the message
that is safe to show to the caller. The FastAPI handler in main.py turns
them into the error envelope.
"""

from typing import Optional


class ApiError(Exception):
    """Base exception for all request-level errors."""

    status_code = 500
    code = "INTERNAL_ERROR"
    public_message = "Internal server error"
    reportable = True

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.public_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "error": self.message, "code": self.code}
        return body


class ValidationError(ApiError):
    """Input failed validation; carries field-level detail."""

    status_code = 400
    code = "VALIDATION_ERROR"
    public_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[list[dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class MalformedBodyError(ValidationError):
    """Request body is not a JSON object."""

    code = "INVALID_JSON"
    public_message = "Invalid JSON in request body"


class SlotUnavailableError(ValidationError):
    """The requested appointment slot already holds a live booking."""

    status_code = 409
    code = "SLOT_UNAVAILABLE"
    public_message = "The selected time slot is no longer available"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    public_message = "Resource not found"
    reportable = False


class RateLimitError(ApiError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    public_message = "Too many requests. Please try again later."
    reportable = False

    def __init__(self, message: Optional[str] = None, retry_after: int = 60):
        super().__init__(message)
        self.retry_after = retry_after


class DatabaseError(ApiError):
    """Storage operation failed. The detail is logged, never returned."""

    status_code = 500
    code = "DATABASE_ERROR"
    public_message = "Database operation failed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(self.public_message)
        self.detail = detail
