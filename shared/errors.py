"""
Shared error handling for the licensing service.

Every error carries a machine-readable code, a message, structured details
and the HTTP status the web layer answers with.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class LicensingException(Exception):
    """Base exception for licensing errors."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidInputError(LicensingException):
    """Malformed input: a missing or mistyped payload field, a bad request body."""

    status_code = 400

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_INPUT", message, details)


class AuthenticationError(LicensingException):
    """Upstream rejected the credentials."""

    status_code = 401

    def __init__(self, message: str = "Unauthenticated", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHENTICATED", message, details)


class AuthorizationError(LicensingException):
    """Upstream refused the operation."""

    status_code = 403

    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__("FORBIDDEN", message, details)


class NotFoundError(LicensingException):
    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class AlreadyExistsError(LicensingException):
    status_code = 409

    def __init__(self, message: str = "Already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__("ALREADY_EXISTS", message, details)


class InternalError(LicensingException):
    """Transport, marshalling or otherwise unexpected failures."""

    status_code = 500

    def __init__(self, message: str = "Internal error", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL", message, details)


def wrap_internal(cause: Exception, message: str) -> InternalError:
    """Wrap ``cause`` into an InternalError, keeping its code for diagnostics."""
    details: Dict[str, Any] = {"cause": str(cause)}
    if isinstance(cause, LicensingException):
        details["cause_code"] = cause.code
        details.update({k: v for k, v in cause.details.items() if k not in details})
    return InternalError(message, details=details)
