"""
Shared error handling for the Jokes read service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    error: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class JokesServiceException(Exception):
    """Base exception for user-facing service errors."""

    status_code: int = 500

    def __init__(self, code: str, error: str, message: str,
                 details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.error = error
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        # Get trace ID from current span
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            error=self.error,
            message=self.message,
            details=self.details
        )


class DatabaseConnectionError(JokesServiceException):
    """The database could not be reached and no cached data exists."""

    status_code = 503

    def __init__(self,
                 message: str = "The database is currently unavailable. Please try again later.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("DATABASE_CONNECTION_ERROR", "Database connection error", message, details)


class ServiceUnavailableError(JokesServiceException):
    """Generic temporary outage with no cached data to fall back on."""

    status_code = 503

    def __init__(self, message: str = "Please try again later", details: Optional[Dict[str, Any]] = None):
        super().__init__("SERVICE_UNAVAILABLE", "Service temporarily unavailable", message, details)


class InternalServerError(JokesServiceException):
    """Unexpected failure inside the service."""

    status_code = 500

    def __init__(self, message: str = "Please try again later", details: Optional[Dict[str, Any]] = None):
        super().__init__("INTERNAL_ERROR", "Internal server error", message, details)
