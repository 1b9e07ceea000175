"""
Shared error handling for the PTAlts client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error description."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AltsClientException(Exception):
    """Base exception for the PTAlts client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class RequestError(AltsClientException):
    """Request/response API errors."""

    def __init__(self, message: str = "Request failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("REQUEST_ERROR", message, details)

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class StreamConnectionError(AltsClientException):
    """Failure to open an event stream (transport error or non-200 status)."""

    def __init__(self, message: str = "Failed to establish SSE connection", details: Optional[Dict[str, Any]] = None):
        super().__init__("STREAM_CONNECTION_ERROR", message, details)

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")


class ValidationError(AltsClientException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class SubscriptionActiveError(AltsClientException):
    """A feed already holds a live subscription."""

    def __init__(self, feed: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("SUBSCRIPTION_ACTIVE", f"{feed}: already subscribed", details)


class SessionError(AltsClientException):
    """Session lifecycle misuse."""

    def __init__(self, message: str = "Session error", details: Optional[Dict[str, Any]] = None):
        super().__init__("SESSION_ERROR", message, details)


class InvalidEventKindError(AltsClientException, ValueError):
    """Listener registered for an event kind outside the supported set."""

    def __init__(self, kind: Any):
        super().__init__(
            "INVALID_EVENT_KIND",
            f"Unsupported event kind: {kind!r}",
            {"kind": repr(kind)}
        )
