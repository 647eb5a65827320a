"""
Shared error handling for the Users Access Layer.

Page-level errors (TransportError, UpstreamStatusError, DecodeError) are
isolated per page by the aggregator. EncodeError is logged by the caller.
CacheConnectionError always reaches the request boundary as a 500.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class UsersServiceException(Exception):
    """Base exception for Users Access Layer services."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self, trace_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class TransportError(UsersServiceException):
    """Network or connection failure while talking to the upstream provider."""

    def __init__(self, message: str = "Upstream transport failure", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_ERROR", message, details, status_code=502)


class UpstreamStatusError(UsersServiceException):
    """Upstream provider answered with a non-success status."""

    def __init__(self, upstream_status: int, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.upstream_status = upstream_status
        super().__init__(
            "UPSTREAM_STATUS_ERROR",
            message or f"Unexpected status code: {upstream_status}",
            {"status_code": upstream_status, **(details or {})},
            status_code=502,
        )


class DecodeError(UsersServiceException):
    """Payload does not parse as the expected schema."""

    def __init__(self, message: str = "Payload could not be decoded", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details, status_code=502)


class EncodeError(UsersServiceException):
    """Record set could not be serialized."""

    def __init__(self, message: str = "Error encoding users", details: Optional[Dict[str, Any]] = None):
        super().__init__("ENCODE_ERROR", message, details, status_code=500)


class CacheConnectionError(UsersServiceException):
    """Cache store could not be reached or rejected a command."""

    def __init__(self, message: str = "Cache store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_CONNECTION_ERROR", message, details, status_code=500)
