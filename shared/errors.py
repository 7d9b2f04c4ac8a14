"""
Shared error handling for the CO2 bridge services.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ServiceException(Exception):
    """Base exception for CO2 bridge services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(ServiceException):
    """Inbound request failed its schema constraints."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UpstreamError(ServiceException):
    """The upstream provider answered with an error status or could not be reached."""

    status_code = 502

    def __init__(
        self,
        message: str = "Upstream error",
        status: Optional[int] = None,
        body: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: str = "UPSTREAM_ERROR",
    ):
        self.status = status
        self.body = body
        merged = {"upstream_status": status, "upstream_body": body}
        merged.update(details or {})
        super().__init__(code, message, merged)

    @classmethod
    def from_status(cls, service: str, status: int, body: str) -> "UpstreamError":
        """Build the error for an upstream response with status >= 400."""
        return cls(f"{service} {status}: {body}", status=status, body=body)


class UpstreamTimeoutError(UpstreamError):
    """The upstream call did not complete within the configured deadline."""

    status_code = 504

    def __init__(self, message: str = "Upstream timed out", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details, code="UPSTREAM_TIMEOUT")


class ParseError(ServiceException):
    """The upstream payload could not be decoded or lacks required fields."""

    status_code = 502

    def __init__(self, message: str = "Malformed upstream payload", details: Optional[Dict[str, Any]] = None):
        super().__init__("PARSE_ERROR", message, details)
