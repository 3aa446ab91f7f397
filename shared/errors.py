"""
Shared error handling for the Contact Message Service.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    code: str
    details: Dict[str, Any] = {}


class ContactServiceError(Exception):
    """Base exception for contact service failures."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.headers = headers or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message, code=self.code, details=self.details)


class ValidationFailure(ContactServiceError):
    """Submission is missing a field or breaks a length limit."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class PayloadTooLarge(ContactServiceError):
    """Request body exceeds the accepted size."""

    status_code = 413

    def __init__(self, limit: int):
        super().__init__("PAYLOAD_TOO_LARGE", "Request body too large.", {"limit_bytes": limit})


class RateLimited(ContactServiceError):
    """Submitter exceeded its quota for the current window."""

    status_code = 429

    def __init__(
        self,
        message: str = "Too many submissions, please wait a bit.",
        retry_after: int = 0,
        headers: Optional[Dict[str, str]] = None,
    ):
        merged = dict(headers or {})
        merged["Retry-After"] = str(retry_after)
        super().__init__("RATE_LIMITED", message, {"retry_after": retry_after}, merged)


class Unauthorized(ContactServiceError):
    """Credentials absent or wrong. Rendered as a plain-text challenge."""

    status_code = 401

    def __init__(self, realm: str, message: str = "Authentication required."):
        super().__init__(
            "UNAUTHORIZED",
            message,
            headers={"WWW-Authenticate": f'Basic realm="{realm}"'},
        )


class StorageFailure(ContactServiceError):
    """Persisted collection could not be read or written."""

    status_code = 500

    def __init__(self, message: str = "Storage error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_ERROR", message, details)
