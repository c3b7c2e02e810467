"""
Error taxonomy for the subject analyzer.

Every rejection the request pipeline can produce is an ``AnalyzerError``
carrying the HTTP status it maps to and, where the client can act on it,
a ``retry_after`` hint in seconds.
"""

from typing import Any, Dict, Optional


class AnalyzerError(Exception):
    """Base exception for the subject analyzer."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    # Server-side failures answer with a generic message only
    expose_message: bool = True

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        details: Optional[Any] = None
    ):
        self.message = message
        self.retry_after = retry_after
        self.details = details
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        """Convert to the JSON body returned to the client."""
        message = self.message if self.expose_message else "Internal server error"
        body: Dict[str, Any] = {"error": message, "code": self.code}
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        if self.details is not None:
            body["details"] = self.details
        return body


class NonRetryableError(AnalyzerError):
    """Marker base for errors the admission gate must never retry."""


class CapacityError(NonRetryableError):
    """Admission gate is saturated."""

    status_code = 503
    code = "AT_CAPACITY"

    def __init__(
        self,
        message: str = "Service temporarily overloaded. Please try again in a moment.",
        retry_after: Optional[int] = 5
    ):
        super().__init__(message, retry_after=retry_after)


class RateLimitError(NonRetryableError):
    """Client exceeded its request quota for the current window."""

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(
        self,
        retry_after: int,
        reset_time: Optional[float] = None,
        message: str = "Rate limit exceeded. Please try again later."
    ):
        super().__init__(message, retry_after=retry_after)
        self.reset_time = reset_time


class RequestValidationFailed(NonRetryableError):
    """Request body failed validation."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, details: Optional[Any] = None, message: str = "Invalid input"):
        super().__init__(message, details=details)


class UpstreamTimeoutError(AnalyzerError):
    """Upstream call did not settle within the per-attempt deadline."""

    code = "UPSTREAM_TIMEOUT"
    expose_message = False

    def __init__(self, timeout: float):
        super().__init__(f"Upstream request timed out after {timeout:g}s")
        self.timeout = timeout


class UpstreamFailureError(AnalyzerError):
    """Upstream call failed."""

    code = "UPSTREAM_FAILURE"
    expose_message = False
