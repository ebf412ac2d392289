"""
Provider Error Classification

Maps failures at the balance API boundary to a fixed set of kinds so callers
can tell transport problems apart from errors reported by the API itself.
"""

from enum import Enum
from typing import Dict, Optional


class ApiErrorKind(str, Enum):
    """Classification of a failed provider call."""

    TRANSPORT_ERROR = "transport_error"   # No HTTP response (timeout, DNS, refused)
    INVALID_REQUEST = "invalid_request"   # 400
    UNAUTHORIZED = "unauthorized"         # 401
    FORBIDDEN = "forbidden"               # 403
    NOT_FOUND = "not_found"               # 404
    RATE_LIMITED = "rate_limited"         # 429
    SERVER_ERROR = "server_error"         # 500
    UNAVAILABLE = "unavailable"           # 503
    UNEXPECTED = "unexpected"             # Anything else


STATUS_CLASSIFICATION: Dict[int, ApiErrorKind] = {
    400: ApiErrorKind.INVALID_REQUEST,
    401: ApiErrorKind.UNAUTHORIZED,
    403: ApiErrorKind.FORBIDDEN,
    404: ApiErrorKind.NOT_FOUND,
    429: ApiErrorKind.RATE_LIMITED,
    500: ApiErrorKind.SERVER_ERROR,
    503: ApiErrorKind.UNAVAILABLE,
}

STATUS_MESSAGES: Dict[ApiErrorKind, str] = {
    ApiErrorKind.INVALID_REQUEST: "Invalid request parameters",
    ApiErrorKind.UNAUTHORIZED: "Invalid or missing API key",
    ApiErrorKind.FORBIDDEN: "Access denied",
    ApiErrorKind.NOT_FOUND: "Resource not found",
    ApiErrorKind.RATE_LIMITED: "Rate limit exceeded, try again later",
    ApiErrorKind.SERVER_ERROR: "Server error, try again later",
    ApiErrorKind.UNAVAILABLE: "Service temporarily unavailable",
    ApiErrorKind.UNEXPECTED: "An unexpected error occurred",
}

# Reason phrases used in error log lines
STATUS_REASONS: Dict[ApiErrorKind, str] = {
    ApiErrorKind.INVALID_REQUEST: "Bad Request",
    ApiErrorKind.UNAUTHORIZED: "Unauthorized",
    ApiErrorKind.FORBIDDEN: "Forbidden",
    ApiErrorKind.NOT_FOUND: "Not Found",
    ApiErrorKind.RATE_LIMITED: "Too Many Requests",
    ApiErrorKind.SERVER_ERROR: "Internal Server Error",
    ApiErrorKind.UNAVAILABLE: "Service Unavailable",
    ApiErrorKind.UNEXPECTED: "Unexpected Error",
}


def classify_status(status_code: int) -> ApiErrorKind:
    """Classify a non-200 HTTP status code."""
    return STATUS_CLASSIFICATION.get(status_code, ApiErrorKind.UNEXPECTED)


class ProviderError(Exception):
    """Base provider error carrying its classification."""

    def __init__(
        self,
        message: str,
        kind: ApiErrorKind = ApiErrorKind.UNEXPECTED,
        status_code: Optional[int] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.source = source

    @property
    def is_transport_error(self) -> bool:
        return self.kind == ApiErrorKind.TRANSPORT_ERROR

    def to_dict(self) -> Dict[str, Optional[object]]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "source": self.source,
        }


class DebankError(ProviderError):
    """Error raised or returned by the DeBank provider."""
    pass
