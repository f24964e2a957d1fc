"""
Exception classes for PeerCat API operations.

Every error carries an ``ErrorKind`` tag. The ``retryable`` flag is derived
from the tag alone, so callers can either ``except`` a specific class or
match on ``error.kind``.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed request."""

    AUTHENTICATION = "authentication"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    RATE_LIMIT = "rate_limit"
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    SERVER = "server"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.RATE_LIMIT,
        ErrorKind.SERVER,
        ErrorKind.CONNECTION,
        ErrorKind.TIMEOUT,
    }
)


def is_retryable(kind: ErrorKind) -> bool:
    """Return True if re-sending the same request may succeed."""
    return kind in RETRYABLE_KINDS


@dataclass(frozen=True)
class RateLimitInfo:
    """Rate limit state reported by the X-RateLimit-* response headers."""

    limit: int | None = None
    remaining: int | None = None
    reset: int | None = None

    @classmethod
    def from_headers(cls, headers) -> "RateLimitInfo | None":
        """Parse rate limit headers; returns None when none are present."""
        values = {}
        for field_name, header in (
            ("limit", "x-ratelimit-limit"),
            ("remaining", "x-ratelimit-remaining"),
            ("reset", "x-ratelimit-reset"),
        ):
            raw = headers.get(header)
            if raw is None:
                continue
            try:
                values[field_name] = int(raw)
            except ValueError:
                continue
        if not values:
            return None
        return cls(**values)


class PeerCatError(Exception):
    """Base exception for all PeerCat SDK errors."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        param: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.param = param
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return is_retryable(self.kind)

    def __str__(self) -> str:
        parts = [self.message]
        if self.param:
            parts.append(f"[param: {self.param}]")
        if self.status_code:
            parts.append(f"(status: {self.status_code})")
        return " ".join(parts)


class APIError(PeerCatError):
    """Raised for an API error that does not map to a known kind. Not retryable."""

    def __init__(
        self,
        message: str = "Unexpected API error",
        *,
        error_type: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.error_type = error_type


class AuthenticationError(PeerCatError):
    """Raised when the API key is missing, invalid or forbidden. Not retryable."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(message, **kwargs)


class InsufficientCreditsError(PeerCatError):
    """Raised when the account cannot pay for the request. Not retryable."""

    kind = ErrorKind.INSUFFICIENT_CREDITS

    def __init__(self, message: str = "Insufficient credits", **kwargs):
        super().__init__(message, **kwargs)


class RateLimitError(PeerCatError):
    """Raised when rate limit is exceeded. Always retryable."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: float | None = None,
        rate_limit: RateLimitInfo | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
        self.rate_limit = rate_limit


class InvalidRequestError(PeerCatError):
    """Raised when the request is rejected as malformed. Not retryable."""

    kind = ErrorKind.INVALID_REQUEST

    def __init__(self, message: str = "Invalid request", **kwargs):
        super().__init__(message, **kwargs)


class MalformedResponseError(InvalidRequestError):
    """Raised when a successful response body cannot be decoded. Not retryable."""

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(self, message: str = "Malformed response body", **kwargs):
        super().__init__(message, **kwargs)


class NotFoundError(PeerCatError):
    """Raised when the requested resource does not exist. Not retryable."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, **kwargs)


class ServerError(PeerCatError):
    """Raised when the server returns a 5xx error. Usually retryable."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str = "Server error", **kwargs):
        super().__init__(message, **kwargs)


class ConnectionError(PeerCatError):
    """Raised when the connection to the API fails. Usually retryable."""

    kind = ErrorKind.CONNECTION

    def __init__(self, message: str = "Connection failed", **kwargs):
        super().__init__(message, **kwargs)


class TimeoutError(PeerCatError):
    """Raised when request times out. Usually retryable."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Request timed out", **kwargs):
        super().__init__(message, **kwargs)
