"""
PeerCat SDK - Exception Hierarchy.

Typed errors for API operations, each tagged with an ErrorKind.
"""

from .base import (
    APIError,
    AuthenticationError,
    ConnectionError,
    ErrorKind,
    InsufficientCreditsError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    PeerCatError,
    RateLimitError,
    RateLimitInfo,
    ServerError,
    TimeoutError,
    is_retryable,
)

__all__ = [
    "APIError",
    "AuthenticationError",
    "ConnectionError",
    "ErrorKind",
    "InsufficientCreditsError",
    "InvalidRequestError",
    "MalformedResponseError",
    "NotFoundError",
    "PeerCatError",
    "RateLimitError",
    "RateLimitInfo",
    "ServerError",
    "TimeoutError",
    "is_retryable",
]
