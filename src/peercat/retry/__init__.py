"""
PeerCat SDK - Retry Policy.

Retry configuration and capped exponential backoff.
"""

from .config import RetryConfig
from .backoff import calculate_backoff, parse_retry_after

__all__ = [
    "RetryConfig",
    "calculate_backoff",
    "parse_retry_after",
]
