"""
Backoff calculation and Retry-After parsing.
"""

import logging
import math
import random
from contextlib import suppress
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from .config import RetryConfig

logger = logging.getLogger(__name__)


def calculate_backoff(
    attempt: int,
    config: RetryConfig,
    retry_after: float | None = None,
) -> float:
    """
    Calculate the wait before the retry that follows a failed attempt.

    Args:
        attempt: Zero-based number of the attempt that just failed
        config: Retry configuration
        retry_after: Server-provided hint in seconds, if any

    Returns:
        Delay in seconds, never above config.max_delay
    """
    if retry_after is not None and config.respect_retry_after:
        return min(max(0.0, retry_after), config.max_delay)

    try:
        delay = min(math.ldexp(config.base_delay, attempt), config.max_delay)
    except OverflowError:
        delay = config.max_delay

    if config.jitter > 0:
        jitter_amount = delay * config.jitter * (2 * random.random() - 1)
        delay = min(delay + jitter_amount, config.max_delay)

    return max(0.0, delay)


def parse_retry_after(value: str | None) -> float | None:
    """
    Parse a Retry-After header value.

    Accepts either a number of seconds ("120") or an HTTP-date
    ("Wed, 21 Oct 2015 07:28:00 GMT"). Dates in the past yield 0.0.

    Returns:
        Seconds to wait, or None if absent or unparseable
    """
    if value is None:
        return None

    with suppress(ValueError):
        return max(0.0, float(value))

    try:
        retry_date = parsedate_to_datetime(value)
        delta = (retry_date - datetime.now(timezone.utc)).total_seconds()
        return max(0.0, delta)
    except (ValueError, TypeError, OverflowError):
        logger.debug(f"Failed to parse Retry-After header: {value!r}")
        return None
