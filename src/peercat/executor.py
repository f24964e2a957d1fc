"""
Request executor.

Sends a request, classifies the outcome and retries retryable failures with
capped exponential backoff.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from .config import USER_AGENT, ClientConfig
from .exceptions import (
    APIError,
    AuthenticationError,
    ConnectionError,
    InsufficientCreditsError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    PeerCatError,
    RateLimitError,
    RateLimitInfo,
    ServerError,
    TimeoutError,
)
from .request import RequestDescriptor
from .retry import calculate_backoff, parse_retry_after

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ERRORS_BY_TYPE: dict[str, type[PeerCatError]] = {
    "authentication_error": AuthenticationError,
    "invalid_request_error": InvalidRequestError,
    "insufficient_credits": InsufficientCreditsError,
    "rate_limit_error": RateLimitError,
    "not_found": NotFoundError,
}


def _error_detail(response: httpx.Response) -> dict:
    """Extract the ``error`` object from an error response body, if any."""
    try:
        body = response.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    detail = body.get("error")
    if isinstance(detail, dict):
        return detail
    # Some gateways return the error fields unwrapped
    if "message" in body:
        return body
    return {}


def _body_retry_after(detail: dict) -> float | None:
    value = detail.get("retryAfter", detail.get("retry_after"))
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return None


def classify_response(response: httpx.Response) -> PeerCatError:
    """
    Convert a non-2xx response into the matching PeerCatError.

    The status code decides first; the body's ``error.type`` is only
    consulted for credit errors and for statuses with no fixed mapping.
    """
    status = response.status_code
    detail = _error_detail(response)
    error_type = detail.get("type")
    if not isinstance(error_type, str):
        error_type = None
    kwargs = {
        "code": detail.get("code"),
        "param": detail.get("param"),
        "status_code": status,
    }
    message = detail.get("message")
    if not isinstance(message, str) or not message:
        message = f"HTTP {status} {response.reason_phrase}".strip()

    if status in (401, 403):
        return AuthenticationError(message, **kwargs)
    if status == 402 or error_type == "insufficient_credits":
        return InsufficientCreditsError(message, **kwargs)
    if status == 429:
        retry_after = parse_retry_after(response.headers.get("retry-after"))
        if retry_after is None:
            retry_after = _body_retry_after(detail)
        return RateLimitError(
            message,
            retry_after=retry_after,
            rate_limit=RateLimitInfo.from_headers(response.headers),
            **kwargs,
        )
    if status in (400, 422):
        return InvalidRequestError(message, **kwargs)
    if status == 404:
        return NotFoundError(message, **kwargs)
    if status >= 500:
        return ServerError(message, **kwargs)

    error_class = _ERRORS_BY_TYPE.get(error_type)
    if error_class is not None:
        return error_class(message, **kwargs)
    return APIError(message, error_type=error_type, **kwargs)


class RequestExecutor:
    """
    Executes API requests with classification and retry.

    The executor holds no per-call state: any number of ``execute`` calls
    may run concurrently over the same instance and HTTP client.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: ClientConfig,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        """
        Initialize the executor.

        Args:
            http_client: Connection pool to borrow connections from
            config: Client configuration (base URL, timeout, retry policy)
            sleep: Coroutine used to wait between attempts (default: asyncio.sleep)
        """
        self.http_client = http_client
        self.config = config
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        request: RequestDescriptor,
        decode: Callable[[Any], T],
    ) -> T:
        """
        Send the request, retrying retryable failures.

        Args:
            request: What to send
            decode: Converts the parsed JSON body into the result type

        Returns:
            The decoded payload of the first successful response

        Raises:
            PeerCatError: The classification of the last attempt, if it was
                not retryable or retries are exhausted
        """
        retry = self.config.retry
        waited = 0.0

        for attempt in range(retry.max_retries + 1):
            try:
                return await self._send(request, decode)
            except PeerCatError as e:
                if not e.retryable or attempt >= retry.max_retries:
                    raise
                delay = calculate_backoff(
                    attempt, retry, getattr(e, "retry_after", None)
                )
                logger.debug(
                    f"{request.method} {request.path} failed ({e.kind.value}), "
                    f"retry {attempt + 1}/{retry.max_retries} in {delay:.2f}s "
                    f"(waited {waited:.2f}s so far)"
                )
                await self._sleep(delay)
                waited += delay

        raise RuntimeError("Retry loop exited unexpectedly")

    async def _send(self, request: RequestDescriptor, decode: Callable[[Any], T]) -> T:
        """Perform one attempt and classify its outcome."""
        timeout = self.config.timeout
        try:
            response = await self.http_client.request(
                request.method,
                f"{self.config.base_url}{request.path}",
                headers=request.headers(USER_AGENT),
                json=request.body,
                params=request.params,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out after {timeout}s") from e
        except httpx.TransportError as e:
            raise ConnectionError(f"Failed to connect to PeerCat: {e}") from e

        if not response.is_success:
            raise classify_response(response)

        try:
            # An empty body decodes as None; result types reject it
            return decode(response.json() if response.content else None)
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedResponseError(
                f"Could not decode response from {request.path}: {e}",
                status_code=response.status_code,
            ) from e
