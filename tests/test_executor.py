"""Tests for the request executor - classification and retry behavior."""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from peercat.config import ClientConfig
from peercat.exceptions import (
    APIError,
    AuthenticationError,
    ConnectionError,
    InsufficientCreditsError,
    InvalidRequestError,
    MalformedResponseError,
    NotFoundError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from peercat.executor import RequestExecutor, classify_response
from peercat.request import RequestDescriptor
from peercat.retry import RetryConfig
from peercat.types import Balance


# --- Helpers ---


def create_response(
    status_code: int,
    json_data: dict | None = None,
    text: str = "",
    headers: dict | None = None,
) -> httpx.Response:
    """Create a mock response with a proper request object."""
    request = httpx.Request("GET", "https://api.test/v1/balance")
    if json_data is not None:
        return httpx.Response(
            status_code, json=json_data, headers=headers, request=request
        )
    return httpx.Response(status_code, text=text, headers=headers, request=request)


def api_error(error_type: str, message: str = "error", **extra) -> dict:
    return {"error": {"type": error_type, "code": "code", "message": message, **extra}}


BALANCE = {
    "credits": 9.72,
    "totalDeposited": 10.0,
    "totalSpent": 0.28,
    "totalWithdrawn": 0.0,
    "totalGenerated": 1,
}


def make_config(max_retries: int = 2, **retry_kwargs) -> ClientConfig:
    return ClientConfig(
        api_key="test_api_key",
        base_url="https://api.test",
        timeout=5.0,
        retry=RetryConfig(max_retries=max_retries, **retry_kwargs),
    )


# --- Fixtures ---


@pytest_asyncio.fixture
async def http_client():
    """Connection pool that is never used; every test patches AsyncClient.request."""
    client = httpx.AsyncClient()
    yield client
    await client.aclose()


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def descriptor():
    return RequestDescriptor(method="get", path="/v1/balance", api_key="test_api_key")


def make_executor(http_client, sleep, **config_kwargs) -> RequestExecutor:
    return RequestExecutor(http_client, make_config(**config_kwargs), sleep=sleep)


# --- Classification ---


class TestClassifyResponse:
    """Test mapping of error responses to exceptions."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, AuthenticationError),
            (403, AuthenticationError),
            (402, InsufficientCreditsError),
            (429, RateLimitError),
            (400, InvalidRequestError),
            (422, InvalidRequestError),
            (404, NotFoundError),
            (500, ServerError),
            (502, ServerError),
            (503, ServerError),
        ],
    )
    def test_status_decides_class(self, status, expected):
        error = classify_response(create_response(status, text="oops"))

        assert type(error) is expected
        assert error.status_code == status

    def test_credits_body_wins_over_400(self):
        """A credits-specific body is classified as insufficient credits."""
        response = create_response(400, api_error("insufficient_credits", "Add credits"))

        error = classify_response(response)

        assert isinstance(error, InsufficientCreditsError)
        assert error.message == "Add credits"

    def test_body_context_is_kept(self):
        response = create_response(
            400,
            api_error("invalid_request_error", "Prompt too long", param="prompt"),
        )

        error = classify_response(response)

        assert error.message == "Prompt too long"
        assert error.param == "prompt"
        assert error.code == "code"

    def test_rate_limit_reads_retry_after_header(self):
        response = create_response(
            429,
            api_error("rate_limit_error"),
            headers={"Retry-After": "7", "X-RateLimit-Remaining": "0"},
        )

        error = classify_response(response)

        assert error.retry_after == 7.0
        assert error.rate_limit.remaining == 0

    def test_rate_limit_falls_back_to_body_retry_after(self):
        response = create_response(429, api_error("rate_limit_error", retryAfter=12))

        assert classify_response(response).retry_after == 12.0

    def test_rate_limit_without_hint(self):
        assert classify_response(create_response(429)).retry_after is None

    def test_unmapped_status_uses_body_type(self):
        response = create_response(409, api_error("not_found", "gone"))

        assert isinstance(classify_response(response), NotFoundError)

    def test_unknown_error_becomes_api_error(self):
        response = create_response(418, api_error("teapot_error", "short and stout"))

        error = classify_response(response)

        assert type(error) is APIError
        assert error.error_type == "teapot_error"
        assert error.retryable is False

    def test_unwrapped_error_body(self):
        response = create_response(500, {"message": "Something went wrong"})

        error = classify_response(response)

        assert isinstance(error, ServerError)
        assert error.message == "Something went wrong"

    def test_non_json_error_body_gets_generic_message(self):
        error = classify_response(create_response(500, text="invalid error json"))

        assert "500" in error.message


# --- Execution ---


class TestExecuteSuccess:
    """Test successful execution."""

    @pytest.mark.asyncio
    async def test_decodes_payload(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(200, BALANCE)

            result = await executor.execute(descriptor, Balance.from_dict)

        assert result.credits == 9.72
        assert result.total_generated == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_auth_headers_and_url(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(200, BALANCE)

            await executor.execute(descriptor, Balance.from_dict)

            args = mock_request.call_args.args
            kwargs = mock_request.call_args.kwargs
            assert args == ("GET", "https://api.test/v1/balance")
            assert kwargs["headers"]["Authorization"] == "Bearer test_api_key"
            assert kwargs["headers"]["Content-Type"] == "application/json"
            assert kwargs["headers"]["User-Agent"].startswith("peercat-python/")
            assert kwargs["timeout"] == 5.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["not valid json {", "", '{"credits": 1}'])
    async def test_malformed_body_is_not_retried(self, http_client, sleep, descriptor, body):
        """A 2xx with an undecodable body fails once, without retry."""
        executor = make_executor(http_client, sleep)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(200, text=body)

            with pytest.raises(MalformedResponseError) as exc_info:
                await executor.execute(descriptor, Balance.from_dict)

            assert exc_info.value.retryable is False
            assert mock_request.call_count == 1
        sleep.assert_not_awaited()


class TestExecuteRetry:
    """Test retry decisions and backoff waits."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, AuthenticationError),
            (402, InsufficientCreditsError),
            (400, InvalidRequestError),
            (404, NotFoundError),
        ],
    )
    async def test_non_retryable_sends_once(
        self, http_client, sleep, descriptor, status, expected
    ):
        """Permanent failures return immediately with zero waits."""
        executor = make_executor(http_client, sleep, max_retries=3)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(status, text="nope")

            with pytest.raises(expected):
                await executor.execute(descriptor, Balance.from_dict)

            assert mock_request.call_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_server_errors_exhaust_retries_with_backoff(
        self, http_client, sleep, descriptor
    ):
        """max_retries=2, base=1, cap=10: three sends, waits of 1s then 2s."""
        executor = make_executor(
            http_client, sleep, max_retries=2, base_delay=1.0, max_delay=10.0
        )

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(500, text="boom")

            with pytest.raises(ServerError):
                await executor.execute(descriptor, Balance.from_dict)

            assert mock_request.call_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_rate_limit_honors_retry_after(self, http_client, sleep, descriptor):
        """A 429 with Retry-After: 7 waits 7s, not the computed 1s."""
        executor = make_executor(http_client, sleep, max_retries=2)
        responses = [
            create_response(429, api_error("rate_limit_error"), headers={"Retry-After": "7"}),
            create_response(200, BALANCE),
        ]

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = responses

            result = await executor.execute(descriptor, Balance.from_dict)

            assert result.credits == 9.72
            assert mock_request.call_count == 2
        sleep.assert_awaited_once_with(7.0)

    @pytest.mark.asyncio
    async def test_retries_timeouts_then_succeeds(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep, max_retries=2)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = [
                httpx.ReadTimeout("timed out"),
                create_response(200, BALANCE),
            ]

            result = await executor.execute(descriptor, Balance.from_dict)

            assert result.credits == 9.72
        sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_timeout_is_terminal_after_retries(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep, max_retries=1)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = httpx.ConnectTimeout("timed out")

            with pytest.raises(TimeoutError):
                await executor.execute(descriptor, Balance.from_dict)

            assert mock_request.call_count == 2

    @pytest.mark.asyncio
    async def test_connection_error_is_retried(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep, max_retries=2)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = httpx.ConnectError("Connection refused")

            with pytest.raises(ConnectionError) as exc_info:
                await executor.execute(descriptor, Balance.from_dict)

            assert mock_request.call_count == 3
            assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_no_retry_config_sends_once(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep, max_retries=0)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(503, text="busy")

            with pytest.raises(ServerError):
                await executor.execute(descriptor, Balance.from_dict)

            assert mock_request.call_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backoff_is_capped(self, http_client, sleep, descriptor):
        executor = make_executor(
            http_client, sleep, max_retries=5, base_delay=1.0, max_delay=3.0
        )

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(500, text="boom")

            with pytest.raises(ServerError):
                await executor.execute(descriptor, Balance.from_dict)

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 3.0, 3.0, 3.0]


    @pytest.mark.asyncio
    async def test_many_retries_end_in_server_error(self, http_client, sleep, descriptor):
        """Attempt numbers past float range still surface the classified error."""
        executor = make_executor(
            http_client, sleep, max_retries=1500, base_delay=0.0, max_delay=0.0
        )

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(500, text="boom")

            with pytest.raises(ServerError):
                await executor.execute(descriptor, Balance.from_dict)

            assert mock_request.call_count == 1501


class TestExecuteConcurrency:
    """Test that concurrent calls on one executor do not block each other."""

    @pytest.mark.asyncio
    async def test_backoff_wait_does_not_delay_other_calls(self, http_client, descriptor):
        waiting = asyncio.Event()

        async def slow_sleep(delay):
            waiting.set()
            await asyncio.sleep(60)

        executor = RequestExecutor(http_client, make_config(max_retries=3), sleep=slow_sleep)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = [
                create_response(503, text="busy"),
                create_response(200, BALANCE),
            ]

            first = asyncio.create_task(executor.execute(descriptor, Balance.from_dict))
            await waiting.wait()

            second = await asyncio.wait_for(
                executor.execute(descriptor, Balance.from_dict), timeout=5
            )

            assert second.credits == 9.72
            assert not first.done()
            assert mock_request.call_count == 2

            first.cancel()
            with pytest.raises(asyncio.CancelledError):
                await first

    @pytest.mark.asyncio
    async def test_concurrent_calls_leave_config_unchanged(self, http_client, sleep, descriptor):
        executor = make_executor(http_client, sleep, max_retries=1)
        config = executor.config

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(200, BALANCE)

            results = await asyncio.gather(
                *(executor.execute(descriptor, Balance.from_dict) for _ in range(5))
            )

        assert [r.credits for r in results] == [9.72] * 5
        assert executor.config is config
        assert config == make_config(max_retries=1)


class TestExecuteCancellation:
    """Test cancellation at each suspension point."""

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_never_sends_retry(self, http_client, descriptor):
        waiting = asyncio.Event()

        async def slow_sleep(delay):
            waiting.set()
            await asyncio.sleep(60)

        executor = RequestExecutor(http_client, make_config(max_retries=3), sleep=slow_sleep)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.return_value = create_response(503, text="busy")

            task = asyncio.create_task(executor.execute(descriptor, Balance.from_dict))
            await waiting.wait()
            task.cancel()

            with pytest.raises(asyncio.CancelledError):
                await task

            assert mock_request.call_count == 1

    @pytest.mark.asyncio
    async def test_cancel_during_send_propagates(self, http_client, sleep, descriptor):
        sending = asyncio.Event()

        async def hanging_request(*args, **kwargs):
            sending.set()
            await asyncio.sleep(60)

        executor = make_executor(http_client, sleep, max_retries=3)

        with patch.object(
            httpx.AsyncClient, "request", new_callable=AsyncMock
        ) as mock_request:
            mock_request.side_effect = hanging_request

            task = asyncio.create_task(executor.execute(descriptor, Balance.from_dict))
            await sending.wait()
            task.cancel()

            with pytest.raises(asyncio.CancelledError):
                await task

            assert mock_request.call_count == 1
        sleep.assert_not_awaited()


class TestRequestDescriptor:
    """Test descriptor construction."""

    def test_method_is_normalized(self, descriptor):
        assert descriptor.method == "GET"

    def test_rejects_empty_credential(self):
        with pytest.raises(ValueError):
            RequestDescriptor(method="GET", path="/v1/balance", api_key="")

    def test_rejects_relative_path(self):
        with pytest.raises(ValueError):
            RequestDescriptor(method="GET", path="v1/balance", api_key="key")
