"""
Unit tests for fetch_with_retry

Uses httpx.MockTransport so no network is touched.
"""

from collections.abc import Callable

import anyio
import httpx
import pytest

from hold_core.platform.concurrency.delay_strategy import NoDelay
from hold_core.platform.exception.exceptions import UpstreamRequestError, UpstreamTimeoutError
from hold_core.platform.http.retryable_fetch import fetch_with_retry, is_retryable_status


URL = 'https://crm.example.test/items'


def _sequenced_client(statuses: list[int], calls: list[httpx.Request]) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        status = statuses[min(len(calls) - 1, len(statuses) - 1)]
        return httpx.Response(status, json={'attempt': len(calls)})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _client(handler: Callable) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestIsRetryableStatus:
    @pytest.mark.unit
    @pytest.mark.parametrize('status', [429, 500, 502, 503, 599])
    def test_retryable(self, status: int) -> None:
        assert is_retryable_status(status)

    @pytest.mark.unit
    @pytest.mark.parametrize('status', [200, 201, 400, 401, 404, 409])
    def test_not_retryable(self, status: int) -> None:
        assert not is_retryable_status(status)


class TestFetchWithRetry:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_is_not_retried(self) -> None:
        calls: list[httpx.Request] = []
        async with _sequenced_client([200], calls) as client:
            response = await fetch_with_retry(client, 'GET', URL, backoff=NoDelay())

        assert response.status_code == 200
        assert len(calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error_retried_once_then_succeeds(self) -> None:
        calls: list[httpx.Request] = []
        async with _sequenced_client([503, 200], calls) as client:
            response = await fetch_with_retry(client, 'GET', URL, backoff=NoDelay())

        assert response.status_code == 200
        assert response.json() == {'attempt': 2}
        assert len(calls) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rate_limited_twice_returns_second_response(self) -> None:
        # At most one extra attempt; the caller gets the final 429
        calls: list[httpx.Request] = []
        async with _sequenced_client([429, 429, 200], calls) as client:
            response = await fetch_with_retry(client, 'POST', URL, backoff=NoDelay(), json={})

        assert response.status_code == 429
        assert len(calls) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retry_disabled(self) -> None:
        calls: list[httpx.Request] = []
        async with _sequenced_client([500, 200], calls) as client:
            response = await fetch_with_retry(client, 'GET', URL, retry=False, backoff=NoDelay())

        assert response.status_code == 500
        assert len(calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self) -> None:
        calls: list[httpx.Request] = []
        async with _sequenced_client([404, 200], calls) as client:
            response = await fetch_with_retry(client, 'GET', URL, backoff=NoDelay())

        assert response.status_code == 404
        assert len(calls) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_kwargs_are_forwarded(self) -> None:
        calls: list[httpx.Request] = []
        async with _sequenced_client([200], calls) as client:
            await fetch_with_retry(
                client,
                'GET',
                URL,
                backoff=NoDelay(),
                params={'site_id': 'eq.S1'},
                headers={'X-Request-Id': 'req-1'},
            )

        assert calls[0].url.params['site_id'] == 'eq.S1'
        assert calls[0].headers['X-Request-Id'] == 'req-1'

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_deadline_raises_upstream_timeout(self) -> None:
        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await anyio.sleep(1)
            return httpx.Response(200)

        async with _client(slow_handler) as client:
            with pytest.raises(UpstreamTimeoutError) as exc_info:
                await fetch_with_retry(client, 'GET', URL, timeout_seconds=0.05, backoff=NoDelay())

        assert exc_info.value.status_code == 504
        assert exc_info.value.timeout_seconds == 0.05

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_deadline_covers_the_retry(self) -> None:
        # First attempt is fast but retryable, second one hangs past the deadline
        attempts: list[int] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) == 2:
                await anyio.sleep(1)
            return httpx.Response(503)

        async with _client(handler) as client:
            with pytest.raises(UpstreamTimeoutError):
                await fetch_with_retry(client, 'GET', URL, timeout_seconds=0.05, backoff=NoDelay())

        assert len(attempts) == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_error_raises_upstream_request_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        async with _client(handler) as client:
            with pytest.raises(UpstreamRequestError) as exc_info:
                await fetch_with_retry(client, 'GET', URL, backoff=NoDelay())

        assert 'ConnectError' in exc_info.value.message

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        'error',
        [httpx.DecodingError('bad gzip'), httpx.TooManyRedirects('redirect loop')],
    )
    async def test_other_httpx_errors_raise_upstream_request_error(
        self, error: httpx.HTTPError
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        async with _client(handler) as client:
            with pytest.raises(UpstreamRequestError) as exc_info:
                await fetch_with_retry(client, 'GET', URL, backoff=NoDelay())

        assert type(error).__name__ in exc_info.value.message
