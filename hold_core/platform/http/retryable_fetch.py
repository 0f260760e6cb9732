from typing import Any, Optional

import anyio
import httpx

from hold_core.platform.concurrency.delay_strategy import IDelayStrategy, JitterDelay
from hold_core.platform.exception.exceptions import UpstreamRequestError, UpstreamTimeoutError
from hold_core.platform.logging.loguru_io import Logger


DEFAULT_TIMEOUT_SECONDS = 10.0


def is_retryable_status(status_code: int) -> bool:
    """Rate limited or server error"""
    return status_code == 429 or 500 <= status_code <= 599


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    retry: bool = True,
    backoff: Optional[IDelayStrategy] = None,
    **request_kwargs: Any,
) -> httpx.Response:
    """
    One logical HTTP call with a deadline and at most one retry.

    The deadline covers both attempts and the backoff between them. A 429 or
    5xx first response triggers a single retry after a randomized backoff;
    whatever the second attempt returns is handed back as-is.

    Raises:
        UpstreamTimeoutError: the deadline passed
        UpstreamRequestError: any other httpx failure
    """
    backoff = backoff or JitterDelay(min_ms=200, max_ms=400)
    try:
        with anyio.fail_after(timeout_seconds):
            response = await client.request(method, url, **request_kwargs)
            if retry and is_retryable_status(response.status_code):
                Logger.base.warning(
                    f'🔁 [HTTP] {method} {url} returned {response.status_code}, retrying once'
                )
                await response.aclose()
                await backoff.pause()
                response = await client.request(method, url, **request_kwargs)
            return response
    except TimeoutError as e:
        raise UpstreamTimeoutError(
            f'{method} {url} exceeded {timeout_seconds}s', timeout_seconds=timeout_seconds
        ) from e
    except httpx.TimeoutException as e:
        raise UpstreamTimeoutError(
            f'{method} {url} timed out: {e}', timeout_seconds=timeout_seconds
        ) from e
    except httpx.HTTPError as e:
        # Transport failures, redirect loops, undecodable bodies, bad URLs
        raise UpstreamRequestError(f'{method} {url} failed: {type(e).__name__}: {e}') from e
