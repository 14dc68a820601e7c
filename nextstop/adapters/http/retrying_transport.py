from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping

import httpx

from nextstop.adapters.http.retry_policy import RetryPolicy
from nextstop.domain.exceptions.transport import (
    HttpError,
    NetworkError,
    RequestFailedError,
    TransportError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_HEADERS: Mapping[str, str] = {
    "Accept": "application/json",
    "User-Agent": "nextstop/0.1",
}


class RetryingTransport:
    """HTTP calls bounded by a per-attempt timeout and a retry policy.

    Failures are classified as HttpError (non-2xx), UpstreamTimeoutError or
    NetworkError. After the last attempt the last classified error is raised
    as-is.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        policy: RetryPolicy | None = None,
        default_headers: Mapping[str, str] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {timeout_s}")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self._timeout_s = timeout_s
        self._policy = policy or RetryPolicy()
        self._headers = dict(DEFAULT_HEADERS if default_headers is None else default_headers)
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def _attempt(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        timeout_s: float,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            # wait_for cancels the in-flight request when the deadline passes.
            resp = await asyncio.wait_for(
                self._client.request(
                    method, url, headers=headers, timeout=timeout_s, **kwargs
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeoutError(url, timeout_s) from e
        except httpx.TransportError as e:
            raise NetworkError(url, e) from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise RequestFailedError(url, e) from e

        if not resp.is_success:
            raise HttpError(resp.status_code, url, resp.text or None)
        return resp

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_s: float | None = None,
        policy: RetryPolicy | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        active = policy or self._policy
        merged = {**self._headers, **(headers or {})}
        deadline = timeout_s or self._timeout_s

        last_error: TransportError | None = None
        for attempt in range(active.max_retries + 1):
            try:
                return await self._attempt(
                    method, url, headers=merged, timeout_s=deadline, **kwargs
                )
            except TransportError as e:
                last_error = e

            is_last = attempt >= active.max_retries
            if is_last or not active.should_retry(last_error):
                break

            delay = active.delay_for(attempt)
            logger.warning(
                "Upstream call failed, retrying",
                extra={
                    "url": url,
                    "attempt": attempt + 1,
                    "delay_s": round(delay, 3),
                    "error": type(last_error).__name__,
                },
            )
            await self._sleep(delay)

        if last_error is None:
            raise RuntimeError("Retry loop finished without an attempt")
        logger.error(
            "Upstream call failed",
            extra={"url": url, "method": method, "error": str(last_error)},
        )
        raise last_error

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, *, json: Any = None, **kwargs: Any) -> httpx.Response:
        headers = {"Content-Type": "application/json", **(kwargs.pop("headers", None) or {})}
        return await self.request("POST", url, json=json, headers=headers, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        resp = await self.get(url, **kwargs)
        return resp.json()

    async def get_bytes(self, url: str, **kwargs: Any) -> bytes:
        resp = await self.get(url, **kwargs)
        return resp.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
