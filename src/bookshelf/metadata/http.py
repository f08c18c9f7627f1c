# ABOUTME: Async HTTP client abstraction for metadata provider calls.
# ABOUTME: Provides per-instance rate limiting and injectable transport for testing.

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "BookShelf/2.0 (Book Metadata Fetcher)"


class MetadataFetchError(Exception):
    """Raised when an HTTP request to a metadata provider fails."""


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the outbound calls metadata adapters make."""

    async def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any: ...

    async def get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str: ...

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any: ...


class BookshelfHttpClient:
    """HTTP client with a minimum inter-request interval.

    Wraps httpx.AsyncClient. Callers under the interval wait for the
    remainder instead of being rejected. Failures are never retried.
    """

    def __init__(
        self,
        *,
        min_request_interval: float = 0.0,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.headers: dict[str, str] = {"User-Agent": DEFAULT_USER_AGENT}
        if headers:
            self.headers.update(headers)
        self._timeout = timeout
        self._transport = transport
        self._min_interval = min_request_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: float | None = None

    async def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Send a GET request and decode the JSON body.

        Raises:
            MetadataFetchError: On transport errors, non-2xx status, or bad JSON.
        """
        response = await self._send("GET", url, params=params, headers=headers)
        return self._decode_json(url, response)

    async def get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """Send a GET request and return the body as text."""
        response = await self._send("GET", url, params=params, headers=headers)
        return response.text

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST a JSON payload and decode the JSON response."""
        response = await self._send("POST", url, json=payload, headers=headers)
        return self._decode_json(url, response)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        await self._rate_limit()

        client_kwargs: dict[str, Any] = {
            "headers": {**self.headers, **(headers or {})},
            "timeout": self._timeout,
            "follow_redirects": True,
        }
        if self._transport is not None:
            client_kwargs["transport"] = self._transport

        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            raise MetadataFetchError(f"Request failed: {url}: {exc}") from exc

        if not response.is_success:
            raise MetadataFetchError(f"HTTP {response.status_code} from {url}")
        return response

    @staticmethod
    def _decode_json(url: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MetadataFetchError(f"Invalid JSON from {url}: {exc}") from exc

    async def _rate_limit(self) -> None:
        """Wait if needed to maintain the minimum interval between requests."""
        if self._min_interval <= 0:
            return
        if self._last_request_time is not None:
            elapsed = self._clock() - self._last_request_time
            if elapsed < self._min_interval:
                wait = self._min_interval - elapsed
                logger.debug("Rate limit: waiting %.2fs", wait)
                await self._sleep(wait)
        self._last_request_time = self._clock()
