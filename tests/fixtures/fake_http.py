# ABOUTME: Fake async HTTP client and httpx transport for metadata provider tests.
# ABOUTME: Responses are keyed by URL substring; Exception values are raised instead of returned.

from typing import Any

import httpx


class FakeHttpClient:
    """Fake HttpClient that returns canned responses based on URL patterns.

    The first pattern contained in the requested URL wins. Unmatched URLs
    return ``default`` ({} for JSON calls, "" for text calls when unset).
    """

    def __init__(self, responses: dict[str, Any] | None = None, default: Any = None) -> None:
        self._responses = responses or {}
        self._default = default
        self.calls: list[dict[str, Any]] = []

    @property
    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]

    def _lookup(self, url: str, fallback: Any) -> Any:
        for pattern, response in self._responses.items():
            if pattern in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return fallback if self._default is None else self._default

    async def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        self.calls.append({"method": "GET", "url": url, "params": params, "headers": headers})
        return self._lookup(url, {})

    async def get_text(
        self,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        self.calls.append({"method": "GET", "url": url, "params": params, "headers": headers})
        return self._lookup(url, "")

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> Any:
        self.calls.append({"method": "POST", "url": url, "payload": payload, "headers": headers})
        return self._lookup(url, {})


class FakeAsyncTransport(httpx.AsyncBaseTransport):
    """Fake transport for httpx.AsyncClient that replays canned responses in order."""

    def __init__(self, responses: list[httpx.Response | Exception] | None = None) -> None:
        self._responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(200, json={"ok": True})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.requests)
