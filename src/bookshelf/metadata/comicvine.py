# ABOUTME: ComicVine metadata provider for comic issues and volumes.
# ABOUTME: Needs an API key passed as a query parameter; without one it reports unavailable.

import logging
from typing import Any

from bookshelf.metadata.cache import TTLCache
from bookshelf.metadata.html import decode_html_entities, strip_html
from bookshelf.metadata.http import BookshelfHttpClient, HttpClient, MetadataFetchError
from bookshelf.metadata.provider import ADAPTER_ERRORS
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest, extract_year

logger = logging.getLogger(__name__)

_API_URL = "https://comicvine.gamespot.com/api"
_RATE_LIMIT_SECONDS = 1.0

# Resource type prefixes in ComicVine ids.
_ISSUE_PREFIX = "4000"
_VOLUME_PREFIX = "4050"

_SEARCH_FIELDS = "api_detail_url,cover_date,description,id,image,issue_number,name,publisher,volume"
_ISSUE_FIELDS = "id,name,description,image,issue_number,cover_date,volume,person_credits,publisher"
_VOLUME_FIELDS = "id,name,description,image,start_year,count_of_issues,publisher"

API_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "BookShelf/2.0 (Book and Comic Metadata Fetcher)",
}


class ComicVineApiError(Exception):
    """The API answered, but with something other than error == "OK"."""


def _description(value: str | None) -> str | None:
    return decode_html_entities(strip_html(value)) or None


def _issue_number(value: Any) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _images(image: dict[str, Any] | None) -> tuple[str | None, str | None]:
    """(cover, thumbnail) from a ComicVine image block."""
    image = image or {}
    return image.get("super_url") or image.get("original_url"), image.get("medium_url")


def _name(item: dict[str, Any], key: str) -> str | None:
    return (item.get(key) or {}).get("name")


def parse_search_item(item: dict[str, Any]) -> BookMetadataResult:
    """Map a search hit (issue or volume) to a result."""
    cover_url, thumbnail_url = _images(item.get("image"))
    cover_date = item.get("cover_date")
    return BookMetadataResult(
        provider="comicvine",
        provider_id=str(item["id"]),
        title=decode_html_entities(item.get("name")) or "Unknown",
        description=_description(item.get("description")),
        thumbnail_url=thumbnail_url,
        cover_url=cover_url,
        series_name=_name(item, "volume"),
        series_number=_issue_number(item.get("issue_number")),
        published_date=cover_date,
        publish_year=extract_year(cover_date),
        publisher=_name(item, "publisher"),
    )


def parse_issue(issue: dict[str, Any]) -> BookMetadataResult:
    """Map an issue record; writers from person_credits become the authors."""
    writers = [
        credit["name"]
        for credit in issue.get("person_credits") or []
        if "writer" in (credit.get("role") or "").lower() and credit.get("name")
    ]
    cover_url, thumbnail_url = _images(issue.get("image"))
    cover_date = issue.get("cover_date")
    return BookMetadataResult(
        provider="comicvine",
        provider_id=str(issue["id"]),
        title=decode_html_entities(issue.get("name")) or "Unknown",
        authors=writers,
        description=_description(issue.get("description")),
        cover_url=cover_url,
        thumbnail_url=thumbnail_url,
        series_name=_name(issue, "volume"),
        series_number=_issue_number(issue.get("issue_number")),
        published_date=cover_date,
        publish_year=extract_year(cover_date),
    )


def parse_volume(volume: dict[str, Any]) -> BookMetadataResult:
    """Map a volume record; the volume itself is the series."""
    cover_url, thumbnail_url = _images(volume.get("image"))
    start_year = volume.get("start_year")
    name = decode_html_entities(volume.get("name"))
    return BookMetadataResult(
        provider="comicvine",
        provider_id=str(volume["id"]),
        title=name or "Unknown",
        description=_description(volume.get("description")),
        cover_url=cover_url,
        thumbnail_url=thumbnail_url,
        series_name=name,
        series_total=volume.get("count_of_issues"),
        publish_year=int(start_year) if start_year and str(start_year).isdigit() else None,
        publisher=_name(volume, "publisher"),
    )


class ComicVineProvider:
    """Metadata provider backed by the ComicVine REST API (API key, 1 request/second)."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        cache: TTLCache[Any] | None = None,
        api_key: str | None = None,
    ) -> None:
        self._http = http_client or BookshelfHttpClient(
            min_request_interval=_RATE_LIMIT_SECONDS, headers=API_HEADERS
        )
        self._cache: TTLCache[Any] = cache or TTLCache()
        self._api_key = api_key or None

    @property
    def name(self) -> str:
        return "comicvine"

    @property
    def display_name(self) -> str:
        return "ComicVine"

    @property
    def requires_auth(self) -> bool:
        return True

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def set_api_key(self, api_key: str | None) -> None:
        self._api_key = api_key or None

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        if not self._api_key:
            raise ComicVineApiError("ComicVine API key not configured")
        query = {"api_key": self._api_key, "format": "json", **params}
        data = await self._http.get_json(f"{_API_URL}{path}", params=query)
        if data.get("error") != "OK" or not data.get("results"):
            raise ComicVineApiError(f"ComicVine API error: {data.get('error')}")
        return data["results"]

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]:
        if not self._api_key:
            logger.warning("ComicVine: API key not configured")
            return []

        term = request.title or request.author
        if not term:
            return []

        cache_key = f"cv:search:{term}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        params = {
            "resources": "volume,issue",
            "query": term,
            "limit": str(limit),
            "field_list": _SEARCH_FIELDS,
        }
        try:
            items = await self._get("/search/", params)
            results = [parse_search_item(item) for item in items[:limit]]
        except (*ADAPTER_ERRORS, ComicVineApiError) as exc:
            logger.warning("ComicVine search failed for %r: %s", term, exc)
            return []

        self._cache.set(cache_key, results)
        return results

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None:
        """Look the id up as an issue first, then as a volume."""
        if not self._api_key:
            logger.warning("ComicVine: API key not configured")
            return None

        cache_key = f"cv:detail:{provider_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            result = await self._fetch_issue(provider_id) or await self._fetch_volume(provider_id)
        except ADAPTER_ERRORS as exc:
            logger.warning("ComicVine details failed for %s: %s", provider_id, exc)
            return None

        if result is not None:
            self._cache.set(cache_key, result)
        return result

    async def _fetch_issue(self, issue_id: str) -> BookMetadataResult | None:
        try:
            issue = await self._get(f"/issue/{_ISSUE_PREFIX}-{issue_id}/", {"field_list": _ISSUE_FIELDS})
        except (MetadataFetchError, ComicVineApiError) as exc:
            logger.debug("ComicVine id %s is not an issue: %s", issue_id, exc)
            return None
        return parse_issue(issue)

    async def _fetch_volume(self, volume_id: str) -> BookMetadataResult | None:
        try:
            volume = await self._get(
                f"/volume/{_VOLUME_PREFIX}-{volume_id}/", {"field_list": _VOLUME_FIELDS}
            )
        except (MetadataFetchError, ComicVineApiError) as exc:
            logger.debug("ComicVine id %s is not a volume: %s", volume_id, exc)
            return None
        return parse_volume(volume)

    async def is_available(self) -> bool:
        return self.has_api_key
