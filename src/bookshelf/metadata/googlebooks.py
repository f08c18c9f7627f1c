# ABOUTME: Google Books metadata provider implementation.
# ABOUTME: Queries the public volumes API by ISBN or intitle/inauthor and maps volumes to results.

import logging
from typing import Any

from bookshelf.metadata.cache import TTLCache
from bookshelf.metadata.html import decode_html_entities
from bookshelf.metadata.http import BookshelfHttpClient, HttpClient
from bookshelf.metadata.provider import ADAPTER_ERRORS
from bookshelf.metadata.types import (
    BookMetadataResult,
    MetadataSearchRequest,
    extract_year,
    map_language_code,
    normalize_isbn,
)

logger = logging.getLogger(__name__)

_API_URL = "https://www.googleapis.com/books/v1/volumes"
_MAX_RESULTS = 40

# Largest first.
_COVER_SIZES = ("extraLarge", "large", "medium", "small", "thumbnail")


def build_query(request: MetadataSearchRequest) -> str:
    """Build the ``q`` parameter: ``isbn:`` wins, else intitle/inauthor terms."""
    if request.isbn:
        return f"isbn:{normalize_isbn(request.isbn)}"
    parts = []
    if request.title:
        parts.append(f"intitle:{request.title}")
    if request.author:
        parts.append(f"inauthor:{request.author}")
    return " ".join(parts)


def _upgrade_cover(url: str) -> str:
    return (
        url.replace("http://", "https://", 1)
        .replace("&zoom=1", "&zoom=2", 1)
        .replace("&edge=curl", "", 1)
    )


def parse_volume(item: dict[str, Any]) -> BookMetadataResult:
    """Map one Google Books volume resource to a BookMetadataResult."""
    info = item.get("volumeInfo") or {}

    cover_url = None
    thumbnail_url = None
    links = info.get("imageLinks")
    if links:
        cover_url = next((links[size] for size in _COVER_SIZES if links.get(size)), None)
        thumbnail_url = links.get("thumbnail") or links.get("smallThumbnail")
        if cover_url:
            cover_url = _upgrade_cover(cover_url)
        if thumbnail_url:
            thumbnail_url = thumbnail_url.replace("http://", "https://", 1)

    isbn10 = None
    isbn13 = None
    for identifier in info.get("industryIdentifiers") or []:
        if identifier.get("type") == "ISBN_13":
            isbn13 = identifier.get("identifier")
        elif identifier.get("type") == "ISBN_10":
            isbn10 = identifier.get("identifier")

    published = info.get("publishedDate")
    return BookMetadataResult(
        provider="googlebooks",
        provider_id=item.get("id"),
        title=decode_html_entities(info.get("title")),
        subtitle=decode_html_entities(info.get("subtitle")),
        authors=list(info.get("authors") or []),
        description=decode_html_entities(info.get("description")),
        publisher=info.get("publisher"),
        published_date=published,
        publish_year=extract_year(published),
        page_count=info.get("pageCount"),
        language=map_language_code(info.get("language")),
        isbn10=isbn10,
        isbn13=isbn13,
        cover_url=cover_url,
        thumbnail_url=thumbnail_url,
        genres=list(info.get("categories") or []),
        rating=info.get("averageRating"),
        rating_count=info.get("ratingsCount"),
    )


class GoogleBooksProvider:
    """Metadata provider backed by the Google Books volumes API (no auth)."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        cache: TTLCache[Any] | None = None,
    ) -> None:
        self._http = http_client or BookshelfHttpClient()
        self._cache: TTLCache[Any] = cache or TTLCache()

    @property
    def name(self) -> str:
        return "googlebooks"

    @property
    def display_name(self) -> str:
        return "Google Books"

    @property
    def requires_auth(self) -> bool:
        return False

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]:
        query = build_query(request)
        if not query:
            return []

        cache_key = f"google:{query}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        params = {"q": query, "maxResults": str(min(limit, _MAX_RESULTS))}
        try:
            data = await self._http.get_json(_API_URL, params=params)
            items = data.get("items") or []
            results = [parse_volume(item) for item in items]
        except ADAPTER_ERRORS as exc:
            logger.warning("Google Books search failed for %r: %s", query, exc)
            return []

        if not results:
            return []
        self._cache.set(cache_key, results)
        return results

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None:
        cache_key = f"google:detail:{provider_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            item = await self._http.get_json(f"{_API_URL}/{provider_id}")
            result = parse_volume(item)
        except ADAPTER_ERRORS as exc:
            logger.warning("Google Books details failed for %s: %s", provider_id, exc)
            return None

        self._cache.set(cache_key, result)
        return result

    async def is_available(self) -> bool:
        return True
