# ABOUTME: Open Library metadata provider implementation.
# ABOUTME: Searches openlibrary.org by ISBN or free text and resolves works for details.

import logging
from typing import Any

from bookshelf.metadata.cache import TTLCache
from bookshelf.metadata.http import BookshelfHttpClient, HttpClient, MetadataFetchError
from bookshelf.metadata.openlibrary_parser import (
    SEARCH_FIELDS,
    parse_author_keys,
    parse_books_api_record,
    parse_search_results,
    parse_work,
)
from bookshelf.metadata.provider import ADAPTER_ERRORS
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest, normalize_isbn

logger = logging.getLogger(__name__)

_OL_BASE = "https://openlibrary.org"
_MAX_SEARCH_ROWS = 40
_AUTHOR_LOOKUP_LIMIT = 5


class OpenLibraryProvider:
    """Metadata provider backed by the Open Library API.

    ISBN requests go through the books API (one precise record); everything
    else uses the free-text search endpoint. Details resolve a works key and
    up to five of its authors.
    """

    def __init__(
        self,
        http_client: HttpClient | None = None,
        cache: TTLCache[Any] | None = None,
    ) -> None:
        self._http = http_client or BookshelfHttpClient()
        self._cache: TTLCache[Any] = cache or TTLCache()

    @property
    def name(self) -> str:
        return "openlibrary"

    @property
    def display_name(self) -> str:
        return "Open Library"

    @property
    def requires_auth(self) -> bool:
        return False

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]:
        if request.isbn:
            return await self._search_by_isbn(normalize_isbn(request.isbn))

        query = " ".join(part for part in (request.title, request.author) if part)
        if not query:
            return []

        cache_key = f"ol:search:{query}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached[:limit]

        params = {
            "q": query,
            "limit": str(min(limit * 2, _MAX_SEARCH_ROWS)),
            "fields": SEARCH_FIELDS,
        }
        try:
            data = await self._http.get_json(f"{_OL_BASE}/search.json", params=params)
            results = parse_search_results(data)
        except ADAPTER_ERRORS as exc:
            logger.warning("Open Library search failed for %r: %s", query, exc)
            return []

        if not results:
            return []
        self._cache.set(cache_key, results)
        return results[:limit]

    async def _search_by_isbn(self, isbn: str) -> list[BookMetadataResult]:
        cache_key = f"ol:isbn:{isbn}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return [cached]

        bibkey = f"ISBN:{isbn}"
        params = {"bibkeys": bibkey, "format": "json", "jscmd": "data"}
        try:
            data = await self._http.get_json(f"{_OL_BASE}/api/books", params=params)
            record = data.get(bibkey)
            if not record:
                return []
            result = parse_books_api_record(record, isbn)
        except ADAPTER_ERRORS as exc:
            logger.warning("Open Library ISBN lookup failed for %s: %s", isbn, exc)
            return []

        self._cache.set(cache_key, result)
        return [result]

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None:
        """Fetch a work by key (e.g. ``/works/OL123W``) with its author names."""
        cache_key = f"ol:detail:{provider_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            work = await self._http.get_json(f"{_OL_BASE}{provider_id}.json")
            authors = await self._resolve_authors(parse_author_keys(work, _AUTHOR_LOOKUP_LIMIT))
            result = parse_work(work, provider_id, authors)
        except ADAPTER_ERRORS as exc:
            logger.warning("Open Library details failed for %s: %s", provider_id, exc)
            return None

        self._cache.set(cache_key, result)
        return result

    async def _resolve_authors(self, author_keys: list[str]) -> list[str]:
        """Fetch author names one by one; individual failures are skipped."""
        names: list[str] = []
        for key in author_keys:
            try:
                author = await self._http.get_json(f"{_OL_BASE}{key}.json")
            except MetadataFetchError:
                continue
            name = author.get("name") if isinstance(author, dict) else None
            if name:
                names.append(name)
        return names

    async def is_available(self) -> bool:
        return True
