# ABOUTME: Hardcover metadata provider using the Hardcover GraphQL API.
# ABOUTME: Requires a bearer token; search hits already carry full details.

import logging
import re
from typing import Any

from bookshelf.metadata.cache import TTLCache
from bookshelf.metadata.html import decode_html_entities
from bookshelf.metadata.http import BookshelfHttpClient, HttpClient
from bookshelf.metadata.provider import ADAPTER_ERRORS
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest, extract_year

logger = logging.getLogger(__name__)

_API_URL = "https://api.hardcover.app/v1/graphql"
_MAX_PER_PAGE = 20

SEARCH_QUERY = """
query SearchBooks($query: String!, $perPage: Int!) {
  search(query: $query, query_type: "Book", per_page: $perPage, page: 1) {
    results
  }
}
"""


class HardcoverGraphQLError(Exception):
    """The GraphQL endpoint answered with an ``errors`` array."""


def _capitalize_words(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split(" "))


def parse_document(doc: dict[str, Any]) -> BookMetadataResult:
    """Map one search hit document to a result."""
    isbns = doc.get("isbns") or []
    featured = doc.get("featured_series") or {}
    series = featured.get("series") or {}
    rating = doc.get("rating")
    provider_id = doc.get("slug") or doc.get("id")

    return BookMetadataResult(
        provider="hardcover",
        provider_id=str(provider_id) if provider_id is not None else None,
        title=decode_html_entities(doc.get("title")),
        subtitle=decode_html_entities(doc.get("subtitle")),
        authors=list(doc.get("author_names") or []),
        description=decode_html_entities(doc.get("description")),
        publish_year=doc.get("release_year") or extract_year(doc.get("release_date")),
        published_date=doc.get("release_date"),
        page_count=doc.get("pages"),
        isbn10=next((i for i in isbns if len(i) == 10), None),
        isbn13=next((i for i in isbns if len(i) == 13), None),
        cover_url=(doc.get("image") or {}).get("url"),
        genres=[_capitalize_words(g) for g in doc.get("genres") or []],
        moods=[_capitalize_words(m) for m in doc.get("moods") or []],
        tags=[_capitalize_words(t) for t in doc.get("tags") or []],
        series_name=series.get("name"),
        series_number=featured.get("position"),
        series_total=series.get("books_count"),
        rating=round(rating, 2) if rating else None,
        rating_count=doc.get("ratings_count"),
    )


def parse_search_response(response: dict[str, Any]) -> list[BookMetadataResult]:
    """Map a GraphQL search response, raising when it carries errors."""
    if response.get("errors"):
        messages = "; ".join(str(e.get("message")) for e in response["errors"])
        raise HardcoverGraphQLError(messages)
    search = ((response.get("data") or {}).get("search") or {}).get("results") or {}
    return [parse_document(hit["document"]) for hit in search.get("hits") or []]


class HardcoverProvider:
    """Metadata provider backed by Hardcover's GraphQL API (bearer token)."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        cache: TTLCache[Any] | None = None,
        api_key: str | None = None,
    ) -> None:
        self._http = http_client or BookshelfHttpClient()
        self._cache: TTLCache[Any] = cache or TTLCache()
        self._api_key = api_key or None

    @property
    def name(self) -> str:
        return "hardcover"

    @property
    def display_name(self) -> str:
        return "Hardcover"

    @property
    def requires_auth(self) -> bool:
        return True

    @property
    def has_api_key(self) -> bool:
        return bool(self._api_key)

    def set_api_key(self, api_key: str | None) -> None:
        self._api_key = api_key or None

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]:
        if not self._api_key:
            logger.warning("Hardcover: API key not configured")
            return []

        if request.isbn:
            term = re.sub(r"[-\s]", "", request.isbn)
        else:
            term = " ".join(part for part in (request.title, request.author) if part)
        if not term:
            return []

        cache_key = f"hc:search:{term}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        payload = {
            "query": SEARCH_QUERY,
            "variables": {"query": term, "perPage": min(limit, _MAX_PER_PAGE)},
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = await self._http.post_json(_API_URL, payload, headers=headers)
            results = parse_search_response(response)
        except (*ADAPTER_ERRORS, HardcoverGraphQLError) as exc:
            logger.warning("Hardcover search failed for %r: %s", term, exc)
            return []

        self._cache.set(cache_key, results)
        return results

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None:
        """Hardcover has no public get-by-id, so search by the id and pick the exact hit."""
        if not self._api_key:
            logger.warning("Hardcover: API key not configured")
            return None

        cache_key = f"hc:detail:{provider_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        results = await self.search(MetadataSearchRequest(title=provider_id), limit=1)
        result = next((r for r in results if r.provider_id == provider_id), None)
        if result is not None:
            self._cache.set(cache_key, result)
        return result

    async def is_available(self) -> bool:
        return self.has_api_key
