# ABOUTME: Integration tests for the registry driving real provider adapters over canned HTTP.
# ABOUTME: Validates fan-out, scoring across providers, and quick lookup merging.

import asyncio

from bookshelf.metadata.googlebooks import GoogleBooksProvider
from bookshelf.metadata.lookup import lookup_by_isbn
from bookshelf.metadata.openlibrary import OpenLibraryProvider
from bookshelf.metadata.registry import MetadataProviderRegistry
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest
from tests.fixtures.fake_http import FakeHttpClient
from tests.fixtures.openlibrary_responses import BOOKS_API_RESPONSE, SEARCH_RESPONSE
from tests.fixtures.provider_responses import GOOGLE_SEARCH_RESPONSE


def _registry(http: FakeHttpClient) -> MetadataProviderRegistry:
    return MetadataProviderRegistry(
        providers={
            "googlebooks": GoogleBooksProvider(http_client=http),
            "openlibrary": OpenLibraryProvider(http_client=http),
        }
    )


class TestMetadataPipeline:
    """Integration tests across Google Books and Open Library."""

    def test_search_all_collects_both_providers(self) -> None:
        """A title search returns each provider's parsed results."""
        http = FakeHttpClient(
            {"googleapis.com": GOOGLE_SEARCH_RESPONSE, "search.json": SEARCH_RESPONSE}
        )
        grouped = asyncio.run(_registry(http).search_all(MetadataSearchRequest(title="Dune")))

        assert [r.title for r in grouped["googlebooks"]] == ["Dune"]
        assert [r.title for r in grouped["openlibrary"]][:2] == ["Dune", "Dune Messiah"]

    def test_find_best_prefers_isbn_agreement(self) -> None:
        """The Open Library edition matching the ISBN beats Google's richer record."""
        http = FakeHttpClient(
            {"googleapis.com": GOOGLE_SEARCH_RESPONSE, "/api/books": BOOKS_API_RESPONSE}
        )
        request = MetadataSearchRequest(title="Dune", isbn="978-0-441-17271-9")

        best = asyncio.run(_registry(http).find_best(request))

        assert best is not None
        assert best.provider == "openlibrary"
        assert best.isbn13 == "9780441172719"

    def test_lookup_falls_back_to_open_library(self) -> None:
        """When Google knows nothing, Open Library's edition is returned with its cover."""
        http = FakeHttpClient(
            {"googleapis.com": {"totalItems": 0}, "/api/books": BOOKS_API_RESPONSE}
        )
        result = asyncio.run(lookup_by_isbn(_registry(http), "9780441172719"))

        assert isinstance(result, BookMetadataResult)
        assert result.provider == "openlibrary"
        assert result.publisher == "Ace Books"
        assert result.cover_url == "https://covers.openlibrary.org/b/id/11481354-L.jpg"

    def test_repeat_search_is_served_from_cache(self) -> None:
        """A second identical search makes no new requests."""
        http = FakeHttpClient(
            {"googleapis.com": GOOGLE_SEARCH_RESPONSE, "search.json": SEARCH_RESPONSE}
        )
        registry = _registry(http)
        request = MetadataSearchRequest(title="Dune")

        asyncio.run(registry.search_all(request))
        calls = len(http.calls)
        asyncio.run(registry.search_all(request))

        assert len(http.calls) == calls
