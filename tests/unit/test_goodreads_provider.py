# ABOUTME: Unit tests for the Goodreads scraper: search rows and __NEXT_DATA__ book details.
# ABOUTME: Uses canned HTML so no request ever leaves the test process.

import asyncio

from bookshelf.metadata.goodreads import (
    GoodreadsProvider,
    extract_next_data,
    parse_book_details,
    parse_search_results,
)
from bookshelf.metadata.http import MetadataFetchError
from bookshelf.metadata.types import MetadataSearchRequest
from tests.fixtures.fake_http import FakeHttpClient
from tests.fixtures.provider_responses import (
    GOODREADS_BOOK_HTML,
    GOODREADS_NEXT_DATA,
    GOODREADS_SEARCH_HTML,
)


class TestParseSearchResults:
    """Tests for scraping the search results table."""

    def test_rows_with_nested_and_plain_links(self) -> None:
        """Titles are read from plain and span-wrapped links; non-book links are skipped."""
        rows = parse_search_results(GOODREADS_SEARCH_HTML)
        assert [r.goodreads_id for r in rows] == ["44767458", "106"]
        assert rows[0].title == "Dune (Dune, #1)"
        assert rows[0].author == "Frank Herbert"
        assert rows[0].cover_url == "https://i.gr-assets.com/images/dune.jpg"
        assert rows[1].title == "Dune Messiah & Children"
        assert rows[1].cover_url is None

    def test_no_rows(self) -> None:
        """A page without book rows gives an empty list."""
        assert parse_search_results("<html><body>No results</body></html>") == []


class TestParseBookDetails:
    """Tests for mapping the Apollo state blob."""

    def test_extract_next_data(self) -> None:
        """The JSON blob is pulled out of the script tag."""
        assert extract_next_data(GOODREADS_BOOK_HTML) == GOODREADS_NEXT_DATA
        assert extract_next_data("<html></html>") is None
        assert extract_next_data('<script id="__NEXT_DATA__">{broken</script>') is None

    def test_maps_book_work_and_contributors(self) -> None:
        """Book, work stats, author, series, and genres are combined into one result."""
        result = parse_book_details(GOODREADS_NEXT_DATA, "44767458")
        assert result is not None
        assert result.provider_id == "44767458"
        assert result.title == "Dune"
        assert result.subtitle == "Deluxe Edition"
        assert result.authors == ["Frank Herbert"]
        assert result.description == "Melange & sandworms."
        assert result.publisher == "Ace"
        assert result.publish_year == 2005
        assert result.published_date == "2005-08-02"
        assert result.page_count == 658
        assert result.language == "English"
        assert result.isbn10 == "0441013597"
        assert result.isbn13 is None
        assert result.genres == ["Science Fiction", "Classics"]
        assert result.series_name == "Dune"
        assert result.series_number == 1.0
        assert result.rating == 4.27
        assert result.rating_count == 1400000

    def test_reviews(self) -> None:
        """Reviews are stripped of HTML and blank ones are dropped."""
        result = parse_book_details(GOODREADS_NEXT_DATA, "44767458")
        assert result is not None
        assert len(result.reviews) == 1
        review = result.reviews[0]
        assert review.body == "Great book."
        assert review.reviewer_name == "Reader One"
        assert review.rating == 5.0
        assert review.date == "2023-11-14T22:13:20Z"
        assert review.spoiler is False

    def test_missing_state(self) -> None:
        """Pages without Apollo state or without a titled book give None."""
        assert parse_book_details({}, "1") is None
        no_title = {"props": {"pageProps": {"apolloState": {"Book:kca://x": {"title": ""}}}}}
        assert parse_book_details(no_title, "1") is None


class TestGoodreadsProvider:
    """Tests for GoodreadsProvider."""

    def test_search_by_isbn_strips_separators(self) -> None:
        """An ISBN search sends the bare digits as the q parameter."""
        http = FakeHttpClient({"goodreads.com/search": GOODREADS_SEARCH_HTML})
        provider = GoodreadsProvider(http_client=http)

        results = asyncio.run(provider.search(MetadataSearchRequest(isbn="978-0441 013593")))

        assert http.calls[0]["params"] == {"q": "9780441013593"}
        assert results[0].provider == "goodreads"
        assert results[0].thumbnail_url == "https://i.gr-assets.com/images/dune.jpg"

    def test_search_limit(self) -> None:
        """Results are cut to the limit."""
        http = FakeHttpClient({"goodreads.com/search": GOODREADS_SEARCH_HTML})
        provider = GoodreadsProvider(http_client=http)
        results = asyncio.run(provider.search(MetadataSearchRequest(title="Dune"), limit=1))
        assert len(results) == 1

    def test_search_failure(self) -> None:
        """A blocked request gives an empty list."""
        http = FakeHttpClient({"goodreads.com": MetadataFetchError("HTTP 403")})
        provider = GoodreadsProvider(http_client=http)
        assert asyncio.run(provider.search(MetadataSearchRequest(title="Dune"))) == []

    def test_fetch_details(self) -> None:
        """Details scrape the book page by id."""
        http = FakeHttpClient({"/book/show/44767458": GOODREADS_BOOK_HTML})
        provider = GoodreadsProvider(http_client=http)

        result = asyncio.run(provider.fetch_details("44767458"))

        assert result is not None
        assert result.title == "Dune"
        assert http.urls == ["https://www.goodreads.com/book/show/44767458"]

    def test_fetch_details_without_blob(self) -> None:
        """A page without __NEXT_DATA__ yields None."""
        http = FakeHttpClient({"/book/show/": "<html>captcha</html>"})
        provider = GoodreadsProvider(http_client=http)
        assert asyncio.run(provider.fetch_details("1")) is None
