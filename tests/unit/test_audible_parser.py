# ABOUTME: Unit tests for scraping saved Audible listening-history pages.
# ABOUTME: Covers per-item parsing, the page-wide fallback, image recovery, and date helpers.

from datetime import date

from bookshelf.importer.audible import (
    calculate_start_date,
    extract_date,
    extract_image_url,
    is_date_in_past,
    parse_audible_html,
)
from tests.fixtures.import_samples import AUDIBLE_FLAT_HTML, AUDIBLE_HISTORY_HTML


class TestParseAudibleHtml:
    """Tests for parse_audible_html."""

    def test_history_items(self) -> None:
        """Each listening-history list item becomes a book; other items are ignored."""
        books = parse_audible_html(AUDIBLE_HISTORY_HTML)
        assert [b.title for b in books] == ["Project Hail Mary", "The Hobbit & Other Tales"]

        first = books[0]
        assert first.author == "Andy Weir"
        assert first.asin == "B08G9PRS1K"
        assert first.listen_date == "2024-03-15"
        assert first.image_url == "https://m.media-amazon.com/images/I/51b6B5Kd9fL._SL500_.jpg"

    def test_saved_image_is_rewritten(self) -> None:
        """A locally saved cover is mapped back to Amazon's image host."""
        second = parse_audible_html(AUDIBLE_HISTORY_HTML)[1]
        assert second.image_url == "https://m.media-amazon.com/images/I/41abcXYZ+q._SL300_.jpg"
        assert second.asin == ""
        assert second.listen_date == "2099-01-05"

    def test_page_wide_fallback(self) -> None:
        """Without list items, page-wide lists are zipped together."""
        books = parse_audible_html(AUDIBLE_FLAT_HTML)
        assert len(books) == 1
        book = books[0]
        assert book.title == "Dune"
        assert book.author == "Frank Herbert"
        assert book.asin == "B002V1OF70"
        assert book.listen_date == "2023-12-01"

    def test_unrelated_page(self) -> None:
        """A page with no listening history yields nothing."""
        assert parse_audible_html("<html><body><p>Hello</p></body></html>") == []


class TestExtractImageUrl:
    """Tests for extract_image_url."""

    def test_lazy_loaded_image(self) -> None:
        """A data-src image is used when no hosted src exists."""
        block = '<img src="placeholder.gif" data-src="https://cdn.example.com/cover.jpg" />'
        assert extract_image_url(block) == "https://cdn.example.com/cover.jpg"

    def test_alternate_saved_suffix(self) -> None:
        """Saved files with other Amazon size suffixes are recovered too."""
        block = '<img src="files/61xyzAB._AC_UY218_.jpg" />'
        assert extract_image_url(block) == "https://m.media-amazon.com/images/I/61xyzAB._AC_UY218_.jpg"

    def test_no_image(self) -> None:
        """No usable image gives an empty string."""
        assert extract_image_url('<img src="local.gif" />') == ""


class TestDateHelpers:
    """Tests for listen-date parsing and derived reading dates."""

    def test_extract_date(self) -> None:
        """Day-first and year-first dates become zero-padded ISO."""
        assert extract_date("Listened on 5-3-2024") == "2024-03-05"
        assert extract_date("2024-3-5") == "2024-03-05"
        assert extract_date("March 2024") is None
        assert extract_date(None) is None

    def test_start_date_is_five_days_earlier(self) -> None:
        """Reading is assumed to start five days before the listen date."""
        assert calculate_start_date("2024-03-03") == "2024-02-27"
        assert calculate_start_date(None) is None
        assert calculate_start_date("not a date") is None

    def test_is_date_in_past(self) -> None:
        """Only dates strictly before today are past."""
        today = date(2024, 6, 1)
        assert is_date_in_past("2024-05-31", today) is True
        assert is_date_in_past("2024-06-01", today) is False
        assert is_date_in_past(None, today) is False
