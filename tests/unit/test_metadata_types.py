# ABOUTME: Unit tests for the metadata data structures and ISBN/year/language helpers.
# ABOUTME: Validates defaults, the camelCase wire shape, and input normalization.

from bookshelf.metadata.types import (
    BookMetadataResult,
    BookReview,
    MetadataSearchRequest,
    extract_year,
    is_valid_isbn,
    map_language_code,
    normalize_isbn,
)


class TestMetadataSearchRequest:
    """Tests for the query descriptor."""

    def test_all_empty_is_empty(self) -> None:
        """A request with no title, author, or ISBN is empty."""
        assert MetadataSearchRequest().is_empty
        assert MetadataSearchRequest(title="").is_empty

    def test_any_field_makes_it_non_empty(self) -> None:
        """Any single field is enough to search."""
        assert not MetadataSearchRequest(author="Frank Herbert").is_empty
        assert not MetadataSearchRequest(isbn="9780441172719").is_empty


class TestBookMetadataResult:
    """Tests for BookMetadataResult."""

    def test_only_provider_is_required(self) -> None:
        """A result can be built from the provider name alone."""
        result = BookMetadataResult(provider="googlebooks")
        assert result.title is None
        assert result.authors == []
        assert result.reviews == []

    def test_author_joins_names(self) -> None:
        """The author property joins every author for display."""
        result = BookMetadataResult(provider="x", authors=["Neil Gaiman", "Terry Pratchett"])
        assert result.author == "Neil Gaiman, Terry Pratchett"
        assert BookMetadataResult(provider="x").author == ""

    def test_to_dict_uses_camel_case_and_skips_unset(self) -> None:
        """Serialization renames fields to camelCase and omits None and empty lists."""
        result = BookMetadataResult(
            provider="goodreads",
            provider_id="44767458",
            title="Dune",
            page_count=658,
            series_number=1.0,
        )
        assert result.to_dict() == {
            "provider": "goodreads",
            "providerId": "44767458",
            "title": "Dune",
            "pageCount": 658,
            "seriesNumber": 1.0,
        }

    def test_to_dict_renders_reviews(self) -> None:
        """Nested reviews are serialized with camelCase keys."""
        result = BookMetadataResult(
            provider="goodreads",
            reviews=[BookReview(body="Great.", reviewer_name="Reader One", rating=5.0)],
        )
        review = result.to_dict()["reviews"][0]
        assert review["reviewerName"] == "Reader One"
        assert review["body"] == "Great."
        assert review["spoiler"] is False


class TestIsbnHelpers:
    """Tests for ISBN normalization and validation."""

    def test_normalize_strips_hyphens_and_spaces(self) -> None:
        """Hyphens and whitespace are removed and the check character uppercased."""
        assert normalize_isbn("978-0-441 17271-9") == "9780441172719"
        assert normalize_isbn("0-8044-2957-x") == "080442957X"

    def test_valid_lengths(self) -> None:
        """10 digits, 13 digits, and 9 digits plus X are valid."""
        assert is_valid_isbn("0441172717")
        assert is_valid_isbn("978-0441172719")
        assert is_valid_isbn("080442957x")

    def test_invalid_inputs(self) -> None:
        """Wrong lengths and stray letters are rejected."""
        assert not is_valid_isbn("12345")
        assert not is_valid_isbn("97804411727")
        assert not is_valid_isbn("X804429570")
        assert not is_valid_isbn("")
        assert not is_valid_isbn("\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669\u0660")


class TestExtractYear:
    """Tests for extract_year."""

    def test_first_four_digit_run(self) -> None:
        """The first four-digit run is returned as an int."""
        assert extract_year("2005-08-02") == 2005
        assert extract_year("September 1990") == 1990

    def test_missing_year(self) -> None:
        """No digits or no input yields None."""
        assert extract_year("n.d.") is None
        assert extract_year(None) is None


class TestMapLanguageCode:
    """Tests for language code mapping."""

    def test_two_and_three_letter_codes(self) -> None:
        """Both ISO 639-1 and 639-2 codes map to English names."""
        assert map_language_code("en") == "English"
        assert map_language_code("ENG") == "English"
        assert map_language_code("ja") == "Japanese"

    def test_unknown_code_passes_through(self) -> None:
        """Unknown codes are returned unchanged."""
        assert map_language_code("tlh") == "tlh"
        assert map_language_code(None) is None
