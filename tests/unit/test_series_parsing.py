# ABOUTME: Unit tests for splitting series suffixes off book titles.
# ABOUTME: Covers the hash, book-word, volume, and comma-less conventions.

import pytest

from bookshelf.importer.series import SeriesParse, parse_series_from_title


class TestParseSeriesFromTitle:
    """Tests for parse_series_from_title."""

    def test_hash_with_comma(self) -> None:
        """The Goodreads (Series, #N) suffix is split off."""
        assert parse_series_from_title("The Way of Kings (The Stormlight Archive, #1)") == (
            SeriesParse("The Way of Kings", "The Stormlight Archive", 1.0)
        )

    def test_fractional_position(self) -> None:
        """Novellas between books keep their fractional position."""
        parsed = parse_series_from_title("Edgedancer (The Stormlight Archive, #2.5)")
        assert parsed.book_num == 2.5

    @pytest.mark.parametrize(
        ("title", "number"),
        [
            ("Chamber of Secrets (Harry Potter, Book Two)", 2),
            ("Prisoner of Azkaban (Harry Potter, Book 3)", 3),
            ("Some Tale (Saga, Book Fifteen)", 15),
        ],
    )
    def test_book_word(self, title: str, number: int) -> None:
        """Spelled-out and numeric Book N suffixes both resolve."""
        parsed = parse_series_from_title(title)
        assert parsed.series is not None
        assert parsed.book_num == number

    def test_volume(self) -> None:
        """Vol., Part, and Volume suffixes are recognized."""
        parsed = parse_series_from_title("Saga (Saga, Vol. 3)")
        assert parsed == SeriesParse("Saga", "Saga", 3)
        assert parse_series_from_title("Dune (Dune Chronicles Part 2)").book_num == 2

    def test_hash_without_comma(self) -> None:
        """A suffix with no comma before the hash still parses."""
        parsed = parse_series_from_title("Leviathan Wakes (The Expanse #1)")
        assert parsed == SeriesParse("Leviathan Wakes", "The Expanse", 1.0)

    def test_plain_title_unchanged(self) -> None:
        """Titles without a series suffix come back as-is."""
        assert parse_series_from_title("The Hobbit") == SeriesParse("The Hobbit")
        assert parse_series_from_title("Notes (Annotated)") == SeriesParse("Notes (Annotated)")
        assert parse_series_from_title("") == SeriesParse("")
