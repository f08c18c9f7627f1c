# ABOUTME: Unit tests for CSV line splitting, Goodreads detection, and row mapping.
# ABOUTME: Also covers date normalization and the CSV writer's quoting.

from bookshelf.importer.csv_parser import (
    escape_csv_field,
    format_date_for_input,
    is_goodreads_format,
    map_goodreads_row,
    map_standard_row,
    parse_csv,
    parse_csv_line,
    write_csv,
)
from tests.fixtures.import_samples import GOODREADS_CSV, STANDARD_CSV


class TestParseCsvLine:
    """Tests for splitting a single CSV line."""

    def test_plain_fields_are_trimmed(self) -> None:
        """Unquoted fields split on commas and lose surrounding whitespace."""
        assert parse_csv_line("a, b ,c") == ["a", "b", "c"]

    def test_quoted_comma(self) -> None:
        """Commas inside quotes do not split."""
        assert parse_csv_line('1,"Collins, Suzanne",x') == ["1", "Collins, Suzanne", "x"]

    def test_doubled_quote_is_literal(self) -> None:
        """A doubled quote inside a quoted field becomes one quote."""
        assert parse_csv_line('"the ""best"" one",2') == ['the "best" one', "2"]

    def test_escaped_quotes_at_field_edges(self) -> None:
        """Doubled quotes at the start or end of a field survive as literal quotes."""
        assert parse_csv_line('"""Quoted"" title",x') == ['"Quoted" title', "x"]
        assert parse_csv_line('a,"title ""ends quoted"""') == ["a", 'title "ends quoted"']

    def test_trailing_empty_field(self) -> None:
        """A trailing comma yields a final empty value."""
        assert parse_csv_line("a,b,") == ["a", "b", ""]


class TestParseCsv:
    """Tests for parsing whole documents."""

    def test_header_only_has_no_rows(self) -> None:
        """A lone header line gives an empty result."""
        result = parse_csv("Title,Author")
        assert result.headers == []
        assert result.rows == []

    def test_blank_lines_skipped_and_short_rows_padded(self) -> None:
        """Blank lines vanish and missing trailing cells become empty strings."""
        result = parse_csv("Title,Author,Series\n\nDune,Frank Herbert\n   \n")
        assert result.headers == ["Title", "Author", "Series"]
        assert result.rows == [{"Title": "Dune", "Author": "Frank Herbert", "Series": ""}]

    def test_goodreads_export(self) -> None:
        """The Goodreads sample parses into three rows."""
        result = parse_csv(GOODREADS_CSV)
        assert len(result.rows) == 3
        assert result.rows[0]["Author l-f"] == "Collins, Suzanne"
        assert result.rows[1]["Exclusive Shelf"] == "currently-reading"


class TestIsGoodreadsFormat:
    """Tests for Goodreads header detection."""

    def test_detects_shelf_columns(self) -> None:
        """Title, Author, and either shelf column mark a Goodreads export."""
        assert is_goodreads_format(["Title", "Author", "Exclusive Shelf"])
        assert is_goodreads_format(["Title", "Author", "Bookshelves"])

    def test_generic_headers(self) -> None:
        """A generic export is not mistaken for Goodreads."""
        assert not is_goodreads_format(parse_csv(STANDARD_CSV).headers)


class TestFormatDateForInput:
    """Tests for date normalization."""

    def test_iso_passthrough(self) -> None:
        """ISO dates are returned unchanged."""
        assert format_date_for_input("2021-03-05") == "2021-03-05"

    def test_slashes_become_dashes(self) -> None:
        """Goodreads slash dates are converted."""
        assert format_date_for_input("2020/05/01") == "2020-05-01"

    def test_other_formats(self) -> None:
        """US and long-form dates are parsed."""
        assert format_date_for_input("05/01/2020") == "2020-05-01"
        assert format_date_for_input("March 5, 2021") == "2021-03-05"

    def test_unparseable(self) -> None:
        """Empty or nonsense input gives an empty string."""
        assert format_date_for_input(None) == ""
        assert format_date_for_input("  ") == ""
        assert format_date_for_input("someday") == ""


class TestRowMapping:
    """Tests for mapping raw rows to MappedRow."""

    def test_goodreads_row(self) -> None:
        """Goodreads identifiers are unwrapped and the shelf becomes a status."""
        row = parse_csv(GOODREADS_CSV).rows[0]
        mapped = map_goodreads_row(row)
        assert mapped.title == "The Hunger Games (The Hunger Games, #1)"
        assert mapped.author == "Suzanne Collins"
        assert mapped.isbn == "0439023483"
        assert mapped.isbn13 == "9780439023481"
        assert mapped.status == "read"
        assert mapped.format == "Hardcover"
        assert mapped.completed_date == "2020-05-01"
        assert mapped.publish_year == "2008"
        assert mapped.goodreads_id == "2767052"
        assert mapped.comments == "Loved it"

    def test_goodreads_shelves(self) -> None:
        """Each exclusive shelf maps to its status keyword."""
        rows = parse_csv(GOODREADS_CSV).rows
        assert [map_goodreads_row(r).status for r in rows] == ["read", "current", "next"]
        assert map_goodreads_row(rows[2]).isbn == ""
        assert map_goodreads_row(rows[2]).publish_year == "1937"

    def test_standard_row_alternate_spellings(self) -> None:
        """Lowercase and camelCase column names are accepted."""
        mapped = map_standard_row(
            {"title": "Dune", "author": "Frank Herbert", "bookNum": "1", "Notes": "Reread"}
        )
        assert mapped.title == "Dune"
        assert mapped.author == "Frank Herbert"
        assert mapped.book_num == "1"
        assert mapped.comments == "Reread"

    def test_standard_sample(self) -> None:
        """The generic sample maps narrator, series, and status columns."""
        rows = [map_standard_row(r) for r in parse_csv(STANDARD_CSV).rows]
        assert rows[0].narrator == "Ray Porter"
        assert rows[0].rating == "4.5 stars"
        assert rows[1].series == "The Expanse"
        assert rows[1].status == "To Read"


class TestCsvWriting:
    """Tests for escaping and writing CSV."""

    def test_escape(self) -> None:
        """Values with commas, quotes, or newlines are quoted."""
        assert escape_csv_field("plain") == "plain"
        assert escape_csv_field("a,b") == '"a,b"'
        assert escape_csv_field('He said "hi"') == '"He said ""hi"""'
        assert escape_csv_field(None) == ""
        assert escape_csv_field(3) == "3"

    def test_write_csv(self) -> None:
        """Rows are joined one per line under the header."""
        text = write_csv(["Title", "Author"], [["Dune", "Herbert, Frank"], ["Emma", None]])
        assert text == 'Title,Author\nDune,"Herbert, Frank"\nEmma,'

    def test_written_csv_reads_back(self) -> None:
        """A written document parses back to the same cells."""
        text = write_csv(["Title", "Author"], [["Dune", "Herbert, Frank"]])
        assert parse_csv(text).rows == [{"Title": "Dune", "Author": "Herbert, Frank"}]

    def test_quoted_title_reads_back(self) -> None:
        """A value wrapped in quotes keeps them through a write and re-parse."""
        text = write_csv(["Title"], [['"Quoted" title'], ['He said "hi"']])
        assert parse_csv(text).rows == [{"Title": '"Quoted" title'}, {"Title": 'He said "hi"'}]
