# ABOUTME: Line-oriented CSV reading and writing for Goodreads and generic book exports.
# ABOUTME: Maps raw rows onto one normalized MappedRow regardless of the source's column names.

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_DATE_RE = re.compile(r"^\d{4}/\d{2}/\d{2}$")
_ISBN_NOISE_RE = re.compile(r'[="]')

# Tried in order once the two fixed shapes above have failed.
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%d %H:%M:%S",
)

_SHELF_STATUS = {
    "read": "read",
    "currently-reading": "current",
    "to-read": "next",
}


@dataclass
class CsvParseResult:
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)


@dataclass
class MappedRow:
    """A CSV row with source-specific column names resolved."""

    title: str = ""
    author: str = ""
    additional_authors: str = ""
    series: str = ""
    book_num: str = ""
    isbn: str = ""
    isbn13: str = ""
    narrator: str = ""
    format: str = ""
    genre: str = ""
    status: str = ""
    rating: str = ""
    start_date: str = ""
    completed_date: str = ""
    release_date: str = ""
    publish_year: str = ""
    page_count: str = ""
    publisher: str = ""
    summary: str = ""
    comments: str = ""
    goodreads_id: str = ""


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line on commas outside double quotes.

    Quote characters toggle quoting and are dropped; a doubled quote inside a
    quoted field yields one literal quote, kept even at the edges of the value.
    Values are trimmed.
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and line[i + 1 : i + 2] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    values.append("".join(current).strip())
    return values


def parse_csv(content: str) -> CsvParseResult:
    """Parse a CSV document: one physical line per record, first line is the header.

    Blank lines are skipped and short rows are padded with empty strings.
    Quoted fields spanning several lines are not supported.
    """
    lines = content.split("\n")
    if len(lines) < 2:
        return CsvParseResult()

    headers = parse_csv_line(lines[0])
    rows: list[dict[str, str]] = []
    for raw in lines[1:]:
        line = raw.strip()
        if not line:
            continue
        values = parse_csv_line(line)
        rows.append(
            {header: values[i] if i < len(values) else "" for i, header in enumerate(headers)}
        )
    return CsvParseResult(headers=headers, rows=rows)


def is_goodreads_format(headers: Sequence[str]) -> bool:
    """Goodreads exports carry Title, Author, and a shelf column."""
    return (
        "Title" in headers
        and "Author" in headers
        and ("Bookshelves" in headers or "Exclusive Shelf" in headers)
    )


def format_date_for_input(value: str | None) -> str:
    """Normalize a date cell to ``YYYY-MM-DD``; unparseable input gives ``""``."""
    if not value or not value.strip():
        return ""
    text = value.strip()
    if _ISO_DATE_RE.match(text):
        return text
    if _SLASH_DATE_RE.match(text):
        return text.replace("/", "-")
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue
    return ""


def _first(row: Mapping[str, str], *names: str) -> str:
    for name in names:
        value = row.get(name)
        if value:
            return value
    return ""


def _clean_isbn(value: str | None) -> str:
    # Goodreads wraps identifiers as ="..." so spreadsheets keep leading zeros.
    return _ISBN_NOISE_RE.sub("", value).strip() if value else ""


def map_goodreads_row(row: Mapping[str, str]) -> MappedRow:
    """Map a Goodreads library export row."""
    return MappedRow(
        title=_first(row, "Title"),
        author=_first(row, "Author", "Author l-f"),
        additional_authors=_first(row, "Additional Authors"),
        isbn=_clean_isbn(row.get("ISBN")),
        isbn13=_clean_isbn(row.get("ISBN13")),
        format=_first(row, "Binding"),
        status=_SHELF_STATUS.get(row.get("Exclusive Shelf") or "", ""),
        rating=_first(row, "My Rating"),
        start_date=format_date_for_input(row.get("Date Started")),
        completed_date=format_date_for_input(row.get("Date Read")),
        publish_year=_first(row, "Original Publication Year", "Year Published"),
        page_count=_first(row, "Number of Pages"),
        publisher=_first(row, "Publisher"),
        comments=_first(row, "My Review"),
        goodreads_id=_first(row, "Book Id"),
    )


def map_standard_row(row: Mapping[str, str]) -> MappedRow:
    """Map a generic CSV row, accepting the usual spellings of each column."""
    return MappedRow(
        title=_first(row, "Title", "title"),
        author=_first(row, "Author", "author"),
        series=_first(row, "Series", "series"),
        book_num=_first(row, "Book Number", "bookNum", "Book #"),
        isbn=_first(row, "ISBN", "isbn", "ISBN10", "isbn10"),
        isbn13=_first(row, "ISBN13", "isbn13"),
        narrator=_first(row, "Narrator", "narrator"),
        format=_first(row, "Format", "format"),
        genre=_first(row, "Genre", "genre"),
        status=_first(row, "Status", "status"),
        rating=_first(row, "Rating", "rating"),
        start_date=_first(row, "Start Date", "startDate"),
        completed_date=_first(row, "Completed Date", "completedDate", "End Date"),
        release_date=_first(row, "Release Date", "releaseDate"),
        publish_year=_first(row, "Publish Year", "publishYear", "Year Published"),
        page_count=_first(row, "Page Count", "pageCount", "Number of Pages"),
        publisher=_first(row, "Publisher", "publisher"),
        summary=_first(row, "Summary", "summary", "Description", "description"),
        comments=_first(row, "Comments", "comments", "Notes", "notes"),
        goodreads_id=_first(row, "Goodreads ID", "goodreadsId"),
    )


def escape_csv_field(value: object) -> str:
    """Quote a value when it holds a comma, quote, or line break."""
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def write_csv(headers: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Render a CSV document, one record per line."""
    lines = [",".join(escape_csv_field(h) for h in headers)]
    lines.extend(",".join(escape_csv_field(v) for v in row) for row in rows)
    return "\n".join(lines)
