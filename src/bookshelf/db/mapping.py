# ABOUTME: Converts between import BookDrafts, SQLite row dictionaries, and BookRecords.
# ABOUTME: Keeps column naming in one place so the catalog's SQL stays generic.

from dataclasses import dataclass, field
from typing import Any

from bookshelf.importer.models import BookDraft

# BookDraft fields stored directly as books columns.
BOOK_COLUMNS = (
    "title",
    "isbn10",
    "isbn13",
    "goodreads_id",
    "asin",
    "status_id",
    "format_id",
    "narrator_id",
    "genre_id",
    "rating",
    "start_date",
    "completed_date",
    "release_date",
    "publish_year",
    "page_count",
    "publisher",
    "summary",
    "comments",
    "cover_url",
)


@dataclass
class BookRecord:
    """A cataloged book with its linked entities resolved to names."""

    id: int
    title: str
    authors: list[str] = field(default_factory=list)
    series: str | None = None
    book_num: float | None = None
    isbn10: str | None = None
    isbn13: str | None = None
    goodreads_id: str | None = None
    asin: str | None = None
    status: str | None = None
    format: str | None = None
    narrator: str | None = None
    genre: str | None = None
    rating: float | None = None
    start_date: str | None = None
    completed_date: str | None = None
    release_date: str | None = None
    publish_year: int | None = None
    page_count: int | None = None
    publisher: str | None = None
    summary: str | None = None
    comments: str | None = None
    cover_url: str | None = None
    date_added: str = ""


def draft_to_row(draft: BookDraft) -> dict[str, Any]:
    """Convert a BookDraft to a dict suitable for INSERT into books.

    Author and series links live in junction tables and are not included.
    """
    return {column: getattr(draft, column) for column in BOOK_COLUMNS}


def row_to_record(row: Any, authors: list[str]) -> BookRecord:
    """Convert a joined books row (dict-like) to a BookRecord."""
    return BookRecord(
        id=row["id"],
        title=row["title"],
        authors=authors,
        series=row["series_title"],
        book_num=row["book_num"],
        isbn10=row["isbn10"],
        isbn13=row["isbn13"],
        goodreads_id=row["goodreads_id"],
        asin=row["asin"],
        status=row["status_name"],
        format=row["format_name"],
        narrator=row["narrator_name"],
        genre=row["genre_name"],
        rating=row["rating"],
        start_date=row["start_date"],
        completed_date=row["completed_date"],
        release_date=row["release_date"],
        publish_year=row["publish_year"],
        page_count=row["page_count"],
        publisher=row["publisher"],
        summary=row["summary"],
        comments=row["comments"],
        cover_url=row["cover_url"],
        date_added=row["date_added"],
    )
