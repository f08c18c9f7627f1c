# ABOUTME: Data structures for import previews, catalog snapshots, and commit results.
# ABOUTME: Rows stay in memory only; to_dict() renders them in the camelCase preview shape.

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _render(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return {_camel(f.name): _render(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list):
        return [_render(item) for item in value]
    return value


class _Serializable:
    def to_dict(self) -> dict[str, Any]:
        """camelCase dict with nested dataclasses rendered; None values kept."""
        return _render(self)


@dataclass
class AuthorMatch(_Serializable):
    """An existing author chosen by fuzzy matching."""

    id: int
    name: str
    confidence: int
    exact: bool


@dataclass
class SeriesMatch(_Serializable):
    id: int
    title: str
    exact: bool = True


@dataclass
class NamedEntity(_Serializable):
    """An (id, name) pair for authors, narrators, formats, and genres."""

    id: int
    name: str


@dataclass
class SeriesEntity(_Serializable):
    id: int
    title: str


@dataclass
class StatusOption(_Serializable):
    """A reading status; ``key`` is the stable identifier (READ, NEXT, ...)."""

    id: int
    name: str
    key: str | None = None
    sort_order: int = 0


@dataclass
class ExistingBook(_Serializable):
    """The slice of a cataloged book used for duplicate detection."""

    id: int
    title: str
    author: str = ""
    isbn10: str | None = None
    isbn13: str | None = None
    goodreads_id: str | None = None
    asin: str | None = None


@dataclass
class CatalogSnapshot:
    """Everything a preview needs from the catalog, fetched once per upload."""

    authors: list[NamedEntity] = field(default_factory=list)
    series: list[SeriesEntity] = field(default_factory=list)
    books: list[ExistingBook] = field(default_factory=list)
    statuses: list[StatusOption] = field(default_factory=list)
    formats: list[NamedEntity] = field(default_factory=list)
    genres: list[NamedEntity] = field(default_factory=list)
    narrators: list[NamedEntity] = field(default_factory=list)


@dataclass
class ParsedBook(_Serializable):
    """One CSV row, normalized and annotated with its catalog matches."""

    row_index: int
    original_title: str
    title: str
    author: str = ""
    author_id: int | None = None
    author_match: AuthorMatch | None = None
    series: str | None = None
    series_id: int | None = None
    series_match: SeriesMatch | None = None
    book_num: float | None = None
    narrator: str = ""
    narrator_id: int | None = None
    isbn: str = ""
    isbn13: str = ""
    goodreads_id: str = ""
    format_id: int | None = None
    format: str = ""
    genre_id: int | None = None
    genre: str = ""
    status_id: int | None = None
    status: str = ""
    rating: float | None = None
    start_date: str = ""
    completed_date: str = ""
    release_date: str = ""
    publish_year: int | None = None
    page_count: int | None = None
    publisher: str = ""
    summary: str = ""
    comments: str = ""
    cover_url: str = ""
    is_duplicate: bool = False
    duplicate_book_id: int | None = None


@dataclass
class AudibleBook(_Serializable):
    """One entry scraped from an Audible listening-history page."""

    title: str
    author: str = ""
    image_url: str = ""
    listen_date: str | None = None
    asin: str = ""


@dataclass
class AudibleRow(_Serializable):
    """An Audible entry annotated for preview and editable before commit."""

    row_index: int
    title: str
    author: str = ""
    image_url: str = ""
    listen_date: str | None = None
    asin: str = ""
    author_id: int | None = None
    series_name: str = ""
    series_id: int | None = None
    book_num: float | None = None
    narrator_name: str = ""
    narrator_id: int | None = None
    genre_id: int | None = None
    format_id: int | None = None
    status_id: int | None = None
    is_duplicate: bool = False
    duplicate_book_id: int | None = None
    is_read: bool = False


@dataclass
class BookDraft:
    """The write payload handed to the catalog for one new book."""

    title: str
    isbn10: str | None = None
    isbn13: str | None = None
    goodreads_id: str | None = None
    asin: str | None = None
    status_id: int | None = None
    genre_id: int | None = None
    format_id: int | None = None
    narrator_id: int | None = None
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
    author_ids: list[int] = field(default_factory=list)
    series_id: int | None = None
    book_num: float | None = None


@dataclass
class RowError(_Serializable):
    row: int
    title: str
    error: str


@dataclass
class CommitResult(_Serializable):
    """Outcome of one commit: per-row failures never abort the batch."""

    imported: int = 0
    skipped: int = 0
    errors: list[RowError] = field(default_factory=list)


@dataclass
class CsvPreview(_Serializable):
    session_id: str
    is_goodreads: bool
    total_rows: int
    duplicate_count: int
    books: list[ParsedBook]
    statuses: list[StatusOption]
    formats: list[NamedEntity]
    genres: list[NamedEntity]
    authors: list[NamedEntity]
    series: list[SeriesEntity]


@dataclass
class AudiblePreview(_Serializable):
    session_id: str
    total_books: int
    duplicates: int
    new_books: int
    books: list[AudibleRow]
    authors: list[NamedEntity]
    series: list[SeriesEntity]
    narrators: list[NamedEntity]
    genres: list[NamedEntity]
    formats: list[NamedEntity]
    statuses: list[StatusOption]
