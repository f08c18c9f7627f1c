# ABOUTME: Two-phase import: build an annotated preview, then commit the rows the user selected.
# ABOUTME: Works against any catalog implementing ImportCatalog; writes are sequential, one per row.

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Any, Protocol, runtime_checkable

from bookshelf.importer.audible import calculate_start_date, is_date_in_past, parse_audible_html
from bookshelf.importer.csv_parser import (
    MappedRow,
    is_goodreads_format,
    map_goodreads_row,
    map_standard_row,
    parse_csv,
)
from bookshelf.importer.errors import (
    AUDIBLE_SESSION_EXPIRED,
    CSV_SESSION_EXPIRED,
    EMPTY_CSV,
    NO_AUDIBLE_BOOKS,
    NO_BOOKS_SELECTED,
    NO_FILE,
    NO_SESSION_ID,
    NO_VALID_BOOKS,
    CatalogError,
    ImportRejectedError,
    SessionNotFoundError,
)
from bookshelf.importer.matching import (
    find_audible_duplicate,
    find_duplicate,
    fuzzy_match_author,
    match_format,
    match_genre,
    match_series,
    match_status,
)
from bookshelf.importer.models import (
    AudiblePreview,
    AudibleRow,
    BookDraft,
    CatalogSnapshot,
    CommitResult,
    CsvPreview,
    ParsedBook,
    RowError,
    StatusOption,
)
from bookshelf.importer.series import parse_series_from_title
from bookshelf.importer.sessions import (
    AUDIBLE_SESSION_TTL,
    CSV_SESSION_TTL,
    ImportSessionStore,
)

logger = logging.getLogger(__name__)

OPTION_LIST_LIMIT = 100
AUDIOBOOK_FORMAT = "Audiobook"

_LEADING_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)")
_AUDIBLE_EDITABLE = {f.name for f in fields(AudibleRow)} - {"row_index"}


@runtime_checkable
class ImportCatalog(Protocol):
    """The catalog operations the import engine needs."""

    def snapshot(self) -> CatalogSnapshot: ...

    def find_author(self, name: str, *, ignore_case: bool = True) -> int | None: ...

    def create_author(self, name: str) -> int: ...

    def find_series(self, title: str, *, ignore_case: bool = True) -> int | None: ...

    def create_series(self, title: str) -> int: ...

    def find_narrator(self, name: str, *, ignore_case: bool = True) -> int | None: ...

    def create_narrator(self, name: str) -> int: ...

    def find_format(self, name: str) -> int | None: ...

    def create_format(self, name: str) -> int: ...

    def create_book(self, draft: BookDraft) -> int: ...


def _to_float(value: str) -> float | None:
    match = _LEADING_NUMBER_RE.match(value) if value else None
    return float(match.group()) if match else None


def _to_int(value: str) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


@dataclass
class _CsvSession:
    books: list[ParsedBook]


@dataclass
class _AudibleSession:
    books: list[AudibleRow]


class _EntityResolver:
    """Resolve-or-create for one named entity kind, cached for a single commit."""

    def __init__(
        self,
        find: Callable[..., int | None],
        create: Callable[[str], int],
        *,
        ignore_case: bool,
    ) -> None:
        self._find = find
        self._create = create
        self._ignore_case = ignore_case
        self._cache: dict[str, int] = {}

    def resolve(self, name: str) -> int:
        key = name.lower().strip() if self._ignore_case else name
        if key in self._cache:
            return self._cache[key]
        entity_id = self._find(name, ignore_case=self._ignore_case)
        if entity_id is None:
            entity_id = self._create(name)
        self._cache[key] = entity_id
        return entity_id


class ImportService:
    """Preview and commit CSV (generic or Goodreads) and Audible imports.

    A preview parses the upload, reconciles each row against a single catalog
    snapshot, and parks the rows in a session. A commit consumes that session
    exactly once; a row that fails to write is reported and the rest carry on.
    """

    def __init__(
        self,
        catalog: ImportCatalog,
        csv_sessions: ImportSessionStore[_CsvSession] | None = None,
        audible_sessions: ImportSessionStore[_AudibleSession] | None = None,
    ) -> None:
        self._catalog = catalog
        self._csv_sessions = csv_sessions or ImportSessionStore(
            CSV_SESSION_TTL, expired_message=CSV_SESSION_EXPIRED
        )
        self._audible_sessions = audible_sessions or ImportSessionStore(
            AUDIBLE_SESSION_TTL, expired_message=AUDIBLE_SESSION_EXPIRED
        )

    # --- CSV ---

    def preview_csv(self, content: str | None) -> CsvPreview:
        """Parse a CSV upload and annotate each row with its catalog matches.

        Raises:
            ImportRejectedError: If there is no content or no data rows.
        """
        if content is None:
            raise ImportRejectedError(NO_FILE)
        parsed = parse_csv(content)
        if not parsed.rows:
            raise ImportRejectedError(EMPTY_CSV)

        goodreads = is_goodreads_format(parsed.headers)
        snapshot = self._catalog.snapshot()
        books = [
            self._annotate_row(
                index, map_goodreads_row(row) if goodreads else map_standard_row(row), snapshot
            )
            for index, row in enumerate(parsed.rows)
        ]
        session_id = self._csv_sessions.create(_CsvSession(books))
        logger.info("CSV preview %s: %d row(s), goodreads=%s", session_id, len(books), goodreads)

        return CsvPreview(
            session_id=session_id,
            is_goodreads=goodreads,
            total_rows=len(books),
            duplicate_count=sum(1 for b in books if b.is_duplicate),
            books=books,
            statuses=snapshot.statuses,
            formats=snapshot.formats,
            genres=snapshot.genres,
            authors=snapshot.authors[:OPTION_LIST_LIMIT],
            series=snapshot.series[:OPTION_LIST_LIMIT],
        )

    def _annotate_row(self, index: int, mapped: MappedRow, snapshot: CatalogSnapshot) -> ParsedBook:
        title = mapped.title
        series_name: str | None = mapped.series or None
        book_num = _to_float(mapped.book_num)
        if not series_name and mapped.title:
            derived = parse_series_from_title(mapped.title)
            title, series_name, book_num = derived.clean_title, derived.series, derived.book_num

        author_match = fuzzy_match_author(mapped.author, snapshot.authors) if mapped.author else None
        series_match = match_series(series_name, snapshot.series)
        status = match_status(mapped.status, snapshot.statuses)
        book_format = match_format(mapped.format, snapshot.formats)
        genre = match_genre(mapped.genre, snapshot.genres)
        duplicate = find_duplicate(
            title=title,
            author=mapped.author,
            isbn=mapped.isbn,
            isbn13=mapped.isbn13,
            goodreads_id=mapped.goodreads_id,
            existing=snapshot.books,
        )

        return ParsedBook(
            row_index=index,
            original_title=mapped.title,
            title=title,
            author=mapped.author,
            author_id=author_match.id if author_match else None,
            author_match=author_match,
            series=series_name,
            series_id=series_match.id if series_match else None,
            series_match=series_match,
            book_num=book_num,
            narrator=mapped.narrator,
            isbn=mapped.isbn,
            isbn13=mapped.isbn13,
            goodreads_id=mapped.goodreads_id,
            format_id=book_format.id if book_format else None,
            format=mapped.format,
            genre_id=genre.id if genre else None,
            genre=mapped.genre,
            status_id=status.id if status else None,
            status=mapped.status,
            rating=_to_float(mapped.rating),
            start_date=mapped.start_date,
            completed_date=mapped.completed_date,
            release_date=mapped.release_date,
            publish_year=_to_int(mapped.publish_year),
            page_count=_to_int(mapped.page_count),
            publisher=mapped.publisher,
            summary=mapped.summary,
            comments=mapped.comments,
            is_duplicate=duplicate is not None,
            duplicate_book_id=duplicate.id if duplicate else None,
        )

    def commit_csv(
        self,
        session_id: str | None,
        selected_rows: Iterable[int],
        create_missing: bool = True,
    ) -> CommitResult:
        """Write the selected, non-duplicate rows of a CSV preview.

        Unmatched authors, series, and narrators are created when
        ``create_missing`` is set; otherwise those links are left empty.

        Raises:
            ImportRejectedError: No session id, or nothing importable selected.
            SessionNotFoundError: Unknown, expired, or already committed session.
        """
        if not session_id:
            raise ImportRejectedError(NO_SESSION_ID)
        session = self._csv_sessions.peek(session_id)
        if session is None:
            raise SessionNotFoundError(CSV_SESSION_EXPIRED)

        selected = set(selected_rows)
        to_import = [b for b in session.books if b.row_index in selected and not b.is_duplicate]
        if not to_import:
            raise ImportRejectedError(NO_VALID_BOOKS)
        self._csv_sessions.take(session_id)

        authors = _EntityResolver(
            self._catalog.find_author, self._catalog.create_author, ignore_case=True
        )
        series = _EntityResolver(
            self._catalog.find_series, self._catalog.create_series, ignore_case=True
        )
        narrators = _EntityResolver(
            self._catalog.find_narrator, self._catalog.create_narrator, ignore_case=True
        )

        result = CommitResult(
            skipped=sum(1 for b in session.books if b.row_index in selected and b.is_duplicate)
        )
        for book in to_import:
            try:
                author_id = book.author_id
                if author_id is None and book.author and create_missing:
                    author_id = authors.resolve(book.author)
                series_id = book.series_id
                if series_id is None and book.series and create_missing:
                    series_id = series.resolve(book.series)
                narrator_id = book.narrator_id
                if narrator_id is None and book.narrator and create_missing:
                    narrator_id = narrators.resolve(book.narrator)

                self._catalog.create_book(
                    BookDraft(
                        title=book.title,
                        isbn10=book.isbn or None,
                        isbn13=book.isbn13 or None,
                        goodreads_id=book.goodreads_id or None,
                        status_id=book.status_id,
                        genre_id=book.genre_id,
                        format_id=book.format_id,
                        narrator_id=narrator_id,
                        rating=book.rating,
                        start_date=book.start_date or None,
                        completed_date=book.completed_date or None,
                        release_date=book.release_date or None,
                        publish_year=book.publish_year,
                        page_count=book.page_count,
                        publisher=book.publisher or None,
                        summary=book.summary or None,
                        comments=book.comments or None,
                        author_ids=[author_id] if author_id is not None else [],
                        series_id=series_id,
                        book_num=book.book_num,
                    )
                )
                result.imported += 1
            except CatalogError as exc:
                logger.warning("Row %d (%s) failed to import: %s", book.row_index, book.title, exc)
                result.errors.append(RowError(row=book.row_index, title=book.title, error=str(exc)))
                result.skipped += 1
            except Exception as exc:
                logger.exception("Row %d (%s) failed unexpectedly", book.row_index, book.title)
                result.errors.append(RowError(row=book.row_index, title=book.title, error=str(exc)))
                result.skipped += 1

        logger.info(
            "CSV commit %s: %d imported, %d skipped", session_id, result.imported, result.skipped
        )
        return result

    # --- Audible ---

    @staticmethod
    def _default_statuses(statuses: list[StatusOption]) -> tuple[int | None, int | None]:
        done = next((s for s in statuses if s.key == "READ"), None)
        unread = next(
            (
                s
                for s in statuses
                if s.key == "NEXT" or s.name.lower() in ("to-read", "unread")
            ),
            None,
        )
        return (done.id if done else None), (unread.id if unread else None)

    def preview_audible(self, html: str | None, today: date | None = None) -> AudiblePreview:
        """Parse a saved listening-history page and flag books already cataloged.

        Books listened to before ``today`` default to the done status, the
        rest to the unread one; the format defaults to Audiobook.

        Raises:
            ImportRejectedError: If there is no content or no book could be parsed.
        """
        if html is None:
            raise ImportRejectedError(NO_FILE)
        parsed = parse_audible_html(html)
        if not parsed:
            raise ImportRejectedError(NO_AUDIBLE_BOOKS)

        snapshot = self._catalog.snapshot()
        audiobook = match_format(AUDIOBOOK_FORMAT, snapshot.formats)
        done_id, unread_id = self._default_statuses(snapshot.statuses)

        rows: list[AudibleRow] = []
        for index, book in enumerate(parsed):
            duplicate = find_audible_duplicate(book, snapshot.books)
            listened = is_date_in_past(book.listen_date, today)
            rows.append(
                AudibleRow(
                    row_index=index,
                    title=book.title,
                    author=book.author,
                    image_url=book.image_url,
                    listen_date=book.listen_date,
                    asin=book.asin,
                    format_id=audiobook.id if audiobook else None,
                    status_id=done_id if listened else unread_id,
                    is_duplicate=duplicate is not None,
                    duplicate_book_id=duplicate.id if duplicate else None,
                    is_read=listened,
                )
            )

        session_id = self._audible_sessions.create(_AudibleSession(rows))
        duplicates = sum(1 for r in rows if r.is_duplicate)
        logger.info("Audible preview %s: %d book(s), %d duplicate(s)", session_id, len(rows), duplicates)

        return AudiblePreview(
            session_id=session_id,
            total_books=len(rows),
            duplicates=duplicates,
            new_books=len(rows) - duplicates,
            books=rows,
            authors=snapshot.authors,
            series=snapshot.series,
            narrators=snapshot.narrators,
            genres=snapshot.genres,
            formats=snapshot.formats,
            statuses=snapshot.statuses,
        )

    def commit_audible(
        self,
        session_id: str | None,
        selected_rows: Iterable[int],
        edits: Mapping[int, Mapping[str, Any]] | None = None,
    ) -> CommitResult:
        """Write the selected rows of an Audible preview, applying per-row edits.

        ``edits`` maps a row index to field overrides (``series_name``,
        ``narrator_id``, ``status_id`` and so on). Selected indices with no
        previewed row count as skipped.

        Raises:
            SessionNotFoundError: Unknown, expired, or already committed session.
            ImportRejectedError: Empty selection or an edit naming an unknown field.
        """
        session = self._audible_sessions.peek(session_id) if session_id else None
        if session is None:
            raise SessionNotFoundError(AUDIBLE_SESSION_EXPIRED)

        selected = list(selected_rows)
        if not selected:
            raise ImportRejectedError(NO_BOOKS_SELECTED)
        edits = edits or {}
        for row_index, changes in edits.items():
            unknown = set(changes) - _AUDIBLE_EDITABLE
            if unknown:
                raise ImportRejectedError(
                    f"Unknown field(s) in edits for row {row_index}: {', '.join(sorted(unknown))}"
                )
        self._audible_sessions.take(session_id)

        format_id = self._catalog.find_format(AUDIOBOOK_FORMAT)
        if format_id is None:
            format_id = self._catalog.create_format(AUDIOBOOK_FORMAT)

        authors = _EntityResolver(
            self._catalog.find_author, self._catalog.create_author, ignore_case=False
        )
        series = _EntityResolver(
            self._catalog.find_series, self._catalog.create_series, ignore_case=False
        )
        narrators = _EntityResolver(
            self._catalog.find_narrator, self._catalog.create_narrator, ignore_case=False
        )

        rows = {row.row_index: row for row in session.books}
        result = CommitResult()
        for row_index in selected:
            row = rows.get(row_index)
            if row is None:
                result.skipped += 1
                continue
            try:
                if row_index in edits:
                    row = replace(row, **edits[row_index])
                author_id = row.author_id
                if author_id is None and row.author.strip():
                    author_id = authors.resolve(row.author.strip())
                series_id = row.series_id
                if series_id is None and row.series_name.strip():
                    series_id = series.resolve(row.series_name.strip())
                narrator_id = row.narrator_id
                if narrator_id is None and row.narrator_name.strip():
                    narrator_id = narrators.resolve(row.narrator_name.strip())

                self._catalog.create_book(
                    BookDraft(
                        title=row.title,
                        asin=row.asin or None,
                        narrator_id=narrator_id,
                        genre_id=row.genre_id,
                        format_id=row.format_id or format_id,
                        status_id=row.status_id,
                        start_date=calculate_start_date(row.listen_date),
                        completed_date=row.listen_date,
                        cover_url=row.image_url or None,
                        author_ids=[author_id] if author_id is not None else [],
                        series_id=series_id,
                        book_num=row.book_num,
                    )
                )
                result.imported += 1
            except CatalogError as exc:
                logger.warning("Row %d (%s) failed to import: %s", row_index, row.title, exc)
                result.errors.append(RowError(row=row_index, title=row.title, error=str(exc)))
                result.skipped += 1
            except Exception as exc:
                logger.exception("Row %d (%s) failed unexpectedly", row_index, row.title)
                result.errors.append(RowError(row=row_index, title=row.title, error=str(exc)))
                result.skipped += 1

        logger.info(
            "Audible commit %s: %d imported, %d skipped", session_id, result.imported, result.skipped
        )
        return result

