# ABOUTME: Read and write operations for the BookShelf library catalog.
# ABOUTME: Implements the import engine's ImportCatalog on top of a sqlite3 connection.

import logging
import sqlite3

from bookshelf.db.mapping import BookRecord, draft_to_row, row_to_record
from bookshelf.importer.errors import CatalogError
from bookshelf.importer.models import (
    BookDraft,
    CatalogSnapshot,
    ExistingBook,
    NamedEntity,
    SeriesEntity,
    StatusOption,
)

logger = logging.getLogger(__name__)

__all__ = ["CatalogError", "LibraryCatalog"]

# Primary author per book: the lowest display_order link.
_PRIMARY_AUTHOR_SQL = (
    "SELECT a.name FROM book_authors ba JOIN authors a ON a.id = ba.author_id "
    "WHERE ba.book_id = b.id ORDER BY ba.display_order LIMIT 1"
)

_BOOK_SELECT = (
    "SELECT b.*, s.title AS series_title, bs.book_num AS book_num, "
    "st.name AS status_name, f.name AS format_name, "
    "n.name AS narrator_name, g.name AS genre_name "
    "FROM books b "
    "LEFT JOIN book_series bs ON bs.book_id = b.id AND bs.is_primary = 1 "
    "LEFT JOIN series s ON s.id = bs.series_id "
    "LEFT JOIN statuses st ON st.id = b.status_id "
    "LEFT JOIN formats f ON f.id = b.format_id "
    "LEFT JOIN narrators n ON n.id = b.narrator_id "
    "LEFT JOIN genres g ON g.id = b.genre_id"
)


class LibraryCatalog:
    """Wraps a sqlite3 connection and provides typed access to the catalog tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # --- Snapshot for import reconciliation ---

    def snapshot(self) -> CatalogSnapshot:
        """Everything an import preview matches against, in display order."""
        conn = self._conn
        return CatalogSnapshot(
            authors=[
                NamedEntity(row["id"], row["name"])
                for row in conn.execute("SELECT id, name FROM authors ORDER BY name")
            ],
            series=[
                SeriesEntity(row["id"], row["title"])
                for row in conn.execute("SELECT id, title FROM series ORDER BY title")
            ],
            books=[
                ExistingBook(
                    id=row["id"],
                    title=row["title"],
                    author=row["author"] or "",
                    isbn10=row["isbn10"],
                    isbn13=row["isbn13"],
                    goodreads_id=row["goodreads_id"],
                    asin=row["asin"],
                )
                for row in conn.execute(
                    f"SELECT b.id, b.title, b.isbn10, b.isbn13, b.goodreads_id, b.asin, "
                    f"({_PRIMARY_AUTHOR_SQL}) AS author FROM books b"
                )
            ],
            statuses=[
                StatusOption(row["id"], row["name"], row["key"], row["sort_order"])
                for row in conn.execute(
                    "SELECT id, name, key, sort_order FROM statuses ORDER BY sort_order"
                )
            ],
            formats=self._named("formats"),
            genres=self._named("genres"),
            narrators=self._named("narrators"),
        )

    def _named(self, table: str) -> list[NamedEntity]:
        cursor = self._conn.execute(f"SELECT id, name FROM {table} ORDER BY name")
        return [NamedEntity(row["id"], row["name"]) for row in cursor.fetchall()]

    # --- Named entities ---

    def _find(self, table: str, column: str, value: str, ignore_case: bool) -> int | None:
        collate = " COLLATE NOCASE" if ignore_case else ""
        cursor = self._conn.execute(
            f"SELECT id FROM {table} WHERE {column} = ?{collate} ORDER BY id LIMIT 1",
            (value,),
        )
        row = cursor.fetchone()
        return row[0] if row else None

    def _insert(self, table: str, column: str, value: str) -> int:
        if not value or not value.strip():
            raise CatalogError(f"Cannot create {table} entry with an empty {column}")
        cursor = self._conn.execute(f"INSERT INTO {table} ({column}) VALUES (?)", (value,))
        self._conn.commit()
        logger.debug("Created %s %r (id %d)", table, value, cursor.lastrowid)
        return cursor.lastrowid  # type: ignore[return-value]

    def find_author(self, name: str, *, ignore_case: bool = True) -> int | None:
        return self._find("authors", "name", name, ignore_case)

    def create_author(self, name: str) -> int:
        return self._insert("authors", "name", name)

    def find_series(self, title: str, *, ignore_case: bool = True) -> int | None:
        return self._find("series", "title", title, ignore_case)

    def create_series(self, title: str) -> int:
        return self._insert("series", "title", title)

    def find_narrator(self, name: str, *, ignore_case: bool = True) -> int | None:
        return self._find("narrators", "name", name, ignore_case)

    def create_narrator(self, name: str) -> int:
        return self._insert("narrators", "name", name)

    def find_format(self, name: str) -> int | None:
        return self._find("formats", "name", name, ignore_case=True)

    def create_format(self, name: str) -> int:
        return self._insert("formats", "name", name)

    def create_genre(self, name: str) -> int:
        return self._insert("genres", "name", name)

    # --- Books ---

    def create_book(self, draft: BookDraft) -> int:
        """Insert a book with its author and series links, atomically.

        Returns:
            The row ID of the inserted book.

        Raises:
            CatalogError: If the title is empty or the ISBN-13 is already cataloged.
        """
        if not draft.title or not draft.title.strip():
            raise CatalogError("Book title is required")

        row = draft_to_row(draft)
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)

        try:
            with self._conn:
                cursor = self._conn.execute(
                    f"INSERT INTO books ({columns}) VALUES ({placeholders})",
                    list(row.values()),
                )
                book_id = cursor.lastrowid
                for order, author_id in enumerate(draft.author_ids):
                    self._conn.execute(
                        "INSERT INTO book_authors "
                        "(book_id, author_id, role, is_primary, display_order) "
                        "VALUES (?, ?, 'Author', ?, ?)",
                        (book_id, author_id, int(order == 0), order),
                    )
                if draft.series_id is not None:
                    self._conn.execute(
                        "INSERT INTO book_series (book_id, series_id, book_num, is_primary) "
                        "VALUES (?, ?, ?, 1)",
                        (book_id, draft.series_id, draft.book_num),
                    )
        except sqlite3.IntegrityError as exc:
            if "books.isbn13" in str(exc):
                raise CatalogError(f"A book with ISBN-13 {draft.isbn13} already exists") from exc
            raise CatalogError(str(exc)) from exc

        return book_id  # type: ignore[return-value]

    def _authors_for(self, book_id: int) -> list[str]:
        cursor = self._conn.execute(
            "SELECT a.name FROM book_authors ba JOIN authors a ON a.id = ba.author_id "
            "WHERE ba.book_id = ? ORDER BY ba.display_order",
            (book_id,),
        )
        return [row[0] for row in cursor.fetchall()]

    def get_book(self, book_id: int) -> BookRecord | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute(f"{_BOOK_SELECT} WHERE b.id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_record(row, self._authors_for(row["id"])) if row else None

    def list_books(self) -> list[BookRecord]:
        """Return all books in the catalog, ordered by title."""
        cursor = self._conn.execute(f"{_BOOK_SELECT} ORDER BY b.title")
        return [row_to_record(row, self._authors_for(row["id"])) for row in cursor.fetchall()]
