# ABOUTME: Integration tests for the preview/commit import flow with real DB operations.
# ABOUTME: Validates stored records, dedup across repeated imports, and cross-source matching.

from datetime import date
from pathlib import Path

from bookshelf.db.catalog import LibraryCatalog
from bookshelf.db.connection import open_library
from bookshelf.importer.service import ImportService
from tests.fixtures.import_samples import AUDIBLE_HISTORY_HTML, GOODREADS_CSV, STANDARD_CSV


class TestCsvImportPipeline:
    """Integration tests for CSV and Goodreads imports."""

    def test_goodreads_import_stores_full_records(self, tmp_path: Path) -> None:
        """A Goodreads export lands with series, status, format, and dates resolved."""
        conn = open_library(tmp_path / "lib.db")
        catalog = LibraryCatalog(conn)
        service = ImportService(catalog)

        preview = service.preview_csv(GOODREADS_CSV)
        result = service.commit_csv(preview.session_id, [0, 1, 2])
        assert result.imported == 3

        books = {b.title: b for b in catalog.list_books()}
        assert sorted(books) == ["Catching Fire", "The Hobbit", "The Hunger Games"]

        hunger = books["The Hunger Games"]
        assert hunger.authors == ["Suzanne Collins"]
        assert hunger.series == "The Hunger Games"
        assert hunger.book_num == 1.0
        assert hunger.status == "Read"
        assert hunger.format == "Hardcover"
        assert hunger.isbn10 == "0439023483"
        assert hunger.isbn13 == "9780439023481"
        assert hunger.goodreads_id == "2767052"
        assert hunger.completed_date == "2020-05-01"
        assert hunger.rating == 5.0
        assert hunger.comments == "Loved it"

        catching = books["Catching Fire"]
        assert catching.series == "The Hunger Games"
        assert catching.book_num == 2.0
        assert catching.status == "Currently Reading"
        assert catching.format == "Paperback"

        assert books["The Hobbit"].isbn13 is None
        assert books["The Hobbit"].status == "To Read"
        assert len(catalog.snapshot().series) == 1
        conn.close()

    def test_reimport_flags_everything_as_duplicate(self, tmp_path: Path) -> None:
        """Importing the same export twice finds every row already cataloged."""
        db_path = tmp_path / "lib.db"
        conn = open_library(db_path)
        service = ImportService(LibraryCatalog(conn))
        first = service.preview_csv(GOODREADS_CSV)
        service.commit_csv(first.session_id, [0, 1, 2])
        conn.close()

        conn = open_library(db_path)
        second = ImportService(LibraryCatalog(conn)).preview_csv(GOODREADS_CSV)
        conn.close()

        assert second.duplicate_count == 3
        assert all(b.author_match is not None for b in second.books)

    def test_standard_csv_links_shared_entities(self, tmp_path: Path) -> None:
        """Rows sharing an author or series in different casing link to one entity."""
        conn = open_library(tmp_path / "lib.db")
        catalog = LibraryCatalog(conn)
        service = ImportService(catalog)

        preview = service.preview_csv(STANDARD_CSV)
        service.commit_csv(preview.session_id, [1, 2])

        books = catalog.list_books()
        assert [b.title for b in books] == ["Caliban's War", "Leviathan Wakes"]
        assert {tuple(b.authors) for b in books} == {("James S. A. Corey",)}
        assert [b.book_num for b in books] == [2.0, 1.0]
        assert {b.format for b in books} == {"Ebook"}
        conn.close()


class TestCrossSourcePipeline:
    """Integration tests mixing Audible and CSV imports."""

    def test_audible_then_csv(self, tmp_path: Path) -> None:
        """A book imported from Audible is recognized when a CSV lists it again."""
        conn = open_library(tmp_path / "lib.db")
        catalog = LibraryCatalog(conn)
        service = ImportService(catalog)

        audible = service.preview_audible(AUDIBLE_HISTORY_HTML, today=date(2025, 1, 1))
        result = service.commit_audible(audible.session_id, [0, 1])
        assert result.imported == 2

        hobbit = next(b for b in catalog.list_books() if b.title.startswith("The Hobbit"))
        assert hobbit.status == "To Read"
        assert hobbit.cover_url == "https://m.media-amazon.com/images/I/41abcXYZ+q._SL300_.jpg"

        preview = service.preview_csv(STANDARD_CSV)
        hail_mary = preview.books[0]
        assert hail_mary.is_duplicate is True
        assert hail_mary.author_match is not None
        assert hail_mary.author_match.name == "Andy Weir"
        assert preview.duplicate_count == 1

        again = service.preview_audible(AUDIBLE_HISTORY_HTML, today=date(2025, 1, 1))
        assert again.duplicates == 2
        assert again.new_books == 0
        conn.close()
