# ABOUTME: Shared pytest fixtures for BookShelf tests.
# ABOUTME: Provides a temporary library database, its catalog, and sample import files on disk.

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from bookshelf.db.catalog import LibraryCatalog
from bookshelf.db.connection import open_library
from tests.fixtures.import_samples import AUDIBLE_HISTORY_HTML, GOODREADS_CSV, STANDARD_CSV


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path for a throwaway library database."""
    return tmp_path / "library.db"


@pytest.fixture
def library_conn(db_path: Path) -> Iterator[sqlite3.Connection]:
    """An open, fully migrated library database."""
    conn = open_library(db_path)
    yield conn
    conn.close()


@pytest.fixture
def catalog(library_conn: sqlite3.Connection) -> LibraryCatalog:
    """A LibraryCatalog over an empty, seeded database."""
    return LibraryCatalog(library_conn)


@pytest.fixture
def goodreads_csv(tmp_path: Path) -> Path:
    """A Goodreads library export with three rows."""
    path = tmp_path / "goodreads_library_export.csv"
    path.write_text(GOODREADS_CSV, encoding="utf-8")
    return path


@pytest.fixture
def standard_csv(tmp_path: Path) -> Path:
    """A generic CSV export with series, narrator, and status columns."""
    path = tmp_path / "books.csv"
    path.write_text(STANDARD_CSV, encoding="utf-8")
    return path


@pytest.fixture
def audible_html(tmp_path: Path) -> Path:
    """A saved Audible listening-history page with two books."""
    path = tmp_path / "Listening History.html"
    path.write_text(AUDIBLE_HISTORY_HTML, encoding="utf-8")
    return path
