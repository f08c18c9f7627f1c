# ABOUTME: Public API for the BookShelf library database layer.
# ABOUTME: Exports connection management, catalog operations, and data types.

from bookshelf.db.catalog import CatalogError, LibraryCatalog
from bookshelf.db.connection import DEFAULT_DB_PATH, open_library
from bookshelf.db.mapping import BookRecord

__all__ = [
    "DEFAULT_DB_PATH",
    "BookRecord",
    "CatalogError",
    "LibraryCatalog",
    "open_library",
]
