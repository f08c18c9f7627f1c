# ABOUTME: Import reconciliation engine for CSV, Goodreads, and Audible exports.
# ABOUTME: Exports the two-phase ImportService and the errors it raises.

from bookshelf.importer.errors import CatalogError, ImportRejectedError, SessionNotFoundError
from bookshelf.importer.models import AudiblePreview, CommitResult, CsvPreview
from bookshelf.importer.service import ImportCatalog, ImportService

__all__ = [
    "AudiblePreview",
    "CatalogError",
    "CommitResult",
    "CsvPreview",
    "ImportCatalog",
    "ImportRejectedError",
    "ImportService",
    "SessionNotFoundError",
]
