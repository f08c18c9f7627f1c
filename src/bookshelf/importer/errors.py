# ABOUTME: Exceptions raised when an import request is rejected before any write.
# ABOUTME: Messages are stable, user-facing text surfaced verbatim by the CLI.

NO_FILE = "No file provided"
EMPTY_CSV = "CSV file is empty or has no data rows"
NO_AUDIBLE_BOOKS = (
    "No books found in the uploaded file. "
    "Make sure you exported your Audible listening history page."
)
NO_SESSION_ID = "No session ID provided"
NO_VALID_BOOKS = "No valid books to import"
NO_BOOKS_SELECTED = "No books selected for import"
CSV_SESSION_EXPIRED = "Import session expired. Please upload the file again."
AUDIBLE_SESSION_EXPIRED = "Invalid or expired session"


class ImportRejectedError(Exception):
    """The request was refused as a whole; nothing was written."""


class SessionNotFoundError(ImportRejectedError):
    """The session id is unknown, expired, or was already committed."""


class CatalogError(Exception):
    """A single catalog write was refused, e.g. by a uniqueness constraint."""
