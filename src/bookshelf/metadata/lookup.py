# ABOUTME: Quick lookup of a single book by ISBN or by free-text name.
# ABOUTME: Combines Google Books and Open Library results and reports user-facing failures.

import asyncio
from dataclasses import dataclass, replace

from bookshelf.metadata.registry import MetadataProviderRegistry
from bookshelf.metadata.types import (
    BookMetadataResult,
    MetadataSearchRequest,
    is_valid_isbn,
    normalize_isbn,
)

INVALID_ISBN = "Invalid ISBN format. Please enter a 10 or 13 digit ISBN."
QUERY_TOO_SHORT = "Please enter at least 2 characters to search."
NOT_FOUND = "Book not found. Try a different ISBN or enter details manually."
NO_RESULTS = "No books found. Try a different search term."

_MIN_QUERY_LENGTH = 2


@dataclass(frozen=True)
class LookupFailure:
    """A user-facing lookup failure; ``message`` is shown verbatim."""

    message: str


async def lookup_by_isbn(
    registry: MetadataProviderRegistry, isbn: str
) -> BookMetadataResult | LookupFailure:
    """Look one ISBN up on Google Books and Open Library at once.

    Google's record is preferred; when it lacks a cover, Open Library's is
    borrowed. Open Library alone is the fallback.
    """
    if not is_valid_isbn(isbn):
        return LookupFailure(INVALID_ISBN)

    request = MetadataSearchRequest(isbn=normalize_isbn(isbn))
    google, openlibrary = await asyncio.gather(
        registry.search("googlebooks", request, limit=1),
        registry.search("openlibrary", request, limit=1),
    )
    google_hit = google[0] if google else None
    ol_hit = openlibrary[0] if openlibrary else None

    if google_hit is not None:
        if not google_hit.cover_url and ol_hit is not None and ol_hit.cover_url:
            return replace(google_hit, cover_url=ol_hit.cover_url)
        return google_hit
    if ol_hit is not None:
        return ol_hit
    return LookupFailure(NOT_FOUND)


def _dedupe_key(result: BookMetadataResult) -> str:
    return f"{(result.title or '').lower()}-{','.join(result.authors).lower()}"


async def search_by_name(
    registry: MetadataProviderRegistry, query: str, limit: int = 10
) -> list[BookMetadataResult] | LookupFailure:
    """Search Open Library then Google Books by name, English editions first."""
    if not query or len(query.strip()) < _MIN_QUERY_LENGTH:
        return LookupFailure(QUERY_TOO_SHORT)

    request = MetadataSearchRequest(title=query.strip())
    results: list[BookMetadataResult] = []
    seen: set[str] = set()
    for provider in ("openlibrary", "googlebooks"):
        for result in await registry.search(provider, request, limit=limit):
            key = _dedupe_key(result)
            if key not in seen:
                seen.add(key)
                results.append(result)

    if not results:
        return LookupFailure(NO_RESULTS)

    results.sort(key=lambda r: r.language != "English")
    return results[:limit]
