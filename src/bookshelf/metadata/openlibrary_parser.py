# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts OL search docs, books-API records, and works into BookMetadataResult.

from typing import Any

from bookshelf.metadata.html import decode_html_entities
from bookshelf.metadata.types import BookMetadataResult, extract_year, map_language_code

_COVERS_BASE_URL = "https://covers.openlibrary.org/b/id"

SEARCH_FIELDS = (
    "key,title,author_name,first_publish_year,isbn,cover_i,"
    "publisher,number_of_pages_median,subject,language"
)


def build_cover_url(cover_id: int | str, size: str = "L") -> str:
    """Build an Open Library cover image URL for a cover id.

    Args:
        cover_id: The numeric cover id from a search doc or work.
        size: Image size, "S" (small), "M" (medium), or "L" (large).
    """
    return f"{_COVERS_BASE_URL}/{cover_id}-{size}.jpg"


def parse_search_doc(doc: dict[str, Any]) -> BookMetadataResult:
    """Parse one doc from the Search API into a result."""
    isbns = doc.get("isbn") or []
    languages = doc.get("language") or []
    publishers = doc.get("publisher") or []
    cover_id = doc.get("cover_i")

    return BookMetadataResult(
        provider="openlibrary",
        provider_id=doc.get("key"),
        title=decode_html_entities(doc.get("title")),
        authors=list(doc.get("author_name") or []),
        publish_year=doc.get("first_publish_year"),
        publisher=publishers[0] if publishers else None,
        page_count=doc.get("number_of_pages_median"),
        language=map_language_code(languages[0]) if languages else None,
        subjects=list(doc.get("subject") or [])[:5],
        isbn13=next((i for i in isbns if len(i) == 13), None),
        isbn10=next((i for i in isbns if len(i) == 10), None),
        cover_url=build_cover_url(cover_id, "L") if cover_id else None,
        thumbnail_url=build_cover_url(cover_id, "M") if cover_id else None,
    )


def parse_search_results(data: dict[str, Any]) -> list[BookMetadataResult]:
    """Parse an Open Library Search API response into a list of results."""
    return [parse_search_doc(doc) for doc in data.get("docs") or []]


def parse_books_api_record(data: dict[str, Any], isbn: str) -> BookMetadataResult:
    """Parse one record of the ``/api/books?jscmd=data`` response.

    The books API does not echo the ISBN back, so the requested one is
    assigned to isbn13 or isbn10 by its length.
    """
    cover = data.get("cover") or {}
    cover_url = cover.get("large") or cover.get("medium") or cover.get("small")

    publishers = data.get("publishers") or []
    languages = data.get("languages") or []
    language_key = languages[0].get("key", "") if languages else ""
    subjects = [s.get("name") for s in (data.get("subjects") or [])[:5] if s.get("name")]

    notes = data.get("notes")
    if isinstance(notes, dict):
        notes = notes.get("value")

    published = data.get("publish_date")
    return BookMetadataResult(
        provider="openlibrary",
        provider_id=data.get("key"),
        title=decode_html_entities(data.get("title")),
        authors=[a["name"] for a in data.get("authors") or [] if a.get("name")],
        publisher=publishers[0].get("name") if publishers else None,
        publish_year=extract_year(published),
        published_date=published,
        page_count=data.get("number_of_pages"),
        language=map_language_code(language_key.rsplit("/", 1)[-1]),
        description=decode_html_entities(notes),
        subjects=subjects,
        cover_url=cover_url,
        isbn13=isbn if len(isbn) == 13 else None,
        isbn10=isbn if len(isbn) == 10 else None,
    )


def parse_works_description(data: dict[str, Any]) -> str | None:
    """Extract the description from an Open Library Works response.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}.
    """
    desc = data.get("description")
    if desc is None:
        return None
    if isinstance(desc, str):
        return desc
    if isinstance(desc, dict):
        return desc.get("value")
    return None


def parse_author_keys(data: dict[str, Any], limit: int = 5) -> list[str]:
    """Author keys of a work, in order, capped at ``limit``.

    Works store authors as [{author: {key: ...}}]; some older records use
    a flat [{key: ...}] shape.
    """
    keys: list[str] = []
    for entry in (data.get("authors") or [])[:limit]:
        key = (entry.get("author") or {}).get("key") or entry.get("key")
        if key:
            keys.append(key)
    return keys


def parse_work(
    data: dict[str, Any], works_key: str, authors: list[str]
) -> BookMetadataResult:
    """Build a detail result from a work record plus resolved author names."""
    covers = data.get("covers") or []
    return BookMetadataResult(
        provider="openlibrary",
        provider_id=works_key,
        title=decode_html_entities(data.get("title")),
        authors=authors,
        description=decode_html_entities(parse_works_description(data)),
        subjects=list(data.get("subjects") or [])[:10],
        cover_url=build_cover_url(covers[0], "L") if covers else None,
    )
