# ABOUTME: Fuzzy reconciliation of imported rows against existing catalog entities.
# ABOUTME: Token-plus-edit-distance similarity, author name normalization, and duplicate detection.

import re
from collections.abc import Sequence
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from bookshelf.importer.models import (
    AudibleBook,
    AuthorMatch,
    ExistingBook,
    NamedEntity,
    SeriesEntity,
    SeriesMatch,
    StatusOption,
)

AUTHOR_MATCH_THRESHOLD = 0.8
TITLE_DUPLICATE_THRESHOLD = 0.85
AUTHOR_DUPLICATE_THRESHOLD = 0.8

_TOKEN_WEIGHT = 0.6
_EDIT_WEIGHT = 0.4

_WHITESPACE_RE = re.compile(r"\s+")
_AUTHOR_PUNCT_RE = re.compile(r"[.']")


@dataclass(frozen=True)
class DuplicateMatch:
    id: int
    title: str


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def calculate_similarity(a: str, b: str) -> float:
    """Similarity in [0, 1]: 60% shared tokens, 40% whole-string edit distance.

    A token counts as shared when the other string has the same token or one
    a single edit away.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    tokens_a = [t for t in a.split(" ") if t]
    tokens_b = [t for t in b.split(" ") if t]

    matching = sum(
        1
        for ta in tokens_a
        if any(ta == tb or Levenshtein.distance(ta, tb) <= 1 for tb in tokens_b)
    )
    token_score = matching / max(len(tokens_a), len(tokens_b))
    edit_score = 1 - Levenshtein.distance(a, b) / max(len(a), len(b))
    return token_score * _TOKEN_WEIGHT + edit_score * _EDIT_WEIGHT


def normalize_author_name(name: str | None) -> str:
    """Lowercase, flip ``Last, First``, and drop punctuation noise."""
    if not name:
        return ""
    normalized = name.lower().strip()
    if "," in normalized:
        parts = [part.strip() for part in normalized.split(",")]
        if len(parts) == 2:
            normalized = f"{parts[1]} {parts[0]}"
    normalized = _AUTHOR_PUNCT_RE.sub("", normalized).replace("-", " ")
    return _WHITESPACE_RE.sub(" ", normalized).strip()


def normalize_string(value: str | None) -> str:
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value.lower().strip())


def fuzzy_match(a: str | None, b: str | None) -> float:
    if not a or not b:
        return 0.0
    return calculate_similarity(normalize_string(a), normalize_string(b))


def fuzzy_match_author(name: str, authors: Sequence[NamedEntity]) -> AuthorMatch | None:
    """Best-scoring existing author, if it clears the acceptance threshold.

    The earliest candidate keeps ties.
    """
    if not name or not authors:
        return None

    wanted = normalize_author_name(name)
    best: NamedEntity | None = None
    best_score = 0.0
    for author in authors:
        score = calculate_similarity(wanted, normalize_author_name(author.name))
        if score > best_score:
            best, best_score = author, score

    if best is None or best_score < AUTHOR_MATCH_THRESHOLD:
        return None
    return AuthorMatch(
        id=best.id,
        name=best.name,
        confidence=round(best_score * 100),
        exact=best_score == 1,
    )


def match_series(name: str | None, series: Sequence[SeriesEntity]) -> SeriesMatch | None:
    """Series only match on normalized title equality."""
    if not name:
        return None
    wanted = normalize_string(name)
    for candidate in series:
        if normalize_string(candidate.title) == wanted:
            return SeriesMatch(id=candidate.id, title=candidate.title, exact=True)
    return None


def match_status(value: str | None, statuses: Sequence[StatusOption]) -> StatusOption | None:
    """Match a status by display name or by its stable key."""
    if not value:
        return None
    wanted = normalize_string(value)
    for status in statuses:
        if normalize_string(status.name) == wanted or (
            status.key is not None and status.key.lower() == wanted
        ):
            return status
    return None


def _match_name(value: str | None, options: Sequence[NamedEntity]) -> NamedEntity | None:
    if not value:
        return None
    wanted = normalize_string(value)
    return next((o for o in options if normalize_string(o.name) == wanted), None)


def match_format(value: str | None, formats: Sequence[NamedEntity]) -> NamedEntity | None:
    return _match_name(value, formats)


def match_genre(value: str | None, genres: Sequence[NamedEntity]) -> NamedEntity | None:
    return _match_name(value, genres)


def find_duplicate(
    *,
    title: str,
    author: str,
    isbn: str = "",
    isbn13: str = "",
    goodreads_id: str = "",
    existing: Sequence[ExistingBook],
) -> DuplicateMatch | None:
    """Find an existing book this row would duplicate.

    Identifiers are checked strongest first (ISBN-13, ISBN-10, Goodreads id)
    before falling back to fuzzy title and author agreement.
    """
    if isbn13:
        hit = next((b for b in existing if b.isbn13 == isbn13), None)
        if hit:
            return DuplicateMatch(hit.id, hit.title)

    if isbn:
        hit = next((b for b in existing if isbn in (b.isbn10, b.isbn13)), None)
        if hit:
            return DuplicateMatch(hit.id, hit.title)

    if goodreads_id:
        hit = next((b for b in existing if b.goodreads_id == goodreads_id), None)
        if hit:
            return DuplicateMatch(hit.id, hit.title)

    wanted_title = normalize_string(title)
    wanted_author = normalize_author_name(author)
    for book in existing:
        title_score = calculate_similarity(wanted_title, normalize_string(book.title))
        author_score = calculate_similarity(wanted_author, normalize_author_name(book.author))
        if title_score >= TITLE_DUPLICATE_THRESHOLD and author_score >= AUTHOR_DUPLICATE_THRESHOLD:
            return DuplicateMatch(book.id, book.title)
    return None


def find_audible_duplicate(
    book: AudibleBook, existing: Sequence[ExistingBook]
) -> DuplicateMatch | None:
    """ASIN first, then fuzzy title alone (listening history has no ISBNs)."""
    if book.asin:
        hit = next((b for b in existing if b.asin == book.asin), None)
        if hit:
            return DuplicateMatch(hit.id, hit.title)

    for candidate in existing:
        if fuzzy_match(book.title, candidate.title) >= TITLE_DUPLICATE_THRESHOLD:
            return DuplicateMatch(candidate.id, candidate.title)
    return None
