# ABOUTME: Scoring of provider results against a metadata search request.
# ABOUTME: Additive points for title/author/ISBN agreement plus flat completeness bonuses.

from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest, normalize_isbn

SCORE_TITLE_EXACT = 100
SCORE_TITLE_CONTAINS = 50
SCORE_AUTHOR = 30
SCORE_ISBN = 200

# Completeness bonuses, independent of the request.
SCORE_DESCRIPTION = 10
SCORE_COVER = 15
SCORE_PAGE_COUNT = 5
SCORE_PUBLISH_YEAR = 5
SCORE_GENRES = 5
SCORE_RATING = 5
SCORE_SERIES = 5


def _title_score(requested: str, found: str) -> int:
    requested, found = requested.lower(), found.lower()
    if requested == found:
        return SCORE_TITLE_EXACT
    if requested in found or found in requested:
        return SCORE_TITLE_CONTAINS
    return 0


def completeness_bonus(result: BookMetadataResult) -> int:
    """Flat bonuses for populated fields, so rich records beat sparse stubs."""
    bonus = 0
    if result.description:
        bonus += SCORE_DESCRIPTION
    if result.cover_url:
        bonus += SCORE_COVER
    if result.page_count:
        bonus += SCORE_PAGE_COUNT
    if result.publish_year:
        bonus += SCORE_PUBLISH_YEAR
    if result.genres:
        bonus += SCORE_GENRES
    if result.rating:
        bonus += SCORE_RATING
    if result.series_name:
        bonus += SCORE_SERIES
    return bonus


def score_result(request: MetadataSearchRequest, result: BookMetadataResult) -> int:
    """Score how well a provider result answers the request.

    An ISBN match (200) outweighs an exact title plus every completeness
    bonus (150), so identifier agreement always wins.
    """
    score = 0

    if request.title and result.title:
        score += _title_score(request.title, result.title)

    if request.author and result.authors:
        wanted = request.author.lower()
        if any(wanted in author.lower() for author in result.authors):
            score += SCORE_AUTHOR

    if request.isbn:
        clean = normalize_isbn(request.isbn)
        if clean and clean in (result.isbn13, result.isbn10):
            score += SCORE_ISBN

    return score + completeness_bonus(result)
