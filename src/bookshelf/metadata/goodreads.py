# ABOUTME: Goodreads metadata provider that scrapes search pages and embedded book JSON.
# ABOUTME: Search reads result table rows; details read the __NEXT_DATA__ Apollo state blob.

import json
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from bookshelf.metadata.cache import TTLCache
from bookshelf.metadata.html import decode_html_entities, strip_html
from bookshelf.metadata.http import BookshelfHttpClient, HttpClient
from bookshelf.metadata.provider import ADAPTER_ERRORS
from bookshelf.metadata.types import BookMetadataResult, BookReview, MetadataSearchRequest

logger = logging.getLogger(__name__)

_GOODREADS_BASE = "https://www.goodreads.com"
_RATE_LIMIT_SECONDS = 1.0
_REVIEW_LIMIT = 5

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    ),
}

_NEXT_DATA_RE = re.compile(r'<script id="__NEXT_DATA__"[^>]*>([\s\S]*?)</script>')
_BOOK_ROW_RE = re.compile(r'<tr itemscope itemtype="http://schema\.org/Book"[\s\S]*?</tr>')
_BOOK_ID_RE = re.compile(r"/book/show/(\d+)")

# Ordered fallbacks: each list is tried front to back, first hit wins.
_TITLE_PATTERNS = (
    re.compile(r'<a class="bookTitle"[^>]*href="([^"]+)"[^>]*>([^<]+)<'),
    re.compile(r'<a class="bookTitle"[^>]*href="([^"]+)"[^>]*>([\s\S]*?)</a>'),
)
_AUTHOR_PATTERNS = (
    re.compile(r'<a class="authorName"[^>]*>([^<]+)<'),
    re.compile(r'<a class="authorName"[^>]*>([\s\S]*?)</a>'),
)
_COVER_PATTERNS = (
    re.compile(r'<img[^>]*src="([^"]+)"[^>]*class="bookCover"'),
    re.compile(r'<img[^>]*class="bookCover"[^>]*src="([^"]+)"'),
    re.compile(r'<img[^>]*src="(https?://[^"]+)"'),
)


@dataclass
class GoodreadsSearchRow:
    """One book row scraped from the search results table."""

    goodreads_id: str
    title: str
    author: str | None = None
    cover_url: str | None = None


def _clean(value: Any) -> str | None:
    """Goodreads serializes missing strings as "null" or ""; treat both as absent."""
    if not isinstance(value, str) or value in ("null", ""):
        return None
    return value


def _match_title(row: str) -> re.Match[str] | None:
    first, second = _TITLE_PATTERNS
    match = first.search(row)
    if match is None or not match.group(2).strip():
        match = second.search(row)
    return match


def _first_group(row: str, patterns: tuple[re.Pattern[str], ...]) -> str | None:
    for pattern in patterns:
        match = pattern.search(row)
        if match:
            return match.group(1)
    return None


def parse_search_results(html: str) -> list[GoodreadsSearchRow]:
    """Scrape book rows out of a Goodreads search results page."""
    rows: list[GoodreadsSearchRow] = []
    for row_match in _BOOK_ROW_RE.finditer(html):
        row = row_match.group(0)

        link = _match_title(row)
        if link is None:
            continue
        id_match = _BOOK_ID_RE.search(link.group(1))
        if id_match is None:
            continue
        title = decode_html_entities(strip_html(link.group(2))) or ""

        author = None
        raw_author = _first_group(row, _AUTHOR_PATTERNS)
        if raw_author is not None:
            author = decode_html_entities(strip_html(raw_author))

        rows.append(
            GoodreadsSearchRow(
                goodreads_id=id_match.group(1),
                title=title,
                author=author,
                cover_url=_first_group(row, _COVER_PATTERNS),
            )
        )
    return rows


def extract_next_data(html: str) -> dict[str, Any] | None:
    """Pull the __NEXT_DATA__ JSON blob out of a book page."""
    match = _NEXT_DATA_RE.search(html)
    if match is None:
        return None
    try:
        return json.loads(match.group(1))
    except ValueError:
        return None


def _epoch_ms(value: Any) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _find_key(keys: list[str], prefix: str) -> str | None:
    return next((k for k in keys if k.startswith(prefix)), None)


def extract_reviews(state: dict[str, Any], keys: list[str]) -> list[BookReview]:
    """Collect up to five reviews with HTML stripped; malformed ones are skipped."""
    reviews: list[BookReview] = []
    review_keys = [k for k in keys if k.startswith("Review:kca")][:_REVIEW_LIMIT]
    for key in review_keys:
        data = state.get(key)
        if not isinstance(data, dict) or not data.get("text"):
            continue
        body = strip_html(data["text"])
        if not body:
            continue

        reviewer = None
        creator_ref = (data.get("creator") or {}).get("__ref")
        if creator_ref:
            reviewer = (state.get(creator_ref) or {}).get("name")

        rating = None
        if data.get("rating"):
            try:
                rating = float(data["rating"])
            except (TypeError, ValueError):
                rating = None

        updated = _epoch_ms(data["updatedAt"]) if data.get("updatedAt") else None
        reviews.append(
            BookReview(
                body=body,
                reviewer_name=reviewer,
                rating=rating,
                date=updated.isoformat().replace("+00:00", "Z") if updated else None,
                spoiler=bool(data.get("spoilerStatus")),
            )
        )
    return reviews


def parse_book_details(next_data: dict[str, Any], goodreads_id: str) -> BookMetadataResult | None:
    """Map the Apollo state of a book page to a detail result.

    Returns None when the page carries no book record with a title.
    """
    state = ((next_data.get("props") or {}).get("pageProps") or {}).get("apolloState")
    if not state:
        return None

    keys = list(state)
    book_key = next(
        (k for k in keys if k.startswith("Book:kca:") and (state.get(k) or {}).get("title")),
        None,
    )
    if book_key is None:
        return None

    book = state[book_key]
    work_key = _find_key(keys, "Work:kca:")
    work = state.get(work_key) or {} if work_key else {}
    contributor_key = _find_key(keys, "Contributor:kca")
    series_key = _find_key(keys, "Series:kca")

    full_title = book.get("title") or ""
    if ":" in full_title:
        head, _, tail = full_title.partition(":")
        title, subtitle = head.strip(), tail.strip()
    else:
        title, subtitle = full_title, None

    authors: list[str] = []
    if contributor_key:
        name = (state.get(contributor_key) or {}).get("name")
        if name:
            authors = [name]

    series_name = (state.get(series_key) or {}).get("title") if series_key else None
    series_number = None
    book_series = book.get("bookSeries") or []
    if book_series and book_series[0].get("userPosition"):
        try:
            series_number = float(book_series[0]["userPosition"])
        except (TypeError, ValueError):
            series_number = None

    genres = [
        g["genre"]["name"]
        for g in book.get("bookGenres") or []
        if (g.get("genre") or {}).get("name")
    ]

    stats = work.get("stats") or {}
    rating = float(stats["averageRating"]) if stats.get("averageRating") else None
    rating_count = int(stats["ratingsCount"]) if stats.get("ratingsCount") else None

    details = book.get("details") or {}
    publish_year = None
    published_date = None
    if details.get("publicationTime"):
        published = _epoch_ms(details["publicationTime"])
        if published is not None:
            publish_year = published.year
            published_date = published.date().isoformat()

    pages = details.get("numPages")
    reviews = extract_reviews(state, keys)
    return BookMetadataResult(
        provider="goodreads",
        provider_id=goodreads_id,
        title=decode_html_entities(_clean(title)),
        subtitle=decode_html_entities(_clean(subtitle)),
        authors=authors,
        description=decode_html_entities(_clean(book.get("description"))),
        publisher=decode_html_entities(_clean(details.get("publisher"))),
        publish_year=publish_year,
        published_date=published_date,
        page_count=int(pages) if pages else None,
        language=(details.get("language") or {}).get("name"),
        isbn10=_clean(details.get("isbn")),
        isbn13=_clean(details.get("isbn13")),
        cover_url=book.get("imageUrl"),
        genres=genres,
        series_name=series_name,
        series_number=series_number,
        rating=rating,
        rating_count=rating_count,
        reviews=reviews,
    )


class GoodreadsProvider:
    """Metadata provider that scrapes goodreads.com (no auth, 1 request/second)."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        cache: TTLCache[Any] | None = None,
    ) -> None:
        self._http = http_client or BookshelfHttpClient(
            min_request_interval=_RATE_LIMIT_SECONDS, headers=BROWSER_HEADERS
        )
        self._cache: TTLCache[Any] = cache or TTLCache()

    @property
    def name(self) -> str:
        return "goodreads"

    @property
    def display_name(self) -> str:
        return "Goodreads"

    @property
    def requires_auth(self) -> bool:
        return False

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]:
        if request.isbn:
            term = re.sub(r"[-\s]", "", request.isbn)
        else:
            term = " ".join(part for part in (request.title, request.author) if part)
        if not term:
            return []

        cache_key = f"gr:search:{term}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            html = await self._http.get_text(f"{_GOODREADS_BASE}/search", params={"q": term})
            rows = parse_search_results(html)
        except ADAPTER_ERRORS as exc:
            logger.warning("Goodreads search failed for %r: %s", term, exc)
            return []

        results = [
            BookMetadataResult(
                provider="goodreads",
                provider_id=row.goodreads_id,
                title=row.title,
                authors=[row.author] if row.author else [],
                thumbnail_url=row.cover_url,
            )
            for row in rows[:limit]
        ]
        self._cache.set(cache_key, results)
        return results

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None:
        cache_key = f"gr:detail:{provider_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            html = await self._http.get_text(f"{_GOODREADS_BASE}/book/show/{provider_id}")
            next_data = extract_next_data(html)
            if next_data is None:
                logger.warning("Goodreads page for %s has no __NEXT_DATA__ blob", provider_id)
                return None
            result = parse_book_details(next_data, provider_id)
        except ADAPTER_ERRORS as exc:
            logger.warning("Goodreads details failed for %s: %s", provider_id, exc)
            return None

        if result is not None:
            self._cache.set(cache_key, result)
        return result

    async def is_available(self) -> bool:
        return True
