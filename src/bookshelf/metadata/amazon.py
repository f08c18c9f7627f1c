# ABOUTME: Amazon metadata provider that scrapes search and product pages.
# ABOUTME: Every field is read through an ordered list of regex fallbacks; the first hit wins.

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote_plus

from bookshelf.metadata.cache import TTLCache
from bookshelf.metadata.html import decode_html_entities, extract_text, strip_html
from bookshelf.metadata.http import BookshelfHttpClient, HttpClient
from bookshelf.metadata.provider import ADAPTER_ERRORS
from bookshelf.metadata.types import BookMetadataResult, MetadataSearchRequest

logger = logging.getLogger(__name__)

_RATE_LIMIT_SECONDS = 2.0
_FALLBACK_ASIN_LIMIT = 10
_FALLBACK_WINDOW = 2000

DEFAULT_DOMAIN = "com"

# Accept-Language sent per storefront.
DOMAIN_LANGUAGES: dict[str, str] = {
    "com": "en-US,en;q=0.9",
    "co.uk": "en-GB,en;q=0.9",
    "de": "en-GB,en;q=0.9,de;q=0.8",
    "fr": "en-GB,en;q=0.9,fr;q=0.8",
    "it": "en-GB,en;q=0.9,it;q=0.8",
    "es": "en-GB,en;q=0.9,es;q=0.8",
    "ca": "en-US,en;q=0.9",
    "com.au": "en-GB,en;q=0.9",
    "co.jp": "en-GB,en;q=0.9,ja;q=0.8",
    "in": "en-GB,en;q=0.9",
}

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    ),
    "Sec-Ch-Ua": '"Google Chrome";v="131", "Chromium";v="131", "Not_A Brand";v="24"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"macOS"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Upgrade-Insecure-Requests": "1",
}

_I = re.IGNORECASE

_ITEM_RE = re.compile(
    r'<div[^>]*data-asin="([A-Z0-9]{10})"[^>]*data-index="\d+"[^>]*>([\s\S]*?)'
    r"</div>\s*</div>\s*</div>\s*</div>"
)
_ASIN_RE = re.compile(r'data-asin="([A-Z0-9]{10})"')
_NON_WORD_RE = re.compile(r"[^\w\s]|_")

_SEARCH_TITLE = (
    re.compile(r"<h2[^>]*>[\s\S]*?<a[^>]*>[\s\S]*?<span[^>]*>([^<]+)</span>", _I),
    re.compile(r'<span[^>]*class="[^"]*a-text-normal[^"]*"[^>]*>([^<]+)</span>', _I),
)
_SEARCH_AUTHOR = (
    re.compile(
        r'<a[^>]*class="[^"]*a-link-normal[^"]*"[^>]*>[\s\S]*?'
        r'<span[^>]*class="[^"]*a-size-base[^"]*"[^>]*>([^<]+)</span>',
        _I,
    ),
    re.compile(r"by\s+<a[^>]*>([^<]+)</a>", _I),
)
_SEARCH_COVER = (
    re.compile(r'<img[^>]*src="(https://m\.media-amazon\.com[^"]+)"', _I),
    re.compile(r'<img[^>]*data-src="(https://m\.media-amazon\.com[^"]+)"', _I),
)

_DETAIL_TITLE = (
    re.compile(r'<span[^>]*id="productTitle"[^>]*>([^<]+)</span>', _I),
    re.compile(r'<span[^>]*id="ebooksProductTitle"[^>]*>([^<]+)</span>', _I),
    re.compile(r'<h1[^>]*id="title"[^>]*>[\s\S]*?<span[^>]*>([^<]+)</span>', _I),
)
_DETAIL_AUTHORS = (
    re.compile(r'<a[^>]*class="[^"]*author[^"]*"[^>]*>[\s\S]*?<span[^>]*>([^<]+)</span>', _I),
    re.compile(r'<span[^>]*class="author[^"]*"[^>]*>[\s\S]*?<a[^>]*>([^<]+)</a>', _I),
)
_DETAIL_DESCRIPTION = (
    re.compile(
        r'<div[^>]*data-a-expander-name="book_description_expander"[^>]*>[\s\S]*?'
        r'<div[^>]*class="[^"]*a-expander-content[^"]*"[^>]*>([\s\S]*?)</div>',
        _I,
    ),
    re.compile(
        r'<div[^>]*id="bookDescription_feature_div"[^>]*>[\s\S]*?<noscript>([\s\S]*?)</noscript>',
        _I,
    ),
)
_DETAIL_COVER = (
    re.compile(r'<img[^>]*id="landingImage"[^>]*data-old-hires="([^"]+)"', _I),
    re.compile(r'<img[^>]*id="landingImage"[^>]*src="([^"]+)"', _I),
    re.compile(r'<img[^>]*id="imgBlkFront"[^>]*src="([^"]+)"', _I),
)
_DETAIL_ISBN10 = (
    re.compile(
        r'<span[^>]*id="rpi-attribute-book_details-isbn10"[^>]*>[\s\S]*?'
        r'<span[^>]*class="[^"]*rpi-attribute-value[^"]*"[^>]*>[\s\S]*?<span[^>]*>([0-9X]+)</span>',
        _I,
    ),
    re.compile(r"ISBN-10\s*:?\s*</span>\s*<span[^>]*>([0-9X]+)</span>", _I),
)
_DETAIL_ISBN13 = (
    re.compile(
        r'<span[^>]*id="rpi-attribute-book_details-isbn13"[^>]*>[\s\S]*?'
        r'<span[^>]*class="[^"]*rpi-attribute-value[^"]*"[^>]*>[\s\S]*?<span[^>]*>([0-9-]+)</span>',
        _I,
    ),
    re.compile(r"ISBN-13\s*:?\s*</span>\s*<span[^>]*>([0-9-]+)</span>", _I),
)
_DETAIL_PUBLISHER = (
    re.compile(r"Publisher\s*:?\s*</span>\s*<span[^>]*>([^<(]+)", _I),
    re.compile(r"<span[^>]*>Publisher</span>\s*<span[^>]*>([^<(]+)", _I),
)
_DETAIL_PAGES = (
    re.compile(r'<span[^>]*id="rpi-attribute-book_details-fiona_pages"[^>]*>[\s\S]*?<span[^>]*>(\d+)', _I),
    re.compile(r"(\d+)\s*pages", _I),
)
_DETAIL_LANGUAGE = (
    re.compile(
        r'<span[^>]*id="rpi-attribute-language"[^>]*>[\s\S]*?'
        r'<span[^>]*class="[^"]*rpi-attribute-value[^"]*"[^>]*>[\s\S]*?<span[^>]*>([^<]+)</span>',
        _I,
    ),
    re.compile(r"Language\s*:?\s*</span>\s*<span[^>]*>([^<]+)</span>", _I),
)
_DETAIL_SERIES = (
    re.compile(
        r'<span[^>]*id="rpi-attribute-book_details-series"[^>]*>[\s\S]*?'
        r"<a[^>]*>[\s\S]*?<span[^>]*>([^<]+)</span>",
        _I,
    ),
)
_DETAIL_SERIES_NUMBER = (re.compile(r"Book\s+(\d+(?:\.\d+)?)\s+of\s+\d+", _I),)
_DETAIL_RATING = (
    re.compile(
        r'<span[^>]*id="acrPopover"[^>]*>[\s\S]*?<span[^>]*class="[^"]*a-size-base[^"]*"[^>]*>([0-9.,]+)',
        _I,
    ),
    re.compile(r'<span[^>]*class="[^"]*a-icon-alt[^"]*"[^>]*>([0-9.,]+)\s*out\s*of', _I),
)
_DETAIL_RATING_COUNT = (re.compile(r'<span[^>]*id="acrCustomerReviewText"[^>]*>([0-9,]+)', _I),)
_CATEGORY_RE = re.compile(
    r'<a[^>]*class="[^"]*a-link-normal[^"]*"[^>]*href="[^"]*/b/[^"]*"[^>]*>([^<]+)</a>', _I
)
_BOOKS_SUFFIX_RE = re.compile(r"\(Books\)", _I)


@dataclass
class AmazonSearchRow:
    """One product scraped from a search results page."""

    asin: str
    title: str
    author: str | None = None
    cover_url: str | None = None


def clean_search_terms(value: str) -> str:
    """Replace everything but letters, digits, and whitespace with spaces."""
    return _NON_WORD_RE.sub(" ", value).strip()


def _is_collection(item_html: str) -> bool:
    lowered = item_html.lower()
    return "box set" in lowered or "collection set" in lowered or "Collects books from" in item_html


def parse_search_results(html: str) -> list[AmazonSearchRow]:
    """Scrape product rows from a search page.

    When the block layout finds nothing, fall back to scanning bare
    ``data-asin`` attributes and reading a title from the markup after each.
    """
    rows: list[AmazonSearchRow] = []
    for match in _ITEM_RE.finditer(html):
        asin, item_html = match.group(1), match.group(2)
        if _is_collection(item_html):
            continue
        title = extract_text(item_html, _SEARCH_TITLE)
        if not title:
            continue
        author = extract_text(item_html, _SEARCH_AUTHOR)
        rows.append(
            AmazonSearchRow(
                asin=asin,
                title=strip_html(title),
                author=strip_html(author) if author else None,
                cover_url=extract_text(item_html, _SEARCH_COVER),
            )
        )

    if rows:
        return rows

    asins: list[str] = []
    for match in _ASIN_RE.finditer(html):
        if match.group(1) not in asins:
            asins.append(match.group(1))

    for asin in asins[:_FALLBACK_ASIN_LIMIT]:
        start = html.find(f'data-asin="{asin}"')
        nearby = html[start : start + _FALLBACK_WINDOW]
        title_match = _SEARCH_TITLE[1].search(nearby)
        if title_match:
            rows.append(AmazonSearchRow(asin=asin, title=strip_html(title_match.group(1))))
    return rows


def _collect_authors(html: str) -> list[str]:
    authors: list[str] = []
    for pattern in _DETAIL_AUTHORS:
        for match in pattern.finditer(html):
            name = decode_html_entities(strip_html(match.group(1)))
            if name and name not in authors:
                authors.append(name)
        if authors:
            break
    return authors


def _collect_genres(html: str) -> list[str]:
    genres: list[str] = []
    for match in _CATEGORY_RE.finditer(html):
        genre = _BOOKS_SUFFIX_RE.sub("", strip_html(match.group(1)), count=1).strip()
        genre = decode_html_entities(genre) or ""
        if len(genre) > 2 and genre not in genres:
            genres.append(genre)
    return genres


def _digits(value: str | None, keep: str = "0-9") -> str | None:
    if not value:
        return None
    return re.sub(rf"[^{keep}]", "", value, flags=_I) or None


def parse_book_details(html: str, asin: str) -> BookMetadataResult | None:
    """Scrape a product page. Returns None when no title can be found."""
    full_title = extract_text(html, _DETAIL_TITLE)
    if not full_title:
        return None
    if ":" in full_title:
        head, _, tail = full_title.partition(":")
        title, subtitle = head.strip(), tail.strip()
    else:
        title, subtitle = full_title, None

    description = extract_text(html, _DETAIL_DESCRIPTION)
    if description:
        description = strip_html(description, keep_breaks=True)

    publisher = extract_text(html, _DETAIL_PUBLISHER)
    if publisher:
        publisher = publisher.split(";")[0].strip()

    pages = _digits(extract_text(html, _DETAIL_PAGES))
    rating_text = extract_text(html, _DETAIL_RATING)
    rating_count = _digits(extract_text(html, _DETAIL_RATING_COUNT))
    series_number = extract_text(html, _DETAIL_SERIES_NUMBER)

    return BookMetadataResult(
        provider="amazon",
        provider_id=asin,
        asin=asin,
        title=title,
        subtitle=subtitle,
        authors=_collect_authors(html),
        description=description or None,
        publisher=publisher or None,
        page_count=int(pages) if pages else None,
        language=extract_text(html, _DETAIL_LANGUAGE),
        isbn10=_digits(extract_text(html, _DETAIL_ISBN10), keep="0-9X"),
        isbn13=_digits(extract_text(html, _DETAIL_ISBN13)),
        cover_url=extract_text(html, _DETAIL_COVER),
        genres=_collect_genres(html),
        series_name=extract_text(html, _DETAIL_SERIES),
        series_number=float(series_number) if series_number else None,
        rating=float(rating_text.replace(",", ".", 1)) if rating_text else None,
        rating_count=int(rating_count) if rating_count else None,
    )


class AmazonProvider:
    """Metadata provider that scrapes an Amazon storefront (no auth, one request per 2s)."""

    def __init__(
        self,
        http_client: HttpClient | None = None,
        cache: TTLCache[Any] | None = None,
        domain: str = DEFAULT_DOMAIN,
    ) -> None:
        self._http = http_client or BookshelfHttpClient(
            min_request_interval=_RATE_LIMIT_SECONDS, headers=BROWSER_HEADERS
        )
        self._cache: TTLCache[Any] = cache or TTLCache()
        self._domain = DEFAULT_DOMAIN
        self.set_domain(domain)

    @property
    def name(self) -> str:
        return "amazon"

    @property
    def display_name(self) -> str:
        return "Amazon"

    @property
    def requires_auth(self) -> bool:
        return False

    @property
    def domain(self) -> str:
        return self._domain

    def set_domain(self, domain: str) -> None:
        """Switch storefronts. Unsupported domains are ignored with a warning."""
        if domain not in DOMAIN_LANGUAGES:
            logger.warning("Unsupported Amazon domain %r, keeping %r", domain, self._domain)
            return
        self._domain = domain

    def _headers(self) -> dict[str, str]:
        return {"Accept-Language": DOMAIN_LANGUAGES[self._domain]}

    async def search(
        self, request: MetadataSearchRequest, limit: int = 10
    ) -> list[BookMetadataResult]:
        if request.isbn:
            term = re.sub(r"[-\s]", "", request.isbn)
        else:
            parts = [clean_search_terms(p) for p in (request.title, request.author) if p]
            term = " ".join(parts)
        if not term:
            return []

        cache_key = f"amz:search:{self._domain}:{term}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"https://www.amazon.{self._domain}/s?k={quote_plus(term)}&i=stripbooks"
        try:
            html = await self._http.get_text(url, headers=self._headers())
            rows = parse_search_results(html)
        except ADAPTER_ERRORS as exc:
            logger.warning("Amazon search failed for %r: %s", term, exc)
            return []

        results = [
            BookMetadataResult(
                provider="amazon",
                provider_id=row.asin,
                asin=row.asin,
                title=row.title,
                authors=[row.author] if row.author else [],
                thumbnail_url=row.cover_url,
            )
            for row in rows[:limit]
        ]
        self._cache.set(cache_key, results)
        return results

    async def fetch_details(self, provider_id: str) -> BookMetadataResult | None:
        cache_key = f"amz:detail:{self._domain}:{provider_id}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"https://www.amazon.{self._domain}/dp/{provider_id}"
        try:
            html = await self._http.get_text(url, headers=self._headers())
            result = parse_book_details(html, provider_id)
        except ADAPTER_ERRORS as exc:
            logger.warning("Amazon details failed for %s: %s", provider_id, exc)
            return None

        if result is not None:
            self._cache.set(cache_key, result)
        return result

    async def is_available(self) -> bool:
        return True
