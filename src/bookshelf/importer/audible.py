# ABOUTME: Scrapes books out of a saved Audible "listening history" HTML page.
# ABOUTME: Also derives reading dates from the listen date recorded by Audible.

import logging
import re
from datetime import date, timedelta

from bookshelf.importer.models import AudibleBook
from bookshelf.metadata.html import decode_html_entities

logger = logging.getLogger(__name__)

_BLOCK_RE = re.compile(
    r'<li[^>]*class="[^"]*bc-list-item[^"]*"[^>]*>([\s\S]*?)'
    r'(?=<li[^>]*class="[^"]*bc-list-item|</ul>)',
    re.IGNORECASE,
)
_HISTORY_MARKERS = ("ui-it-listenhistory-item-title", "listenHistoryRow")

_TITLE_RE = re.compile(
    r'<span[^>]*class="[^"]*bc-text[^"]*bc-color-base[^"]*"[^>]*>([^<]+)</span>',
    re.IGNORECASE,
)
_AUTHOR_RE = re.compile(r"By:\s*([^<]+)", re.IGNORECASE)
_BLOCK_DATE_RE = re.compile(r"ui-it-listenhistory-item-listendate[^>]*>([^<]+)<", re.IGNORECASE)
_ASIN_RE = re.compile(r"/pd/([A-Z0-9]{10})", re.IGNORECASE)

_PAGE_TITLE_RE = re.compile(
    r'<div[^>]*class="[^"]*ui-it-listenhistory-item-title[^"]*"[^>]*>([\s\S]*?)</div>',
    re.IGNORECASE,
)
_PAGE_DATE_RE = re.compile(
    r'<div[^>]*class="[^"]*ui-it-listenhistory-item-listendate[^"]*"[^>]*>([\s\S]*?)</div>',
    re.IGNORECASE,
)
_PAGE_IMAGE_RE = re.compile(
    r'<img[^>]*class="[^"]*bc-image-inset-border[^"]*"[^>]*src="([^"]*)"[^>]*>',
    re.IGNORECASE,
)

_HOSTED_IMG_RE = re.compile(
    r'<img[^>]*src="(https?://[^"]*(?:amazon|audible|m\.media)[^"]*)"', re.IGNORECASE
)
_DATA_SRC_RE = re.compile(r'data-src="(https?://[^"]+\.(?:jpg|jpeg|png)[^"]*)"', re.IGNORECASE)
_IMG_SRC_RE = re.compile(r'<img[^>]*src="([^"]*)"', re.IGNORECASE)
_ANY_HTTP_IMG_RE = re.compile(r'<img[^>]*src="(https?://[^"]+)"', re.IGNORECASE)
# Browsers saving the page rewrite image URLs to local files but keep Amazon's file name.
_SAVED_IMAGE_RE = re.compile(
    r"([0-9A-Za-z]{2}[0-9A-Za-z+_-]*\._SL\d+_\.(?:jpg|jpeg|png))$", re.IGNORECASE
)
_SAVED_IMAGE_ALT_RE = re.compile(
    r"([0-9A-Za-z]{2}[0-9A-Za-z+_-]*\._[A-Z]{2}[A-Z0-9_]*_\.(?:jpg|jpeg|png))$", re.IGNORECASE
)
_AMAZON_IMAGE_BASE = "https://m.media-amazon.com/images/I/"

_DMY_RE = re.compile(r"(\d{1,2})-(\d{1,2})-(\d{4})")
_YMD_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")

START_DATE_OFFSET_DAYS = 5


def _text(value: str) -> str:
    return decode_html_entities(value.strip()) or ""


def extract_date(value: str | None) -> str | None:
    """Parse ``D-M-YYYY`` or ``YYYY-M-D`` into zero-padded ISO, else None."""
    if not value:
        return None
    cleaned = value.strip()

    match = _DMY_RE.search(cleaned)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return f"{year}-{month:02d}-{day:02d}"

    match = _YMD_RE.search(cleaned)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return f"{year}-{month:02d}-{day:02d}"

    return None


def _parse_iso(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def calculate_start_date(listen_date: str | None) -> str | None:
    """Assume reading started five days before the listen date."""
    parsed = _parse_iso(listen_date)
    if parsed is None:
        return None
    return (parsed - timedelta(days=START_DATE_OFFSET_DAYS)).isoformat()


def is_date_in_past(value: str | None, today: date | None = None) -> bool:
    """True when the date is strictly before today; unparseable dates are not past."""
    parsed = _parse_iso(value)
    if parsed is None:
        return False
    return parsed < (today or date.today())


def _saved_image_url(src: str) -> str | None:
    for pattern in (_SAVED_IMAGE_RE, _SAVED_IMAGE_ALT_RE):
        match = pattern.search(src)
        if match:
            return _AMAZON_IMAGE_BASE + match.group(1)
    return None


def extract_image_url(block: str) -> str:
    """Best cover URL in a block, trying hosted, lazy-loaded, then saved-file images."""
    match = _HOSTED_IMG_RE.search(block)
    if match:
        return match.group(1)

    match = _DATA_SRC_RE.search(block)
    if match:
        return match.group(1)

    for src in _IMG_SRC_RE.findall(block):
        url = _saved_image_url(src)
        if url:
            return url

    match = _ANY_HTTP_IMG_RE.search(block)
    return match.group(1) if match else ""


def _extract_book(block: str) -> AudibleBook:
    title = _TITLE_RE.search(block)
    author = _AUTHOR_RE.search(block)
    listened = _BLOCK_DATE_RE.search(block)
    asin = _ASIN_RE.search(block)
    return AudibleBook(
        title=_text(title.group(1)) if title else "",
        author=_text(author.group(1)) if author else "",
        image_url=extract_image_url(block),
        listen_date=extract_date(listened.group(1)) if listened else None,
        asin=asin.group(1) if asin else "",
    )


def _parse_page_lists(html: str) -> list[AudibleBook]:
    """Fallback: collect titles, dates, images, authors and ASINs page-wide and zip them."""
    titles = _PAGE_TITLE_RE.findall(html)
    dates = _PAGE_DATE_RE.findall(html)
    images = [_saved_image_url(src) or src for src in _PAGE_IMAGE_RE.findall(html)]
    authors = [a.strip() for a in _AUTHOR_RE.findall(html)]
    asins: list[str] = []
    for asin in _ASIN_RE.findall(html):
        if asin not in asins:
            asins.append(asin)

    def at(items: list[str], index: int) -> str:
        return items[index] if index < len(items) else ""

    books: list[AudibleBook] = []
    for i, title_html in enumerate(titles):
        match = _TITLE_RE.search(title_html)
        title = _text(match.group(1)) if match else ""
        if not title:
            continue
        books.append(
            AudibleBook(
                title=title,
                author=_text(at(authors, i)),
                image_url=at(images, i),
                listen_date=extract_date(at(dates, i)),
                asin=at(asins, i),
            )
        )
    return books


def parse_audible_html(html: str) -> list[AudibleBook]:
    """Extract every listened book from a saved listening-history page.

    List items carrying listening-history markup are parsed one by one; when
    none yield a book, the page-wide fallback is used.
    """
    books: list[AudibleBook] = []
    for match in _BLOCK_RE.finditer(html):
        block = match.group(1)
        if not any(marker in block for marker in _HISTORY_MARKERS):
            continue
        book = _extract_book(block)
        if book.title:
            books.append(book)

    if not books:
        logger.debug("No listening-history list items found; using page-wide fallback")
        books = _parse_page_lists(html)
    return books
