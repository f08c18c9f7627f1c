# ABOUTME: Core metadata data structures shared by every provider adapter.
# ABOUTME: BookMetadataResult is the interchange format between providers, scoring, and lookup.

import re
from dataclasses import dataclass, field, fields
from typing import Any

PROVIDER_NAMES = (
    "googlebooks",
    "openlibrary",
    "goodreads",
    "hardcover",
    "amazon",
    "comicvine",
)

_ISBN_STRIP_RE = re.compile(r"[-\s]")
_ISBN_VALID_RE = re.compile(r"^([0-9]{10}|[0-9]{13}|[0-9]{9}X)$")
_YEAR_RE = re.compile(r"([0-9]{4})")

LANGUAGE_MAP: dict[str, str] = {
    "en": "English",
    "eng": "English",
    "es": "Spanish",
    "spa": "Spanish",
    "fr": "French",
    "fra": "French",
    "de": "German",
    "deu": "German",
    "it": "Italian",
    "ita": "Italian",
    "pt": "Portuguese",
    "por": "Portuguese",
    "ru": "Russian",
    "rus": "Russian",
    "ja": "Japanese",
    "jpn": "Japanese",
    "zh": "Chinese",
    "chi": "Chinese",
    "ko": "Korean",
    "kor": "Korean",
    "ar": "Arabic",
    "ara": "Arabic",
    "nl": "Dutch",
    "dut": "Dutch",
    "sv": "Swedish",
    "swe": "Swedish",
    "pl": "Polish",
    "pol": "Polish",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class MetadataSearchRequest:
    """A query descriptor. Every field is optional; an all-empty request finds nothing."""

    title: str | None = None
    author: str | None = None
    isbn: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.author or self.isbn)


@dataclass
class BookReview:
    """A single community review scraped alongside book details."""

    body: str
    reviewer_name: str | None = None
    rating: float | None = None
    date: str | None = None
    spoiler: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "reviewerName": self.reviewer_name,
            "rating": self.rating,
            "body": self.body,
            "date": self.date,
            "spoiler": self.spoiler,
        }


@dataclass
class BookMetadataResult:
    """One candidate book as seen by one provider.

    Only ``provider`` is required. No field is authoritative: the registry
    treats every result as a hint to be scored against the request.
    """

    provider: str
    provider_id: str | None = None
    title: str | None = None
    subtitle: str | None = None
    authors: list[str] = field(default_factory=list)
    description: str | None = None
    publisher: str | None = None
    published_date: str | None = None
    publish_year: int | None = None
    isbn10: str | None = None
    isbn13: str | None = None
    asin: str | None = None
    page_count: int | None = None
    language: str | None = None
    cover_url: str | None = None
    thumbnail_url: str | None = None
    genres: list[str] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    moods: list[str] = field(default_factory=list)
    series_name: str | None = None
    series_number: float | None = None
    series_total: int | None = None
    rating: float | None = None
    rating_count: int | None = None
    reviews: list[BookReview] = field(default_factory=list)

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape, omitting unset fields."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value == []:
                continue
            if f.name == "reviews":
                value = [review.to_dict() for review in value]
            out[_camel(f.name)] = value
        return out


def normalize_isbn(isbn: str) -> str:
    """Strip hyphens and whitespace, uppercase the check character."""
    return _ISBN_STRIP_RE.sub("", isbn).upper()


def is_valid_isbn(isbn: str) -> bool:
    """True for 10 digits, 13 digits, or 9 digits followed by X."""
    return bool(_ISBN_VALID_RE.match(normalize_isbn(isbn)))


def extract_year(value: str | None) -> int | None:
    """Pull the first four-digit run out of a free-form date string."""
    if not value:
        return None
    match = _YEAR_RE.search(value)
    return int(match.group(1)) if match else None


def map_language_code(code: str | None) -> str | None:
    """Map 2/3-letter ISO codes to English names; unknown codes pass through."""
    if not code:
        return None
    return LANGUAGE_MAP.get(code.lower(), code)
