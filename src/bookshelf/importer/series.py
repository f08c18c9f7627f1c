# ABOUTME: Extracts series name and position from Goodreads-style bracketed titles.
# ABOUTME: e.g. "The Way of Kings (The Stormlight Archive, #1)" -> title, series, 1.0.

import re
from dataclasses import dataclass

_HASH_RE = re.compile(r"^(.+?)\s*\(([^)]+?),?\s*#(\d+(?:\.\d+)?)\)$")
_BOOK_WORD_RE = re.compile(r"^(.+?)\s*\(([^)]+?),?\s*Book\s+(\w+)\)$", re.IGNORECASE)
_VOLUME_RE = re.compile(
    r"^(.+?)\s*\(([^)]+?),?\s*(?:Vol\.?|Part|Volume)\s*(\d+)\)$", re.IGNORECASE
)
_HASH_NO_COMMA_RE = re.compile(r"^(.+?)\s*\(([^)]+?)\s*#(\d+(?:\.\d+)?)\)$")

NUMBER_WORDS = {
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
}


@dataclass(frozen=True)
class SeriesParse:
    clean_title: str
    series: str | None = None
    book_num: float | None = None


def _leading_int(value: str) -> int | None:
    digits = re.match(r"\d+", value)
    return int(digits.group()) if digits else None


def parse_series_from_title(title: str) -> SeriesParse:
    """Split a trailing ``(Series, #N)``-style suffix off a title.

    Four conventions are tried in order: ``(Series, #N)``, ``(Series, Book
    Two)``, ``(Series, Vol. N)`` and ``(Series #N)``. Titles without one come
    back unchanged with no series.
    """
    if not title:
        return SeriesParse(clean_title=title)

    match = _HASH_RE.match(title)
    if match:
        return SeriesParse(match.group(1).strip(), match.group(2).strip(), float(match.group(3)))

    match = _BOOK_WORD_RE.match(title)
    if match:
        word = match.group(3).lower()
        number = NUMBER_WORDS.get(word) or _leading_int(word) or None
        return SeriesParse(match.group(1).strip(), match.group(2).strip(), number)

    match = _VOLUME_RE.match(title)
    if match:
        return SeriesParse(match.group(1).strip(), match.group(2).strip(), int(match.group(3)))

    match = _HASH_NO_COMMA_RE.match(title)
    if match:
        return SeriesParse(match.group(1).strip(), match.group(2).strip(), float(match.group(3)))

    return SeriesParse(clean_title=title)
