# ABOUTME: Text helpers for scraped HTML: entity decoding, tag stripping, fallback extraction.
# ABOUTME: Every provider routes human-readable text through decode_html_entities.

import re
from collections.abc import Sequence

_NAMED_ENTITIES: dict[str, str] = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&apos;": "'",
    "&#39;": "'",
    "&#x27;": "'",
    "&#x2F;": "/",
    "&#x60;": "`",
    "&#x3D;": "=",
    "&nbsp;": " ",
    "&ndash;": "–",
    "&mdash;": "—",
    "&hellip;": "…",
    "&lsquo;": "‘",
    "&rsquo;": "’",
    "&ldquo;": "“",
    "&rdquo;": "”",
}

_NAMED_RE = re.compile("|".join(re.escape(entity) for entity in _NAMED_ENTITIES), re.IGNORECASE)
_DECIMAL_RE = re.compile(r"&#(\d+);")
_HEX_RE = re.compile(r"&#x([0-9a-fA-F]+);")
_TAG_RE = re.compile(r"<[^>]*>")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

Pattern = re.Pattern[str] | str


def _codepoint(value: int) -> str:
    try:
        return chr(value)
    except (ValueError, OverflowError):
        return ""


def _named(match: re.Match[str]) -> str:
    token = match.group(0)
    return _NAMED_ENTITIES.get(token, _NAMED_ENTITIES.get(token.lower(), token))


def decode_html_entities(text: str | None) -> str | None:
    """Decode named, decimal, and hex HTML entities.

    Named entities go first, then the numeric passes run over the result, so
    ``&amp;#39;`` decodes all the way to an apostrophe.
    """
    if not text or not isinstance(text, str):
        return None
    decoded = _NAMED_RE.sub(_named, text)
    decoded = _DECIMAL_RE.sub(lambda m: _codepoint(int(m.group(1))), decoded)
    return _HEX_RE.sub(lambda m: _codepoint(int(m.group(1), 16)), decoded)


def strip_html(html: str | None, *, keep_breaks: bool = False) -> str:
    """Remove tags and trim. With keep_breaks, <br> becomes a newline first."""
    if not html:
        return ""
    if keep_breaks:
        html = _BR_RE.sub("\n", html)
    return _TAG_RE.sub("", html).strip()


def extract_text(html: str, patterns: Sequence[Pattern]) -> str | None:
    """Try each pattern in order; the first with a non-empty group 1 wins.

    Later patterns are deliberately looser, so the order matters and later
    patterns are never consulted once one matches.
    """
    for pattern in patterns:
        match = re.search(pattern, html) if isinstance(pattern, str) else pattern.search(html)
        if match and match.group(1):
            value = match.group(1).strip()
            if value:
                return decode_html_entities(value)
    return None


def clean_text(value: str | None) -> str | None:
    """Trim, decode entities, and treat empty or literal 'null' as absent."""
    if value is None:
        return None
    value = value.strip()
    if not value or value == "null":
        return None
    return decode_html_entities(value)
