"""Normalisation helpers for extracted text fragments."""

from __future__ import annotations

import json
import re
from typing import Optional

from backend.config import settings

_TAG_RE = re.compile(r"<[^>]+>")
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_HSPACE_RE = re.compile(r"[^\S\n]+")
_LINE_EDGE_RE = re.compile(r" ?\n ?")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_SURROGATE_RE = re.compile("[\ud800-\udfff]")

_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "/": "/"}


def fold_surrogates(value: str) -> str:
    """Join UTF-16 surrogate pairs into real code points.

    Lone surrogates (half of a character split across streamed chunks) cannot
    be encoded as UTF-8 and become U+FFFD.
    """
    if not _SURROGATE_RE.search(value):
        return value
    return value.encode("utf-16", "surrogatepass").decode("utf-16", "replace")


def _unescape(match: "re.Match[str]") -> str:
    token = match.group(1)
    if len(token) == 5:
        return chr(int(token[1:], 16))
    return _SIMPLE_ESCAPES.get(token, match.group(0))


def clean_text(value: Optional[str]) -> Optional[str]:
    """Normalise *value* for output, returning ``None`` when nothing is left.

    Non-breaking spaces become spaces, tags are stripped, horizontal
    whitespace runs collapse to one space, 3+ newlines collapse to two and
    the ends are trimmed.  Applying it twice gives the same result as once.
    """
    if value is None:
        return None
    text = fold_surrogates(value).replace("\xa0", " ")
    text = _TAG_RE.sub("", text)
    text = _HSPACE_RE.sub(" ", text)
    text = _LINE_EDGE_RE.sub("\n", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    text = text.strip()
    return text or None


def decode_escapes(value: str) -> str:
    """Decode JSON/JavaScript string escapes in *value*.

    Tries a strict JSON string decode first and falls back to a single pass
    over the escape sequences, so malformed input never raises.  Unknown
    escapes are left as written.
    """
    if "\\" not in value:
        return value
    try:
        decoded = json.loads(f'"{value}"')
    except ValueError:
        return _ESCAPE_RE.sub(_unescape, value)
    return decoded if isinstance(decoded, str) else value


def breaks_to_newlines(value: str) -> str:
    """Turn ``<br>`` tags into newlines so tag stripping keeps line structure."""
    return _BR_RE.sub("\n", value)


def strip_site_suffix(title: str) -> str:
    suffix = settings.site_title_suffix
    if suffix and suffix in title:
        title = title.replace(suffix, "")
    return title.strip()
