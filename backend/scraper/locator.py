"""Embedded-data locator: finds song-shaped payloads inside ``<script>`` tags.

Three strategies are tried in a fixed order, each independently of the
others (a strategy that fails to parse never stops the next one):

1. ``legacy-embedded-json`` — the single ``__NEXT_DATA__`` document.
2. ``streamed-chunk-json`` — ``self.__next_f.push([1, "..."])`` chunks of the
   streaming hydration format.
3. ``generic-script-json`` — any inline script whose body is a JSON object.

Within a strategy the first usable payload wins.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterator, List, Optional, Tuple

from bs4 import BeautifulSoup

from backend.config import settings
from backend.scraper.accessors import get_dict
from backend.scraper.cleaner import decode_escapes
from backend.scraper.models import CandidatePayload, Strategy

logger = logging.getLogger(__name__)

_LEGACY_SCRIPT_ID = "__NEXT_DATA__"

# Key chains tried, in order, inside the legacy document.
_LEGACY_SONG_PATHS = (
    ("props", "pageProps", "song"),
    ("props", "pageProps", "data"),
    ("props", "pageProps"),
)

_NEXT_F_PUSH_RE = re.compile(
    r'self\.__next_f\.push\(\s*\[\s*1\s*,\s*"((?:\\.|[^"\\])*)"\s*\]\s*\)',
    re.DOTALL,
)
_CLIP_MARKER_RE = re.compile(r'"clip"\s*:')
_COMPLETE_MARKER_RE = re.compile(r'"status"\s*:\s*"complete"')
# One row of the React flight format: ``<hex id>:<json>``
_FLIGHT_ROW_RE = re.compile(r"^[0-9a-fA-F]+:([\[{].*)$", re.MULTILINE)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def parse_markup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def count_scripts(soup: BeautifulSoup) -> int:
    return len(soup.find_all("script"))


def iter_stream_chunks(html: str) -> Iterator[str]:
    """Yield every streamed chunk in *html* with its string escapes decoded."""
    for match in _NEXT_F_PUSH_RE.finditer(html):
        yield decode_escapes(match.group(1))


def _loads(text: str, label: str) -> Any:
    """Parse *text* as JSON, returning ``None`` when it is unusable."""
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as exc:
        logger.debug("Skipping unparsable %s payload: %s", label, exc)
        return None


def find_song_node(tree: Any, max_nodes: Optional[int] = None) -> Optional[dict]:
    """Depth-first search of a decoded JSON tree for a clip-shaped object.

    A node matches when it either carries a nested ``clip`` object with a
    ``title`` and ``metadata`` (the nested object is returned) or itself has
    ``title``, ``metadata`` and an ``id`` or ``audio_url``.  At most
    *max_nodes* containers are visited (``settings.max_tree_nodes`` by
    default); hitting the cap counts as a miss.
    """
    limit = settings.max_tree_nodes if max_nodes is None else max_nodes
    stack: List[Any] = [tree]
    visited = 0
    while stack:
        node = stack.pop()
        visited += 1
        if visited > limit:
            logger.debug("Clip search stopped after %d nodes", limit)
            return None

        if isinstance(node, dict):
            clip = node.get("clip")
            if isinstance(clip, dict) and clip.get("title") and clip.get("metadata"):
                return clip
            if node.get("title") and node.get("metadata") and (
                node.get("id") or node.get("audio_url")
            ):
                return node
            children = list(node.values())
        elif isinstance(node, list):
            children = node
        else:
            continue

        # Reversed so the first child is popped (visited) first.
        stack.extend(
            child for child in reversed(children) if isinstance(child, (dict, list))
        )
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _locate_legacy(soup: BeautifulSoup) -> Optional[Tuple[dict, Any]]:
    script = soup.find("script", id=_LEGACY_SCRIPT_ID)
    if script is None or not script.string:
        return None
    document = _loads(script.string, Strategy.LEGACY_EMBEDDED_JSON.value)
    if not isinstance(document, dict):
        return None
    for path in _LEGACY_SONG_PATHS:
        song = get_dict(document, *path)
        if song is not None:
            return song, document
    return document, document


def _parse_chunk(chunk: str) -> List[Any]:
    """Decode a streamed chunk as one JSON value, or row by row."""
    whole = _loads(chunk, Strategy.STREAMED_CHUNK_JSON.value)
    if whole is not None:
        return [whole]
    rows = []
    for row in _FLIGHT_ROW_RE.finditer(chunk):
        value = _loads(row.group(1), Strategy.STREAMED_CHUNK_JSON.value)
        if value is not None:
            rows.append(value)
    return rows


def _locate_streamed(html: str) -> Optional[Tuple[dict, Any]]:
    for chunk in iter_stream_chunks(html):
        if not (_CLIP_MARKER_RE.search(chunk) and _COMPLETE_MARKER_RE.search(chunk)):
            continue
        for tree in _parse_chunk(chunk):
            song = find_song_node(tree)
            if song is not None:
                return song, tree
    return None


def _locate_generic(soup: BeautifulSoup) -> Optional[Tuple[dict, Any]]:
    for script in soup.find_all("script"):
        if script.get("id") == _LEGACY_SCRIPT_ID:
            continue
        body = (script.string or "").strip()
        if not body.startswith("{"):
            continue
        data = _loads(body, Strategy.GENERIC_SCRIPT_JSON.value)
        if isinstance(data, dict) and (
            data.get("title") or data.get("display_name") or data.get("metadata")
        ):
            return data, data
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def locate_candidates(
    html: str, soup: Optional[BeautifulSoup] = None
) -> List[CandidatePayload]:
    """Run every strategy over *html* and return candidates in priority order.

    Never raises for malformed markup or payloads; an unusable strategy simply
    contributes no candidate.
    """
    if soup is None:
        soup = parse_markup(html)

    attempts = (
        (Strategy.LEGACY_EMBEDDED_JSON, lambda: _locate_legacy(soup)),
        (Strategy.STREAMED_CHUNK_JSON, lambda: _locate_streamed(html)),
        (Strategy.GENERIC_SCRIPT_JSON, lambda: _locate_generic(soup)),
    )

    candidates: List[CandidatePayload] = []
    for strategy, attempt in attempts:
        found = attempt()
        if found is None:
            continue
        song, document = found
        candidates.append(
            CandidatePayload(
                strategy=strategy,
                priority=len(candidates),
                song=song,
                document=document,
            )
        )
        logger.debug("Strategy %s produced a candidate", strategy.value)
    return candidates
