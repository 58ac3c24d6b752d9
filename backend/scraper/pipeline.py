"""End-to-end song extraction.

``parse_song`` orchestrates the best-effort pipeline:

    fetch → locate candidates → resolve fields → assemble response

``extract_song`` is the strict variant: it trusts only parsed structured
payloads and reports a miss as ``None`` instead of guessing from markup.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from backend.config import settings
from backend.scraper.assembler import assemble_response, build_structured_song
from backend.scraper.fetcher import fetch_url
from backend.scraper.locator import count_scripts, locate_candidates, parse_markup
from backend.scraper.models import ParseResult, RawPage, StructuredSong
from backend.scraper.resolver import resolve_fields

logger = logging.getLogger(__name__)


def is_song_url(url: str) -> bool:
    """True when *url* is a song page on the configured site."""
    return bool(url) and re.fullmatch(settings.song_url_pattern, url, re.IGNORECASE) is not None


def parse_html(raw: RawPage) -> ParseResult:
    """Run the offline part of the pipeline over an already fetched page."""
    soup = parse_markup(raw.html)
    candidates = locate_candidates(raw.html, soup)
    resolution = resolve_fields(candidates, raw.html, soup)
    result = assemble_response(raw, candidates, resolution, script_count=count_scripts(soup))

    found = [name for name, ok in result.diagnostics.found.items() if ok]
    logger.info(
        "Parsed %s: %d candidate(s), fields found: %s",
        raw.url,
        len(candidates),
        ", ".join(found) or "none",
    )
    return result


def extract_song_data(raw: RawPage) -> Optional[StructuredSong]:
    """Strict extraction: ``None`` when no structured payload parses."""
    candidates = locate_candidates(raw.html)
    if not candidates:
        logger.info("No structured song data on %s", raw.url)
        return None
    return build_structured_song(raw.url, candidates)


def parse_song(url: str) -> ParseResult:
    """Fetch *url* and return the best-effort parse.

    Raises:
        FetchError: When the page cannot be fetched.
    """
    return parse_html(fetch_url(url))


def extract_song(url: str) -> Optional[StructuredSong]:
    """Fetch *url* and return the strict structured view, or ``None``.

    Raises:
        FetchError: When the page cannot be fetched.
    """
    return extract_song_data(fetch_url(url))
