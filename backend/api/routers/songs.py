"""Song page endpoints.

Routes
------
GET /parse?url=<song url>      Best-effort record        → parse_song
GET /extract?url=<song url>    Strict structured view    → extract_song

Both validate the URL shape first (400), map fetch failures to 502, and
``/extract`` answers 404 when the page carries no structured song data.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from backend.config import settings
from backend.scraper.fetcher import FetchError
from backend.scraper.pipeline import extract_song, is_song_url, parse_song

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class DiagnosticsResponse(BaseModel):
    strategies: list[str]
    field_sources: dict[str, Optional[str]]
    found: dict[str, bool]
    html_length: int
    script_count: int
    has_legacy_data: bool


class ParseResponse(BaseModel):
    url: str
    title: Optional[str] = None
    artist: Optional[str] = None
    lyrics: Optional[str] = None
    styles: Optional[str] = None
    audio_url: Optional[str] = None
    transcription_note: Optional[str] = None
    raw_html_snippet: str
    song_data: Optional[str] = None
    diagnostics: DiagnosticsResponse


class ExtractResponse(BaseModel):
    url: str
    extraction_timestamp: str
    strategy: str
    song_info: dict[str, Any]
    user_info: dict[str, Any]
    media: dict[str, Any]
    metadata: dict[str, Any]
    engagement: dict[str, Any]
    technical: dict[str, Any]
    raw_next_data: Optional[dict[str, Any]] = None
    full_song_data: dict[str, Any]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _require_song_url(url: str) -> None:
    if not is_song_url(url):
        raise HTTPException(
            status_code=400,
            detail=f"Provide a valid {settings.site_domain} song URL at /song/<id>",
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/parse", response_model=ParseResponse)
def parse_endpoint(url: str = "") -> dict[str, Any]:
    """Fetch a song page and return its best-effort metadata record."""
    _require_song_url(url)
    try:
        result = parse_song(url)
    except FetchError as exc:
        raise HTTPException(
            status_code=502, detail=f"Failed to fetch or parse page: {exc}"
        ) from exc
    return asdict(result)


@router.get("/extract", response_model=ExtractResponse)
def extract_endpoint(url: str = "") -> dict[str, Any]:
    """Fetch a song page and return only its structured embedded data."""
    _require_song_url(url)
    try:
        song = extract_song(url)
    except FetchError as exc:
        raise HTTPException(
            status_code=502, detail=f"Failed to fetch or extract data: {exc}"
        ) from exc
    if song is None:
        raise HTTPException(status_code=404, detail="No song data found on page")
    return asdict(song)
