"""Scraper package — song page fetch & multi-strategy metadata extraction."""

from backend.scraper.fetcher import FetchError, fetch_url
from backend.scraper.models import ParseResult, RawPage, SongRecord, StructuredSong
from backend.scraper.pipeline import extract_song, is_song_url, parse_html, parse_song

__all__ = [
    "fetch_url",
    "FetchError",
    "parse_song",
    "parse_html",
    "extract_song",
    "is_song_url",
    "RawPage",
    "SongRecord",
    "ParseResult",
    "StructuredSong",
]
