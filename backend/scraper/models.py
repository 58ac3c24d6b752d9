"""Data models for the song extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Field names shared by SongRecord, Resolution.sources and Diagnostics.found
FIELDS = ("title", "artist", "lyrics", "styles", "audio_url")


class Strategy(str, Enum):
    """How a candidate payload was discovered, in priority order."""

    LEGACY_EMBEDDED_JSON = "legacy-embedded-json"
    STREAMED_CHUNK_JSON = "streamed-chunk-json"
    GENERIC_SCRIPT_JSON = "generic-script-json"


@dataclass(frozen=True)
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int = 200


@dataclass
class CandidatePayload:
    """A song-shaped object decoded from an embedded script."""

    strategy: Strategy
    priority: int
    song: Dict[str, Any]
    document: Any = None


@dataclass
class SongRecord:
    title: Optional[str] = None
    artist: Optional[str] = None
    lyrics: Optional[str] = None
    styles: Optional[str] = None
    audio_url: Optional[str] = None


@dataclass
class Resolution:
    """A resolved record plus the name of the source behind each field."""

    record: SongRecord
    sources: Dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class Diagnostics:
    strategies: List[str] = field(default_factory=list)
    field_sources: Dict[str, Optional[str]] = field(default_factory=dict)
    found: Dict[str, bool] = field(default_factory=dict)
    html_length: int = 0
    script_count: int = 0
    has_legacy_data: bool = False


@dataclass
class ParseResult:
    """Best-effort response for one song page."""

    url: str
    title: Optional[str]
    artist: Optional[str]
    lyrics: Optional[str]
    styles: Optional[str]
    audio_url: Optional[str]
    transcription_note: Optional[str]
    raw_html_snippet: str
    song_data: Optional[str]
    diagnostics: Diagnostics


@dataclass
class StructuredSong:
    """Strict view of the winning candidate, grouped into sections."""

    url: str
    extraction_timestamp: str
    strategy: str
    song_info: Dict[str, Any]
    user_info: Dict[str, Any]
    media: Dict[str, Any]
    metadata: Dict[str, Any]
    engagement: Dict[str, Any]
    technical: Dict[str, Any]
    raw_next_data: Optional[Dict[str, Any]]
    full_song_data: Dict[str, Any]
