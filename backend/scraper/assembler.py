"""Response assembly: pure structuring of resolved fields and diagnostics."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List, Optional

from backend.config import settings
from backend.scraper.accessors import get_dict, pick
from backend.scraper.cleaner import fold_surrogates
from backend.scraper.models import (
    FIELDS,
    CandidatePayload,
    Diagnostics,
    ParseResult,
    RawPage,
    Resolution,
    Strategy,
    StructuredSong,
)

TRANSCRIPTION_NOTE = (
    "For accurate lyrics, consider using an LLM with audio transcription "
    "capabilities on the audio_url"
)


def serialize_song(candidates: List[CandidatePayload]) -> Optional[str]:
    """Truncated JSON of the winning (first) candidate's song object."""
    if not candidates:
        return None
    text = fold_surrogates(json.dumps(candidates[0].song, ensure_ascii=False, default=str))
    return text[: settings.song_data_snippet_length]


def build_diagnostics(
    html: str,
    candidates: List[CandidatePayload],
    resolution: Resolution,
    script_count: int,
) -> Diagnostics:
    return Diagnostics(
        strategies=[c.strategy.value for c in candidates],
        field_sources={name: resolution.sources.get(name) for name in FIELDS},
        found={
            name: getattr(resolution.record, name) is not None for name in FIELDS
        },
        html_length=len(html),
        script_count=script_count,
        has_legacy_data=any(
            c.strategy is Strategy.LEGACY_EMBEDDED_JSON for c in candidates
        ),
    )


def assemble_response(
    raw: RawPage,
    candidates: List[CandidatePayload],
    resolution: Resolution,
    script_count: int = 0,
) -> ParseResult:
    """Package a resolved record into the best-effort parse response."""
    record = resolution.record
    return ParseResult(
        url=raw.url,
        title=record.title,
        artist=record.artist,
        lyrics=record.lyrics,
        styles=record.styles,
        audio_url=record.audio_url,
        transcription_note=TRANSCRIPTION_NOTE if record.audio_url else None,
        raw_html_snippet=raw.html[: settings.html_snippet_length],
        song_data=serialize_song(candidates),
        diagnostics=build_diagnostics(raw.html, candidates, resolution, script_count),
    )


def _raw_next_data(candidates: List[CandidatePayload]) -> Optional[dict[str, Any]]:
    for candidate in candidates:
        if candidate.strategy is Strategy.LEGACY_EMBEDDED_JSON:
            return pick(
                candidate.document, "props", "page", "query", "buildId", "isFallback", "gssp"
            )
    return None


def build_structured_song(url: str, candidates: List[CandidatePayload]) -> StructuredSong:
    """Organise the winning candidate's song object into named sections.

    *candidates* must be non-empty; the strict caller checks that first.
    """
    winner = candidates[0]
    song = winner.song
    metadata = get_dict(song, "metadata")
    user = get_dict(song, "user")

    return StructuredSong(
        url=url,
        extraction_timestamp=datetime.now(timezone.utc).isoformat(),
        strategy=winner.strategy.value,
        song_info=pick(
            song, "id", "title", "display_name", "created_at", "status",
            "model_name", "gpt_description_prompt",
        ),
        user_info=pick(
            user, "id", "display_name", "handle", "avatar_image_url", "is_verified"
        ),
        media=pick(song, "audio_url", "video_url", "image_url", "image_large_url"),
        metadata=pick(
            metadata, "prompt", "gpt_description_prompt", "audio_prompt_id",
            "history", "concat_history", "type", "duration", "refund_credits",
            "stream", "error_type", "error_message", "tags",
        ),
        engagement=pick(song, "play_count", "upvote_count", "is_liked", "reaction"),
        technical=pick(
            song, "duration", "is_trashed", "is_public", "stem_from_id",
            "infill_start_s", "infill_end_s",
        ),
        raw_next_data=_raw_next_data(candidates),
        full_song_data=song,
    )
