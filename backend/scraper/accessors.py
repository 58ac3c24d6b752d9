"""Optional accessors over loosely-typed embedded song objects.

Embedded payloads change shape between site releases, so every lookup here
treats a missing key, a wrong type or an empty string as plain absence and
returns ``None`` instead of raising.  Each accessor documents the exact key
path(s) it tries, in order.
"""

from __future__ import annotations

from typing import Any, Optional


def get_path(obj: Any, *keys: str) -> Any:
    """Follow *keys* through nested dicts; ``None`` on the first miss."""
    current = obj
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def get_dict(obj: Any, *keys: str) -> Optional[dict]:
    value = get_path(obj, *keys)
    return value if isinstance(value, dict) else None


def get_str(obj: Any, *keys: str) -> Optional[str]:
    """Like :func:`get_path` but only non-blank strings count as present."""
    value = get_path(obj, *keys)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _first_str(obj: Any, *paths: tuple[str, ...]) -> Optional[str]:
    for path in paths:
        value = get_str(obj, *path)
        if value is not None:
            return value
    return None


def song_title(song: Any) -> Optional[str]:
    """``title``"""
    return get_str(song, "title")


def song_artist(song: Any) -> Optional[str]:
    """``display_name`` → ``user.display_name``"""
    return _first_str(song, ("display_name",), ("user", "display_name"))


def song_prompt(song: Any) -> Optional[str]:
    """``metadata.prompt``"""
    return get_str(song, "metadata", "prompt")


def song_description_prompt(song: Any) -> Optional[str]:
    """``gpt_description_prompt`` → ``metadata.gpt_description_prompt``"""
    return _first_str(
        song, ("gpt_description_prompt",), ("metadata", "gpt_description_prompt")
    )


def song_tags(song: Any) -> Optional[str]:
    """``display_tags`` → ``metadata.tags``"""
    return _first_str(song, ("display_tags",), ("metadata", "tags"))


def song_negative_tags(song: Any) -> Optional[str]:
    """``metadata.negative_tags``"""
    return get_str(song, "metadata", "negative_tags")


def song_audio_url(song: Any) -> Optional[str]:
    """``audio_url``"""
    return get_str(song, "audio_url")


def pick(obj: Any, *keys: str) -> dict[str, Any]:
    """Return ``{key: obj[key] or None}`` for each of *keys*."""
    source = obj if isinstance(obj, dict) else {}
    return {key: source.get(key) for key in keys}
