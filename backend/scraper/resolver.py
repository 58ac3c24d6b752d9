"""Field resolver: turns candidate payloads plus raw markup into a SongRecord.

Every field has an ordered chain of resolvers.  A resolver is a generator
that yields ``(source, value)`` pairs; :func:`first_non_empty` walks the chain
and keeps the first value that survives cleaning.  Because a field is decided
by one call of the combinator, a populated field can never be overwritten by
a later source.

Chains (highest priority first):

    title     candidate title → og:title → twitter:title → <title>
    artist    candidate display name → "by <name>" in the description meta
    lyrics    candidate prompt → candidate description prompt →
              streamed "$id" reference → markup pattern scans
    styles    candidate tags → candidate negative tags ("NOT: ...") →
              markup pattern scans → description genres → genre run in markup
    audio_url candidate audio_url
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from bs4 import BeautifulSoup

from backend.config import settings
from backend.scraper.accessors import (
    song_artist,
    song_audio_url,
    song_description_prompt,
    song_negative_tags,
    song_prompt,
    song_tags,
    song_title,
)
from backend.scraper.cleaner import (
    breaks_to_newlines,
    clean_text,
    decode_escapes,
    fold_surrogates,
    strip_site_suffix,
)
from backend.scraper.locator import iter_stream_chunks, parse_markup
from backend.scraper.models import CandidatePayload, Resolution, SongRecord

logger = logging.getLogger(__name__)

Found = Tuple[str, Optional[str]]
Resolver = Callable[["PageContext"], Iterable[Found]]

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_REFERENCE_RE = re.compile(r"^\$[0-9a-zA-Z]{1,12}$")
_NESTED_CLIP_RE = re.compile(r'"clip"\s*:')
_BYLINE_RE = re.compile(r"^.*\bby\s+(.+?)\s*(?:\||\.\s|\.?$)", re.DOTALL)

_SECTIONS = r"(?:Verse|Chorus|Pre-Chorus|Bridge|Intro|Outro|Hook)"
_SECTION_MARKER_RE = re.compile(rf"\[{_SECTIONS}[^\]]*\]", re.IGNORECASE)
_JSON_STRING = r'"((?:\\.|[^"\\])*)"'
# Line breaks and inline formatting a rendered lyrics block may contain.
_INLINE_TAG = r"<br\s*/?>|</?(?:span|i|b|em|strong)\b[^>]*>"

# (name, pattern, capture group), tried in order.
LYRICS_PATTERNS: Sequence[Tuple[str, "re.Pattern[str]", int]] = (
    ("json-prompt", re.compile(r'"prompt"\s*:\s*' + _JSON_STRING), 1),
    ("json-lyrics", re.compile(r'"lyrics"\s*:\s*' + _JSON_STRING), 1),
    (
        "json-description-prompt",
        re.compile(r'"gpt_description_prompt"\s*:\s*' + _JSON_STRING),
        1,
    ),
    (
        "lyrics-class",
        re.compile(
            r'<(\w+)[^>]*\bclass=["\'][^"\']*lyrics[^"\']*["\'][^>]*>(.*?)</\1>',
            re.IGNORECASE | re.DOTALL,
        ),
        2,
    ),
    (
        "lyrics-data-attribute",
        re.compile(r'\bdata-[\w-]*lyrics[\w-]*=(["\'])(.*?)\1', re.IGNORECASE | re.DOTALL),
        2,
    ),
    (
        "quoted-section-block",
        re.compile(rf'"([^"<>]*\[{_SECTIONS}[^\]]*\][^"<>]*)"', re.IGNORECASE),
        1,
    ),
    (
        "section-block",
        re.compile(rf'\[{_SECTIONS}[^\]]*\](?:[^<"]|{_INLINE_TAG})*', re.IGNORECASE),
        0,
    ),
)

STYLE_PATTERNS: Sequence[Tuple[str, "re.Pattern[str]", int]] = (
    ("json-tags", re.compile(r'"tags"\s*:\s*' + _JSON_STRING), 1),
    ("json-style", re.compile(r'"style"\s*:\s*' + _JSON_STRING), 1),
    ("json-genre", re.compile(r'"genre"\s*:\s*' + _JSON_STRING), 1),
    (
        "style-class",
        re.compile(
            r'\bclass=["\'][^"\']*\b(?:styles?|tags?|genres?)\b[^"\']*["\'][^>]*>([^<]+)',
            re.IGNORECASE,
        ),
        1,
    ),
)

GENRES = (
    "experimental", "ballad", "ambient", "rock", "pop", "jazz", "classical",
    "electronic", "hip-hop", "country", "folk", "blues", "r&b", "reggae",
    "metal", "punk", "indie", "alternative", "dance", "house", "techno",
    "dubstep", "trap", "lo-fi", "chillout", "acoustic",
)
_GENRE = "|".join(re.escape(g) for g in sorted(GENRES, key=len, reverse=True))
_GENRE_WORD_RE = re.compile(rf"(?<![\w-])(?:{_GENRE})(?![\w-])", re.IGNORECASE)
_GENRE_RUN_RE = re.compile(
    rf"(?<![\w-])(?:{_GENRE})(?:[,\s]+(?:{_GENRE})){{1,2}}(?![\w-])", re.IGNORECASE
)


# ---------------------------------------------------------------------------
# Page context
# ---------------------------------------------------------------------------

@dataclass
class PageContext:
    """Everything a resolver may look at for one page."""

    html: str
    soup: BeautifulSoup
    candidates: List[CandidatePayload] = field(default_factory=list)

    @cached_property
    def chunks(self) -> List[str]:
        return list(iter_stream_chunks(self.html))

    @cached_property
    def scan_targets(self) -> List[str]:
        """Raw HTML first, then each decoded streamed chunk."""
        return [self.html, *self.chunks]

    def meta(self, key: str) -> Optional[str]:
        """Return the ``content`` of ``<meta property=key>`` or ``<meta name=key>``."""
        for attr in ("property", "name"):
            tag = self.soup.find("meta", attrs={attr: key})
            if tag is not None and tag.get("content"):
                return tag["content"]
        return None


# ---------------------------------------------------------------------------
# Combinator
# ---------------------------------------------------------------------------

def first_non_empty(
    resolvers: Sequence[Resolver], page: PageContext
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(cleaned value, source)`` of the first non-empty result."""
    for resolver in resolvers:
        for source, value in resolver(page):
            cleaned = clean_text(value)
            if cleaned:
                return cleaned, source
    return None, None


# ---------------------------------------------------------------------------
# Resolver building blocks
# ---------------------------------------------------------------------------

def from_candidates(accessor: Callable[[dict], Optional[str]]) -> Resolver:
    """Resolver applying *accessor* to each candidate in priority order."""

    def resolve(page: PageContext) -> Iterator[Found]:
        for candidate in page.candidates:
            yield candidate.strategy.value, accessor(candidate.song)

    resolve.__name__ = f"candidate_{accessor.__name__}"
    return resolve


def from_meta(key: str) -> Resolver:
    def resolve(page: PageContext) -> Iterator[Found]:
        yield f"meta:{key}", page.meta(key)

    resolve.__name__ = f"meta_{key}"
    return resolve


def _decode_match(text: str) -> str:
    return html_lib.unescape(decode_escapes(breaks_to_newlines(text)))


def _scan(
    page: PageContext,
    patterns: Sequence[Tuple[str, "re.Pattern[str]", int]],
    accept: Callable[[str], bool],
) -> Iterator[Found]:
    for name, pattern, group in patterns:
        for target in page.scan_targets:
            for match in pattern.finditer(target):
                text = _decode_match(match.group(group)).strip()
                if accept(text):
                    yield f"pattern:{name}", text


def is_reference(value: Optional[str]) -> bool:
    """True for ``$<id>`` tokens pointing at another streamed chunk."""
    return bool(value) and bool(_REFERENCE_RE.match(value.strip()))


def is_plausible_lyrics(text: str) -> bool:
    if len(text) <= settings.min_lyrics_length:
        return False
    return bool(_SECTION_MARKER_RE.search(text)) or "\n" in text


def _utf8(text: str) -> bytes:
    return fold_surrogates(text).encode("utf-8")


def resolve_stream_reference(ref_id: str, chunks: Sequence[str]) -> Optional[str]:
    """Find the text row ``<ref_id>:T<hex byte length>,<text>`` in *chunks*.

    Chunks carrying a nested ``"clip"`` object are skipped; they hold other
    clips' lyrics under the same row ids.  When the row's text continues past
    its chunk, following chunks are appended until the declared length is
    reached.  Texts not longer than ``settings.min_lyrics_length`` are ignored.
    """
    row_re = re.compile(rf"(?:^|\n){re.escape(ref_id)}:T([0-9a-fA-F]+),")
    for index, chunk in enumerate(chunks):
        if _NESTED_CLIP_RE.search(chunk):
            continue
        match = row_re.search(chunk)
        if match is None:
            continue
        size = int(match.group(1), 16)
        body = chunk[match.end():]
        following = index + 1
        while len(_utf8(body)) < size and following < len(chunks):
            body += chunks[following]
            following += 1
        text = _utf8(body)[:size].decode("utf-8", errors="ignore").strip()
        if len(text) > settings.min_lyrics_length:
            return text
    return None


# ---------------------------------------------------------------------------
# Field-specific resolvers
# ---------------------------------------------------------------------------

def document_title(page: PageContext) -> Iterator[Found]:
    if page.soup.title is not None:
        yield "html:title", strip_site_suffix(page.soup.title.get_text())


def description_byline(page: PageContext) -> Iterator[Found]:
    description = page.meta("description")
    if description:
        match = _BYLINE_RE.search(description)
        if match:
            yield "meta:description", match.group(1)


def candidate_literal_prompt(page: PageContext) -> Iterator[Found]:
    for candidate in page.candidates:
        prompt = song_prompt(candidate.song)
        if not is_reference(prompt):
            yield candidate.strategy.value, prompt


def stream_reference(page: PageContext) -> Iterator[Found]:
    for candidate in page.candidates:
        prompt = song_prompt(candidate.song)
        if is_reference(prompt):
            yield "stream-reference", resolve_stream_reference(
                prompt.strip()[1:], page.chunks
            )


def lyrics_patterns(page: PageContext) -> Iterator[Found]:
    return _scan(page, LYRICS_PATTERNS, is_plausible_lyrics)


def negative_tags(page: PageContext) -> Iterator[Found]:
    for candidate in page.candidates:
        excluded = song_negative_tags(candidate.song)
        if excluded:
            yield "negative-tags", f"NOT: {excluded}"


def style_patterns(page: PageContext) -> Iterator[Found]:
    return _scan(page, STYLE_PATTERNS, lambda text: len(text) > settings.min_style_length)


def description_genres(page: PageContext) -> Iterator[Found]:
    description = page.meta("description")
    if not description:
        return
    genres: List[str] = []
    for match in _GENRE_WORD_RE.finditer(description):
        if match.group(0).lower() not in (g.lower() for g in genres):
            genres.append(match.group(0))
    if genres:
        yield "meta:description-genres", ", ".join(genres)


def genre_run(page: PageContext) -> Iterator[Found]:
    match = _GENRE_RUN_RE.search(page.html)
    if match:
        yield "pattern:genre-vocabulary", match.group(0)


# ---------------------------------------------------------------------------
# Chains
# ---------------------------------------------------------------------------

TITLE_RESOLVERS: Sequence[Resolver] = (
    from_candidates(song_title),
    from_meta("og:title"),
    from_meta("twitter:title"),
    document_title,
)

ARTIST_RESOLVERS: Sequence[Resolver] = (
    from_candidates(song_artist),
    description_byline,
)

LYRICS_RESOLVERS: Sequence[Resolver] = (
    candidate_literal_prompt,
    from_candidates(song_description_prompt),
    stream_reference,
    lyrics_patterns,
)

STYLE_RESOLVERS: Sequence[Resolver] = (
    from_candidates(song_tags),
    negative_tags,
    style_patterns,
    description_genres,
    genre_run,
)

AUDIO_URL_RESOLVERS: Sequence[Resolver] = (
    from_candidates(song_audio_url),
)

FIELD_RESOLVERS = {
    "title": TITLE_RESOLVERS,
    "artist": ARTIST_RESOLVERS,
    "lyrics": LYRICS_RESOLVERS,
    "styles": STYLE_RESOLVERS,
    "audio_url": AUDIO_URL_RESOLVERS,
}


def resolve_fields(
    candidates: List[CandidatePayload],
    html: str,
    soup: Optional[BeautifulSoup] = None,
) -> Resolution:
    """Resolve every SongRecord field from *candidates* and *html*."""
    page = PageContext(
        html=html,
        soup=soup if soup is not None else parse_markup(html),
        candidates=candidates,
    )
    record = SongRecord()
    sources = {}
    for name, chain in FIELD_RESOLVERS.items():
        value, source = first_non_empty(chain, page)
        setattr(record, name, value)
        sources[name] = source
        logger.debug("Field %s resolved from %s", name, source or "nothing")
    return Resolution(record=record, sources=sources)
