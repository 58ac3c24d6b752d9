"""Tests for the embedded-data locator (candidate discovery strategies)."""

from __future__ import annotations

import json

from backend.scraper.locator import (
    count_scripts,
    find_song_node,
    iter_stream_chunks,
    locate_candidates,
    parse_markup,
)
from backend.scraper.models import Strategy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _page(*scripts: str, head: str = "") -> str:
    return f"<html><head>{head}</head><body>{''.join(scripts)}</body></html>"


def _next_data(document: object) -> str:
    return (
        '<script id="__NEXT_DATA__" type="application/json">'
        f"{json.dumps(document)}</script>"
    )


def _push(payload: str) -> str:
    return f"<script>self.__next_f.push([1,{json.dumps(payload)}])</script>"


def _clip_chunk(clip: dict, status: str = "complete") -> str:
    return json.dumps({"clip": clip, "status": status}, separators=(",", ":"))


_CLIP = {
    "id": "0c5e6f1a-0000-4000-8000-000000000001",
    "title": "Streamed Song",
    "metadata": {"prompt": "[Verse]\nstreamed words", "tags": "synthwave"},
    "audio_url": "https://cdn1.example.ai/0c5e.mp3",
}


# ---------------------------------------------------------------------------
# Strategy 1 — legacy embedded JSON
# ---------------------------------------------------------------------------

class TestLegacyStrategy:
    def test_song_under_page_props(self) -> None:
        doc = {"props": {"pageProps": {"song": {"title": "T"}}}}
        candidates = locate_candidates(_page(_next_data(doc)))

        assert len(candidates) == 1
        assert candidates[0].strategy is Strategy.LEGACY_EMBEDDED_JSON
        assert candidates[0].song == {"title": "T"}
        assert candidates[0].document == doc

    def test_data_key_used_when_song_missing(self) -> None:
        doc = {"props": {"pageProps": {"data": {"title": "D"}}}}
        candidates = locate_candidates(_page(_next_data(doc)))
        assert candidates[0].song == {"title": "D"}

    def test_page_props_used_when_no_song_or_data(self) -> None:
        doc = {"props": {"pageProps": {"title": "P"}}}
        candidates = locate_candidates(_page(_next_data(doc)))
        assert candidates[0].song == {"title": "P"}

    def test_whole_document_when_key_chain_misses(self) -> None:
        doc = {"buildId": "abc", "title": "Whole"}
        candidates = locate_candidates(_page(_next_data(doc)))
        assert candidates[0].song == doc

    def test_invalid_json_is_skipped(self) -> None:
        html = _page('<script id="__NEXT_DATA__">{"props": {oops</script>')
        assert locate_candidates(html) == []

    def test_non_object_document_is_skipped(self) -> None:
        html = _page('<script id="__NEXT_DATA__">[1, 2, 3]</script>')
        assert locate_candidates(html) == []


# ---------------------------------------------------------------------------
# Strategy 2 — streamed chunks
# ---------------------------------------------------------------------------

class TestStreamedStrategy:
    def test_nested_clip_is_returned(self) -> None:
        html = _page(_push(_clip_chunk(_CLIP)))
        candidates = locate_candidates(html)

        assert len(candidates) == 1
        assert candidates[0].strategy is Strategy.STREAMED_CHUNK_JSON
        assert candidates[0].song["title"] == "Streamed Song"

    def test_chunk_without_complete_status_is_ignored(self) -> None:
        html = _page(_push(_clip_chunk(_CLIP, status="queued")))
        assert locate_candidates(html) == []

    def test_unparsable_chunk_does_not_stop_scan(self) -> None:
        broken = '{"clip":{"title":"x"},"status":"complete", BROKEN'
        html = _page(_push(broken), _push(_clip_chunk(_CLIP)))
        candidates = locate_candidates(html)
        assert candidates[0].song["title"] == "Streamed Song"

    def test_first_matching_chunk_wins(self) -> None:
        second = dict(_CLIP, title="Second Song")
        html = _page(_push(_clip_chunk(_CLIP)), _push(_clip_chunk(second)))
        assert locate_candidates(html)[0].song["title"] == "Streamed Song"

    def test_flight_rows_are_parsed_individually(self) -> None:
        chunk = '0:["$","div",null,{}]\n5:' + _clip_chunk(_CLIP)
        candidates = locate_candidates(_page(_push(chunk)))
        assert candidates[0].song["id"] == _CLIP["id"]

    def test_iter_stream_chunks_decodes_escapes(self) -> None:
        html = _page(_push('line one\nline "two"'))
        assert list(iter_stream_chunks(html)) == ['line one\nline "two"']


class TestFindSongNode:
    def test_direct_song_object_with_id(self) -> None:
        tree = ["$", {"children": [{"title": "A", "metadata": {"x": 1}, "id": "1"}]}]
        assert find_song_node(tree) == {"title": "A", "metadata": {"x": 1}, "id": "1"}

    def test_direct_song_object_with_audio_url(self) -> None:
        node = {"title": "A", "metadata": {"x": 1}, "audio_url": "u"}
        assert find_song_node({"wrap": node}) is node

    def test_requires_id_or_audio_url(self) -> None:
        assert find_song_node({"title": "A", "metadata": {"x": 1}}) is None

    def test_nested_clip_preferred_over_direct_match_at_same_node(self) -> None:
        tree = {"title": "Outer", "metadata": {"a": 1}, "id": "o", "clip": _CLIP}
        assert find_song_node(tree) is _CLIP

    def test_depth_first_document_order(self) -> None:
        first = {"title": "First", "metadata": {"a": 1}, "id": "1"}
        second = {"title": "Second", "metadata": {"a": 1}, "id": "2"}
        tree = [{"deep": [{"deeper": first}]}, second]
        assert find_song_node(tree) is first

    def test_visit_cap_bounds_traversal(self) -> None:
        tree: object = {"title": "Deep", "metadata": {"a": 1}, "id": "d"}
        for _ in range(50):
            tree = [tree]
        assert find_song_node(tree, max_nodes=10) is None
        assert find_song_node(tree, max_nodes=100) is not None

    def test_scalars_return_none(self) -> None:
        assert find_song_node("text") is None
        assert find_song_node(None) is None


# ---------------------------------------------------------------------------
# Strategy 3 — generic script JSON
# ---------------------------------------------------------------------------

class TestGenericStrategy:
    def test_first_object_with_song_keys(self) -> None:
        html = _page(
            "<script>var x = 1;</script>",
            '<script type="application/ld+json">{"@type": "WebSite"}</script>',
            '<script>  {"display_name": "Artist"}  </script>',
            '<script>{"title": "Later"}</script>',
        )
        candidates = locate_candidates(html)

        assert len(candidates) == 1
        assert candidates[0].strategy is Strategy.GENERIC_SCRIPT_JSON
        assert candidates[0].song == {"display_name": "Artist"}

    def test_invalid_json_script_is_skipped(self) -> None:
        html = _page('<script>{"title": </script>', '<script>{"metadata": {"a": 1}}</script>')
        assert locate_candidates(html)[0].song == {"metadata": {"a": 1}}

    def test_legacy_script_not_counted_twice(self) -> None:
        doc = {"title": "Top-level"}
        candidates = locate_candidates(_page(_next_data(doc)))
        assert [c.strategy for c in candidates] == [Strategy.LEGACY_EMBEDDED_JSON]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

class TestCandidateOrdering:
    def test_all_strategies_in_priority_order(self) -> None:
        html = _page(
            '<script>{"title": "Generic"}</script>',
            _push(_clip_chunk(_CLIP)),
            _next_data({"props": {"pageProps": {"song": {"title": "Legacy"}}}}),
        )
        candidates = locate_candidates(html)

        assert [c.strategy for c in candidates] == [
            Strategy.LEGACY_EMBEDDED_JSON,
            Strategy.STREAMED_CHUNK_JSON,
            Strategy.GENERIC_SCRIPT_JSON,
        ]
        assert [c.priority for c in candidates] == [0, 1, 2]

    def test_failed_strategy_does_not_block_later_ones(self) -> None:
        html = _page(
            '<script id="__NEXT_DATA__">not json</script>',
            '<script>{"title": "Generic"}</script>',
        )
        candidates = locate_candidates(html)
        assert [c.strategy for c in candidates] == [Strategy.GENERIC_SCRIPT_JSON]
        assert candidates[0].priority == 0

    def test_no_scripts_no_candidates(self) -> None:
        assert locate_candidates("<html><body><p>hello</p></body></html>") == []

    def test_count_scripts(self) -> None:
        soup = parse_markup(_page("<script>1</script>", "<script src='a.js'></script>"))
        assert count_scripts(soup) == 2
