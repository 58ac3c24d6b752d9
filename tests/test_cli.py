"""Tests for the SongScrape CLI commands."""

import json

import httpx
import respx
from typer.testing import CliRunner

from cli.main import app

runner = CliRunner()

_SONG_URL = "https://suno.com/song/0c5e6f1a-0000-4000-8000-000000000001"

_LEGACY_HTML = (
    '<html><body><script id="__NEXT_DATA__" type="application/json">'
    + json.dumps(
        {"props": {"pageProps": {"song": {
            "title": "Night Drive",
            "display_name": "Luna Wave",
            "metadata": {"prompt": "[Verse]\nNeon lights", "tags": "synthwave"},
        }}}}
    )
    + "</script></body></html>"
)


def test_parse_prints_json():
    with respx.mock:
        respx.get(_SONG_URL).mock(return_value=httpx.Response(200, text=_LEGACY_HTML))
        result = runner.invoke(app, ["parse", "--url", _SONG_URL])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["title"] == "Night Drive"
    assert data["styles"] == "synthwave"


def test_parse_from_saved_html(tmp_path):
    page = tmp_path / "song.html"
    page.write_text(
        '<html><head><meta property="og:title" content="Saved"></head></html>',
        encoding="utf-8",
    )
    result = runner.invoke(app, ["parse", "--url", _SONG_URL, "--html-file", str(page)])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["title"] == "Saved"


def test_parse_rejects_non_song_url():
    result = runner.invoke(app, ["parse", "--url", "https://example.com/"])
    assert result.exit_code == 2


def test_parse_fetch_failure_exits_1():
    with respx.mock:
        respx.get(_SONG_URL).mock(return_value=httpx.Response(404))
        result = runner.invoke(app, ["parse", "--url", _SONG_URL])

    assert result.exit_code == 1


def test_extract_prints_sections():
    with respx.mock:
        respx.get(_SONG_URL).mock(return_value=httpx.Response(200, text=_LEGACY_HTML))
        result = runner.invoke(app, ["extract", "--url", _SONG_URL])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["song_info"]["title"] == "Night Drive"
    assert data["strategy"] == "legacy-embedded-json"


def test_extract_without_structured_data_exits_3():
    with respx.mock:
        respx.get(_SONG_URL).mock(
            return_value=httpx.Response(200, text="<html><body>nothing</body></html>")
        )
        result = runner.invoke(app, ["extract", "--url", _SONG_URL])

    assert result.exit_code == 3
