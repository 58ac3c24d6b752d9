"""SongScrape CLI — entry-point for extraction and serving.

Usage:
    python cli/main.py --help

Commands:
    parse     → best-effort metadata for a song page (or a saved HTML file)
    extract   → strict structured view of the page's embedded data
    serve     → run the HTTP API with uvicorn
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from dataclasses import asdict
from typing import Any, Optional

import typer

from backend.config import configure_logging
from backend.scraper.fetcher import FetchError

app = typer.Typer(
    name="songscrape",
    help="SongScrape CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    configure_logging(log_level)


def _echo_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _check_url(url: str) -> None:
    from backend.scraper.pipeline import is_song_url

    if not is_song_url(url):
        typer.echo(f"[error] Not a song page URL: {url!r}", err=True)
        raise typer.Exit(2)


@app.command("parse")
def parse(
    url: str = typer.Option(..., help="Song page URL."),
    html_file: Optional[Path] = typer.Option(
        None, "--html-file", help="Parse a saved copy of the page instead of fetching it."
    ),
) -> None:
    """Print the best-effort song record as JSON."""
    from backend.scraper.models import RawPage
    from backend.scraper.pipeline import parse_html, parse_song

    if html_file is not None:
        raw = RawPage(url=url, html=html_file.read_text(encoding="utf-8"))
        _echo_json(asdict(parse_html(raw)))
        return

    _check_url(url)
    try:
        result = parse_song(url)
    except FetchError as exc:
        typer.echo(f"[error] Failed to fetch or parse page: {exc}", err=True)
        raise typer.Exit(1)
    _echo_json(asdict(result))


@app.command("extract")
def extract(
    url: str = typer.Option(..., help="Song page URL."),
) -> None:
    """Print the strict structured view as JSON (exit 3 when none exists)."""
    from backend.scraper.pipeline import extract_song

    _check_url(url)
    try:
        song = extract_song(url)
    except FetchError as exc:
        typer.echo(f"[error] Failed to fetch or extract data: {exc}", err=True)
        raise typer.Exit(1)
    if song is None:
        typer.echo("[extract] No song data found on page.", err=True)
        raise typer.Exit(3)
    _echo_json(asdict(song))


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address."),
    port: int = typer.Option(3000, envvar="PORT", help="Bind port."),
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("backend.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
