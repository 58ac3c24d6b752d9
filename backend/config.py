"""Centralised settings for the SongScrape backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/91.0.4472.124 Safari/537.36"
)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Fetcher
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", _DEFAULT_USER_AGENT)
    )

    # ------------------------------------------------------------------
    # Target site
    # ------------------------------------------------------------------
    site_domain: str = field(
        default_factory=lambda: os.environ.get("SITE_DOMAIN", "suno.com")
    )
    site_title_suffix: str = field(
        default_factory=lambda: os.environ.get("SITE_TITLE_SUFFIX", " | Suno")
    )

    # ------------------------------------------------------------------
    # Extraction heuristics
    # ------------------------------------------------------------------
    min_lyrics_length: int = field(
        default_factory=lambda: int(os.environ.get("MIN_LYRICS_LENGTH", "20"))
    )
    min_style_length: int = field(
        default_factory=lambda: int(os.environ.get("MIN_STYLE_LENGTH", "2"))
    )
    max_tree_nodes: int = field(
        default_factory=lambda: int(os.environ.get("MAX_TREE_NODES", "10000"))
    )

    # ------------------------------------------------------------------
    # Response debug snippets
    # ------------------------------------------------------------------
    html_snippet_length: int = field(
        default_factory=lambda: int(os.environ.get("HTML_SNIPPET_LENGTH", "2000"))
    )
    song_data_snippet_length: int = field(
        default_factory=lambda: int(os.environ.get("SONG_DATA_SNIPPET_LENGTH", "500"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    @property
    def song_url_pattern(self) -> str:
        """Regex a song page URL must match before it is fetched."""
        domain = self.site_domain.replace(".", r"\.")
        return rf"^https?://(www\.)?{domain}/song/[a-f0-9-]+$"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process or a CLI run."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Module-level singleton — import this everywhere:
#   from backend.config import settings
settings = Settings()
