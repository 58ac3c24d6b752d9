"""FastAPI application factory.

Routers
-------
    /parse     — best-effort song metadata from a song page URL
    /extract   — strict structured view of the page's embedded song data
    /          — health check

FastAPI serves the generated OpenAPI document at ``/openapi.json``.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routers import songs as songs_router
from backend.config import configure_logging


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    configure_logging()

    app = FastAPI(
        title="SongScrape API",
        description=(
            "Extracts song metadata (title, artist, lyrics, styles, audio URL) "
            "from song page HTML without a browser, using a cascade of "
            "embedded-data strategies and markup fallbacks."
        ),
        version="0.1.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["health"])
    def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(songs_router.router, tags=["songs"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
