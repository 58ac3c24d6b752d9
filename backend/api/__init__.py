"""HTTP layer for the song extraction pipeline.

Serve it with::

    uvicorn backend.api:app --port 3000
"""

from backend.api.app import app

__all__ = ["app"]
