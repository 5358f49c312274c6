"""
CORS middleware configuration for the CorporaViewer highlights service.

The viewer is served from its own origin and fetches highlight streams
cross-origin.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def add_cors(app: FastAPI, origins: list[str]) -> None:
    """Attach CORS middleware allowing *origins* to read highlight streams."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials="*" not in origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
