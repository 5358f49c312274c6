"""
FastAPI dependency injection providers for the highlights service.

Defines reusable Depends() callables for the shared search backend and
settings.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from cv_common.config import Settings, get_settings


async def get_search_backend(request: Request) -> Any:
    """Return the shared ``SearchBackend`` from app state."""
    return getattr(request.app.state, "search_backend", None)


def get_app_settings() -> Settings:
    """Return the cached service settings."""
    return get_settings()
