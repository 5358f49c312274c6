"""
Health check API router for the CorporaViewer highlights service.

Reports Elasticsearch connectivity and whether the word and sentence
indices the highlight engine pages through are present.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from highlights.dependencies import get_search_backend

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    services: dict[str, str]


async def _index_status(backend: Any, index: str) -> str:
    try:
        return "healthy" if await backend.index_exists(index) else "missing"
    except Exception as exc:
        logger.warning("health_index_check_failed", index=index, error=str(exc))
        return "unhealthy"


@router.get("/health", response_model=HealthResponse)
async def health_check(backend: Any = Depends(get_search_backend)) -> HealthResponse:
    if backend is None:
        return HealthResponse(status="healthy", services={"elasticsearch": "not_configured"})

    try:
        reachable = await backend.ping()
    except Exception as exc:
        logger.warning("health_ping_failed", error=str(exc))
        reachable = False

    services = {"elasticsearch": "healthy" if reachable else "unhealthy"}
    if reachable:
        services["words_index"] = await _index_status(backend, backend.words_index)
        services["sentences_index"] = await _index_status(backend, backend.sentences_index)

    overall = "healthy" if all(v == "healthy" for v in services.values()) else "degraded"
    return HealthResponse(status=overall, services=services)
