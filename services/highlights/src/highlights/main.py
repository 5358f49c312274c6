"""
FastAPI application entry point for the CorporaViewer highlights service.

Creates and configures the FastAPI app, registers routers, middleware,
startup/shutdown lifecycle (one process-wide Elasticsearch client), and
exposes the ASGI application.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
import uvicorn
from elasticsearch import AsyncElasticsearch
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from cv_common.config import Settings, get_settings
from cv_common.logging import configure_logging

from highlights.backend import SearchBackend
from highlights.middleware.cors import add_cors
from highlights.middleware.logging import LoggingMiddleware
from highlights.routers import health, highlights

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    settings: Settings = app.state.settings
    logger.info("highlights_service_starting", es_nodes=settings.es_nodes)

    es_client = AsyncElasticsearch(settings.es_nodes)
    app.state.search_backend = SearchBackend.from_settings(es_client, settings)

    yield

    logger.info("highlights_service_stopping")
    backend = getattr(app.state, "search_backend", None)
    if backend:
        await backend.close()
    app.state.search_backend = None


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application."""
    settings = settings or get_settings()
    configure_logging("highlights", settings.log_level, settings.log_json)

    app = FastAPI(
        title="CorporaViewer Highlights",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.search_backend = None

    # ── Routers ──
    app.include_router(highlights.router, prefix="/api/v1")
    app.include_router(health.router)

    # Prometheus metrics endpoint
    app.mount("/metrics", make_asgi_app())

    # ── Middleware (applied outermost-first) ──
    app.add_middleware(LoggingMiddleware)
    add_cors(app, settings.cors_origin_list)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "highlights.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
