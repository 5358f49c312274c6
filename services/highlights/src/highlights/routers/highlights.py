"""
Highlight streaming API router for the CorporaViewer highlights service.

Streams the highlight regions of one meeting as newline-delimited JSON:
each line carries the searched words and phrases, the speaker filter and
the highlights resolved in one iteration over the word and sentence
indices. End of stream is signalled by closing the response.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse

from cv_common.config import Settings

from highlights.dependencies import get_app_settings, get_search_backend
from highlights.engine import prepare_terms, stream_highlights
from highlights.errors import InvalidHighlightRequest
from highlights.schemas.highlight_schemas import ErrorResponse, HighlightQuery

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["highlights"])

NDJSON_MEDIA_TYPE = "application/x-ndjson"


@router.get(
    "/meetings/{meeting_id}/highlights",
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def get_highlights(
    meeting_id: str,
    request: Request,
    words: str | None = Query(default=None),
    speaker: str | None = Query(default=None),
    lang: str | None = Query(default=None, max_length=10),
    loose_search: bool = Query(default=False, alias="looseSearch"),
    backend: Any = Depends(get_search_backend),
    settings: Settings = Depends(get_app_settings),
) -> Any:
    query = HighlightQuery(words=words, speaker=speaker, lang=lang, looseSearch=loose_search)
    highlight_request = query.to_request(meeting_id)

    # Client errors are reported before any backend call.
    try:
        prepare_terms(highlight_request)
    except InvalidHighlightRequest as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    if backend is None:
        return JSONResponse(status_code=503, content={"error": "Search backend not configured"})

    logger.info(
        "highlight_request",
        meeting_id=meeting_id,
        lang=highlight_request.lang,
        has_speaker=bool(highlight_request.speaker),
        loose_search=highlight_request.loose_search,
    )
    return StreamingResponse(
        stream_highlights(
            backend,
            highlight_request,
            settings.chunk_size,
            is_disconnected=request.is_disconnected,
        ),
        media_type=NDJSON_MEDIA_TYPE,
    )
