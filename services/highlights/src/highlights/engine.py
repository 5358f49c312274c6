"""
Highlight resolution engine for the CorporaViewer highlights service.

Turns a highlight request (query text, speaker, language) into a stream
of highlight chunks. Each chunk is one iteration over both indices:
search, resolve hits to candidates, deduplicate, and group coordinates.
Cursors are released when the stream ends, fails, or the client goes
away.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable

import anyio
import structlog

from cv_common.metrics import (
    highlight_candidates_total,
    highlight_chunk_duration_seconds,
    highlight_chunks_total,
)
from cv_common.models import HighlightChunk, HighlightErrorChunk

from highlights.backend import SearchBackend
from highlights.deduplication import Deduplicator
from highlights.errors import CursorOpenError, InvalidHighlightRequest
from highlights.paginator import TwoIndexPaginator
from highlights.strategies import select_strategy
from highlights.tokenizer import QueryTerms, parse_query

logger = structlog.get_logger(__name__)


@dataclass
class HighlightRequest:
    """Parameters of one highlight request.

    Attributes:
        meeting_id: Meeting to search in.
        words: Raw query text (words, quoted phrases, ``OR``).
        speaker: Speaker name filter.
        lang: Translation language; ``None`` highlights the original.
        loose_search: Allow fuzzy matching of query terms.
    """

    meeting_id: str
    words: str | None = None
    speaker: str | None = None
    lang: str | None = None
    loose_search: bool = False

    def validate(self) -> None:
        """Raise :class:`InvalidHighlightRequest` for unusable parameters."""
        if not self.meeting_id or not self.meeting_id.strip():
            raise InvalidHighlightRequest("Bad request, missing meetingId")
        if not (self.words and self.words.strip()) and not (self.speaker and self.speaker.strip()):
            raise InvalidHighlightRequest("Bad request, missing words or speaker")


def prepare_terms(request: HighlightRequest) -> QueryTerms:
    """Validate *request* and return its folded query terms.

    Raises:
        InvalidHighlightRequest: If nothing searchable remains.
    """
    request.validate()
    terms = parse_query(request.words)
    if terms.is_empty and not (request.speaker and request.speaker.strip()):
        raise InvalidHighlightRequest("Bad request, query contains no searchable terms")
    return terms


class HighlightStream:
    """Async iterator of highlight chunks for one request.

    Use as an async context manager so the cursors are always released::

        async with HighlightStream(backend, request, chunk_size=100) as stream:
            async for chunk in stream:
                ...

    Raises:
        InvalidHighlightRequest: On construction, before any backend call.
    """

    def __init__(
        self,
        backend: SearchBackend,
        request: HighlightRequest,
        chunk_size: int,
    ) -> None:
        self.terms = prepare_terms(request)
        self.request = request
        speaker = request.speaker.strip() if request.speaker else None
        self.speaker = speaker or None
        self.chunk_size = chunk_size
        self.strategy = select_strategy(backend, request.lang)
        self.paginator = TwoIndexPaginator(
            backend,
            chunk_size,
            use_words=bool(self.terms.words),
            use_sentences=bool(self.terms.phrases) or (not self.terms.words and bool(speaker)),
        )
        self.deduplicator = Deduplicator()
        self.chunks_emitted = 0
        self._log = logger.bind(
            meeting_id=request.meeting_id,
            strategy=self.strategy.name,
            lang=request.lang,
        )

    # ── lifecycle ──

    async def open(self) -> None:
        await self.paginator.open()

    async def aclose(self) -> None:
        await self.paginator.close()

    async def __aenter__(self) -> HighlightStream:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── iteration ──

    @property
    def has_more(self) -> bool:
        return self.paginator.has_more

    def __aiter__(self) -> HighlightStream:
        return self

    async def __anext__(self) -> HighlightChunk:
        if not self.has_more:
            raise StopAsyncIteration
        return await self.next_chunk()

    async def next_chunk(self) -> HighlightChunk:
        """Run one iteration over both indices and return its chunk."""
        start = time.monotonic()
        request = self.request
        strategy = self.strategy

        result = await strategy.search(
            request.meeting_id,
            self.terms.words,
            self.terms.phrases,
            self.speaker,
            request.lang,
            request.loose_search,
            self.chunk_size,
            self.paginator.words,
            self.paginator.sentences,
        )
        self.paginator.advance(result)

        phrase_candidates, word_candidates = await asyncio.gather(
            strategy.process_phrases_response(
                result.sentence_hits,
                self.terms.phrases,
                request.meeting_id,
                request.loose_search,
            ),
            strategy.process_single_words_response(result.word_hits, request.meeting_id),
        )
        highlights = self.deduplicator.filter(
            [*phrase_candidates, *word_candidates],
            self.paginator.is_settled,
        )

        self.chunks_emitted += 1
        highlight_chunks_total.labels(strategy=strategy.name).inc()
        for candidate in highlights:
            highlight_candidates_total.labels(kind=candidate.kind.value).inc()
        duration = time.monotonic() - start
        highlight_chunk_duration_seconds.labels(strategy=strategy.name).observe(duration)
        self._log.debug(
            "highlight_chunk_emitted",
            chunk=self.chunks_emitted,
            word_hits=len(result.word_hits),
            sentence_hits=len(result.sentence_hits),
            highlights=len(highlights),
            held=len(self.deduplicator.held),
            duration_ms=round(duration * 1000, 2),
        )

        return HighlightChunk(
            words=self.terms.words,
            phrases=self.terms.phrases,
            speaker=self.speaker,
            highlights=highlights,
        )


async def stream_highlights(
    backend: SearchBackend,
    request: HighlightRequest,
    chunk_size: int,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncIterator[str]:
    """Yield the highlight stream of *request* as NDJSON lines.

    A fatal cursor failure yields a single ``{"error": ...}`` line. Both
    cursors are released whatever ends the stream, including client
    disconnects and cancellation.

    Raises:
        InvalidHighlightRequest: Before the first line, for bad parameters.
    """
    stream = HighlightStream(backend, request, chunk_size)
    log = logger.bind(meeting_id=request.meeting_id)
    try:
        try:
            await stream.open()
        except CursorOpenError as exc:
            log.error("highlight_stream_failed", error=str(exc))
            yield HighlightErrorChunk(error="Internal server error").model_dump_json() + "\n"
            return

        while stream.has_more:
            if is_disconnected is not None and await is_disconnected():
                log.info("client_disconnected", chunks=stream.chunks_emitted)
                break
            chunk = await stream.next_chunk()
            yield chunk.model_dump_json() + "\n"

        log.info("highlight_stream_finished", chunks=stream.chunks_emitted)
    finally:
        with anyio.CancelScope(shield=True):
            await stream.aclose()
