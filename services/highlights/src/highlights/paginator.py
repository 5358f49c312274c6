"""
Two-index cursor pagination for the CorporaViewer highlights service.

Keeps one point-in-time cursor over the word index and one over the
sentence index for the lifetime of a highlight stream, and advances both
with their own search-after keys so no hit is missed or repeated across
chunks. The two indices are paged independently; one iteration of the
stream consumes at most one page from each.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import structlog

from cv_common.metrics import cursor_events_total
from cv_common.models import SentenceHit, WordHit

from highlights.backend import SearchBackend
from highlights.errors import CursorOpenError

logger = structlog.get_logger(__name__)


@dataclass
class Cursor:
    """Paging state of one index.

    Attributes:
        index: Index name the point-in-time was opened on.
        enabled: Whether the request needs this index at all.
        pit_id: Open point-in-time id, ``None`` when closed.
        search_after: Sort key of the last hit seen.
        exhausted: No further hits will be requested.
        last_sentence_id: Sentence owning the last hit seen.
    """

    index: str
    enabled: bool = True
    pit_id: str | None = None
    search_after: list[Any] | None = None
    exhausted: bool = False
    last_sentence_id: str | None = None

    @property
    def active(self) -> bool:
        return self.enabled and not self.exhausted and self.pit_id is not None

    @property
    def pending(self) -> bool:
        return self.enabled and not self.exhausted


@dataclass
class SearchResult:
    """Hits of one iteration over both indices.

    A failed sub-query leaves its hits empty and sets the matching
    ``*_failed`` flag.
    """

    word_hits: list[WordHit] = field(default_factory=list)
    sentence_hits: list[SentenceHit] = field(default_factory=list)
    next_after_words: list[Any] | None = None
    next_after_sentences: list[Any] | None = None
    words_pit_id: str | None = None
    sentences_pit_id: str | None = None
    words_failed: bool = False
    sentences_failed: bool = False


class TwoIndexPaginator:
    """Lockstep pager over the word and sentence indices.

    Args:
        backend: Search backend owning the cursors.
        chunk_size: Hits requested from each index per iteration.
        use_words: Whether the word index is searched.
        use_sentences: Whether the sentence index is searched.
    """

    def __init__(
        self,
        backend: SearchBackend,
        chunk_size: int,
        *,
        use_words: bool = True,
        use_sentences: bool = True,
    ) -> None:
        self._backend = backend
        self.chunk_size = chunk_size
        self.words = Cursor(backend.words_index, enabled=use_words, exhausted=not use_words)
        self.sentences = Cursor(
            backend.sentences_index,
            enabled=use_sentences,
            exhausted=not use_sentences,
        )
        self.iterations = 0

    # ── lifecycle ──

    async def open(self) -> None:
        """Open a point-in-time for every enabled index.

        Raises:
            CursorOpenError: If no enabled index could be opened.
        """
        targets = [c for c in (self.words, self.sentences) if c.enabled]
        results = await asyncio.gather(
            *(self._backend.open_cursor(c.index) for c in targets),
            return_exceptions=True,
        )
        failures = 0
        for cursor, result in zip(targets, results):
            if isinstance(result, BaseException):
                failures += 1
                cursor.exhausted = True
                cursor_events_total.labels(event="open_failed").inc()
                logger.warning("cursor_open_failed", index=cursor.index, error=str(result))
            else:
                cursor.pit_id = result
                cursor_events_total.labels(event="opened").inc()
        if targets and failures == len(targets):
            raise CursorOpenError("could not open a cursor on any index")

    async def close(self) -> None:
        """Release every open point-in-time; failures are logged only."""
        cursors = [c for c in (self.words, self.sentences) if c.pit_id is not None]
        pit_ids = [c.pit_id for c in cursors]
        for cursor in cursors:
            cursor.pit_id = None
            cursor.exhausted = True
        results = await asyncio.gather(
            *(self._backend.close_cursor(pit_id) for pit_id in pit_ids),
            return_exceptions=True,
        )
        for cursor, result in zip(cursors, results):
            if isinstance(result, BaseException):
                cursor_events_total.labels(event="close_failed").inc()
                logger.warning("cursor_close_failed", index=cursor.index, error=str(result))
            else:
                cursor_events_total.labels(event="closed").inc()

    async def __aenter__(self) -> TwoIndexPaginator:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── paging ──

    @property
    def has_more(self) -> bool:
        """``True`` while any enabled index may still return hits."""
        return any(c.pending for c in (self.words, self.sentences))

    def is_settled(self, sentence_id: str) -> bool:
        """Return ``True`` when no later page can hold a hit of *sentence_id*.

        Word hits are sorted by word id, which starts with the sentence id,
        so the word index may still return the sentence it stopped in. The
        sentence index returns each sentence once.
        """
        words, sentences = self.words, self.sentences
        if words.pending and not sentence_id < (words.last_sentence_id or ""):
            return False
        if sentences.pending and not sentence_id <= (sentences.last_sentence_id or ""):
            return False
        return True

    def advance(self, result: SearchResult) -> None:
        """Carry the search-after keys of *result* into the next iteration."""
        self.iterations += 1
        self._advance(
            self.words,
            result.word_hits[-1].sentence_id if result.word_hits else None,
            len(result.word_hits),
            result.next_after_words,
            result.words_pit_id,
            result.words_failed,
        )
        self._advance(
            self.sentences,
            result.sentence_hits[-1].sentence_id if result.sentence_hits else None,
            len(result.sentence_hits),
            result.next_after_sentences,
            result.sentences_pit_id,
            result.sentences_failed,
        )

    def _advance(
        self,
        cursor: Cursor,
        last_sentence_id: str | None,
        count: int,
        search_after: list[Any] | None,
        pit_id: str | None,
        failed: bool,
    ) -> None:
        if not cursor.active:
            return
        if pit_id:
            cursor.pit_id = pit_id
        if search_after is not None:
            cursor.search_after = search_after
        if last_sentence_id is not None:
            cursor.last_sentence_id = last_sentence_id
        if failed or count < self.chunk_size:
            cursor.exhausted = True
