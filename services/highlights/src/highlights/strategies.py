"""
Search strategies for the CorporaViewer highlights service.

A strategy decides how the word and sentence indices are queried and how
their hits become highlight candidates:

- ``OriginalLanguageStrategy`` searches every language and highlights the
  original transcript; matches found only in a translation escalate to
  the whole sentence.
- ``TranslatedLanguageStrategy`` searches one translation language and
  highlights words of that translation directly.

Proper nouns are language-invariant and always highlighted word by word.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Sequence

import structlog

from cv_common.metrics import backend_subquery_failures_total
from cv_common.models import (
    HighlightCandidate,
    HighlightKind,
    HighlightRef,
    SentenceHit,
    WordHit,
)

from highlights import queries
from highlights.backend import SearchBackend
from highlights.coordinates import group_coordinates
from highlights.paginator import Cursor, SearchResult
from highlights.phrase_aligner import align_phrases

logger = structlog.get_logger(__name__)


# ── candidate builders ──


def word_candidate(hit: WordHit) -> HighlightCandidate:
    return HighlightCandidate(
        ids=[hit.word_id],
        rects=group_coordinates(hit.coordinates),
        kind=HighlightKind.WORD,
        refs=[HighlightRef(sentence_id=hit.sentence_id, position=hit.pos)],
    )


def phrase_candidate(span: Sequence[WordHit]) -> HighlightCandidate:
    return HighlightCandidate(
        ids=[w.word_id for w in span],
        rects=group_coordinates(c for w in span for c in w.coordinates),
        kind=HighlightKind.PHRASE,
        refs=[HighlightRef(sentence_id=w.sentence_id, position=w.pos) for w in span],
    )


def sentence_candidate(hit: SentenceHit) -> HighlightCandidate:
    return HighlightCandidate(
        ids=[hit.sentence_id],
        rects=group_coordinates(hit.coordinates),
        kind=HighlightKind.SENTENCE,
        refs=[HighlightRef(sentence_id=hit.sentence_id)],
    )


class SearchStrategy(ABC):
    """Shared contract of the original- and translated-language strategies.

    Args:
        backend: Search backend used for paged and follow-up queries.
    """

    name: str = "base"

    def __init__(self, backend: SearchBackend) -> None:
        self._backend = backend

    @abstractmethod
    def query_lang(self, lang: str | None) -> str | None:
        """Language the indices are restricted to, ``None`` for all."""

    async def search(
        self,
        meeting_id: str,
        words: Sequence[str],
        phrases: Sequence[Sequence[str]],
        speaker: str | None,
        lang: str | None,
        loose_search: bool,
        chunk_size: int,
        words_cursor: Cursor,
        sentences_cursor: Cursor,
    ) -> SearchResult:
        """Fetch the next page of word hits and sentence hits concurrently.

        The sentence index is searched for phrases, or for every sentence of
        the speaker when only a speaker was given. A failed sub-query is
        logged and yields an empty half of the result.
        """
        backend = self._backend
        query_lang = self.query_lang(lang)
        fuzziness = backend.fuzziness(loose_search)

        words_body = queries.words_query(
            meeting_id,
            words,
            speaker=speaker,
            lang=query_lang,
            fuzziness=fuzziness,
            speaker_fuzziness=backend.speaker_fuzziness,
        )
        if phrases:
            sentences_body = queries.phrases_query(
                meeting_id,
                phrases,
                speaker=speaker,
                lang=query_lang,
                fuzziness=fuzziness,
                speaker_fuzziness=backend.speaker_fuzziness,
            )
        elif not words and speaker:
            sentences_body = queries.speaker_sentences_query(
                meeting_id,
                speaker,
                backend.speaker_fuzziness,
            )
        else:
            sentences_body = {}

        async def _words() -> Any:
            if not words_body or not words_cursor.active:
                return None
            return await backend.search_words(
                words_body,
                pit_id=words_cursor.pit_id,
                size=chunk_size,
                search_after=words_cursor.search_after,
            )

        async def _sentences() -> Any:
            if not sentences_body or not sentences_cursor.active:
                return None
            return await backend.search_sentences(
                sentences_body,
                pit_id=sentences_cursor.pit_id,
                size=chunk_size,
                search_after=sentences_cursor.search_after,
            )

        words_page, sentences_page = await asyncio.gather(
            _words(),
            _sentences(),
            return_exceptions=True,
        )

        result = SearchResult()
        if isinstance(words_page, BaseException):
            result.words_failed = True
            self._log_failure(words_cursor.index, meeting_id, words_page)
        elif words_page is not None:
            result.word_hits = words_page.hits
            result.next_after_words = words_page.search_after
            result.words_pit_id = words_page.pit_id

        if isinstance(sentences_page, BaseException):
            result.sentences_failed = True
            self._log_failure(sentences_cursor.index, meeting_id, sentences_page)
        elif sentences_page is not None:
            result.sentence_hits = sentences_page.hits
            result.next_after_sentences = sentences_page.search_after
            result.sentences_pit_id = sentences_page.pit_id

        return result

    @abstractmethod
    async def process_single_words_response(
        self,
        hits: Sequence[WordHit],
        meeting_id: str,
    ) -> list[HighlightCandidate]:
        """Turn word-index hits into highlight candidates."""

    @abstractmethod
    async def process_phrases_response(
        self,
        hits: Sequence[SentenceHit],
        phrases: Sequence[Sequence[str]],
        meeting_id: str,
        loose_search: bool = False,
    ) -> list[HighlightCandidate]:
        """Turn sentence-index hits into highlight candidates."""

    # ── helpers ──

    @staticmethod
    def _log_failure(index: str, meeting_id: str, exc: BaseException) -> None:
        backend_subquery_failures_total.labels(index=index).inc()
        logger.warning(
            "subquery_failed",
            index=index,
            meeting_id=meeting_id,
            error=str(exc),
        )

    async def _align(
        self,
        hits: Sequence[SentenceHit],
        phrases: Sequence[Sequence[str]],
        meeting_id: str,
        lang: str | None,
        loose_search: bool,
    ) -> list[HighlightCandidate]:
        """Resolve phrase matches to word runs, one lookup per sentence.

        *lang* selects the translation to align against; ``None`` uses the
        translation each hit matched in. A sentence that cannot be aligned
        is reported as a whole rather than dropped.
        """
        langs = [lang or (h.matched_translation.lang if h.matched_translation else "") for h in hits]
        responses = await asyncio.gather(
            *(
                self._backend.fetch_translation_words(meeting_id, h.sentence_id, hit_lang)
                for h, hit_lang in zip(hits, langs)
            ),
            return_exceptions=True,
        )

        candidates: list[HighlightCandidate] = []
        for hit, words in zip(hits, responses):
            if isinstance(words, BaseException):
                self._log_failure(self._backend.words_index, meeting_id, words)
                candidates.append(sentence_candidate(hit))
                continue
            highlight = hit.matched_translation.highlight if hit.matched_translation else None
            alignment = align_phrases(words, phrases, highlight, loose_search)
            if not alignment.spans:
                logger.info(
                    "phrase_alignment_failed",
                    meeting_id=meeting_id,
                    sentence_id=hit.sentence_id,
                )
                candidates.append(sentence_candidate(hit))
                continue
            candidates.extend(phrase_candidate(span) for span in alignment.spans)
        return candidates


class OriginalLanguageStrategy(SearchStrategy):
    """Highlights the original transcript, searching every language."""

    name = "original"

    def query_lang(self, lang: str | None) -> str | None:
        return None

    async def process_single_words_response(
        self,
        hits: Sequence[WordHit],
        meeting_id: str,
    ) -> list[HighlightCandidate]:
        if not hits:
            return []

        # Sentences whose match exists only in a translation are shown whole.
        escalated: list[str] = []
        for hit in hits:
            if not hit.original and not hit.propn and hit.sentence_id not in escalated:
                escalated.append(hit.sentence_id)

        word_candidates = [
            word_candidate(hit)
            for hit in hits
            if (hit.original or hit.propn) and hit.sentence_id not in escalated
        ]

        found: dict[str, SentenceHit] = {}
        if escalated:
            try:
                sentences = await self._backend.fetch_sentences(meeting_id, escalated)
            except Exception as exc:
                self._log_failure(self._backend.sentences_index, meeting_id, exc)
                sentences = []
            found = {s.sentence_id: s for s in sentences}

        sentence_candidates = [
            sentence_candidate(found.get(sid) or SentenceHit(sentence_id=sid))
            for sid in escalated
        ]
        return [*sentence_candidates, *word_candidates]

    async def process_phrases_response(
        self,
        hits: Sequence[SentenceHit],
        phrases: Sequence[Sequence[str]],
        meeting_id: str,
        loose_search: bool = False,
    ) -> list[HighlightCandidate]:
        candidates: list[HighlightCandidate] = []
        in_original: list[SentenceHit] = []
        for hit in hits:
            matched = hit.matched_translation
            if matched is not None and matched.original:
                in_original.append(hit)
            else:
                candidates.append(sentence_candidate(hit))

        if in_original:
            candidates.extend(
                await self._align(in_original, phrases, meeting_id, None, loose_search),
            )
        return candidates


class TranslatedLanguageStrategy(SearchStrategy):
    """Highlights one translation, searching only that language."""

    name = "translated"

    def __init__(self, backend: SearchBackend, lang: str) -> None:
        super().__init__(backend)
        self.lang = lang

    def query_lang(self, lang: str | None) -> str | None:
        return lang or self.lang

    async def process_single_words_response(
        self,
        hits: Sequence[WordHit],
        meeting_id: str,
    ) -> list[HighlightCandidate]:
        return [word_candidate(hit) for hit in hits]

    async def process_phrases_response(
        self,
        hits: Sequence[SentenceHit],
        phrases: Sequence[Sequence[str]],
        meeting_id: str,
        loose_search: bool = False,
    ) -> list[HighlightCandidate]:
        candidates: list[HighlightCandidate] = []
        matched: list[SentenceHit] = []
        for hit in hits:
            if hit.matched_translation is None:
                candidates.append(sentence_candidate(hit))
            else:
                matched.append(hit)

        if matched:
            candidates.extend(
                await self._align(matched, phrases, meeting_id, self.lang, loose_search),
            )
        return candidates


def select_strategy(backend: SearchBackend, lang: str | None) -> SearchStrategy:
    """Pick the strategy for a request: translated when *lang* is given."""
    if lang:
        return TranslatedLanguageStrategy(backend, lang)
    return OriginalLanguageStrategy(backend)
