"""
Elasticsearch search backend for the CorporaViewer highlights service.

Wraps the shared ``AsyncElasticsearch`` client with the handful of
operations the highlight engine needs: point-in-time cursors over the
word and sentence indices, paged searches through them, and the
follow-up lookups for sentence coordinates and translation words.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Sequence, TypeVar

import structlog
from elasticsearch import AsyncElasticsearch

from cv_common.config import Settings
from cv_common.models import SentenceHit, WordHit

from highlights import queries

logger = structlog.get_logger(__name__)

HitT = TypeVar("HitT")


@dataclass
class SearchPage(Generic[HitT]):
    """One page of a point-in-time search.

    Attributes:
        hits: Parsed hits in sort order.
        search_after: Sort values of the last hit (``None`` if empty).
        pit_id: Point-in-time id returned by the backend, which may differ
            from the one sent.
    """

    hits: list[HitT] = field(default_factory=list)
    search_after: list[Any] | None = None
    pit_id: str | None = None


def _body(response: Any) -> dict[str, Any]:
    """Return the JSON body of an ES response or a plain dict."""
    body = getattr(response, "body", response)
    return body if isinstance(body, dict) else dict(body)


def _raw_hits(body: dict[str, Any]) -> list[dict[str, Any]]:
    return body.get("hits", {}).get("hits", [])


class SearchBackend:
    """Query and cursor service over the transcript indices.

    Parameters
    ----------
    es_client:
        An ``AsyncElasticsearch`` instance shared by the whole process.
    words_index:
        Word-level index name.
    sentences_index:
        Sentence-level index name.
    keep_alive:
        Point-in-time keep-alive, extended on every paged search.
    follow_up_size:
        Size limit of non-paginated lookups.
    loose_fuzziness:
        Fuzziness applied to terms when loose search is requested.
    speaker_fuzziness:
        Fuzziness applied to speaker names.
    """

    def __init__(
        self,
        es_client: AsyncElasticsearch,
        *,
        words_index: str = "words-index",
        sentences_index: str = "sentences-index",
        keep_alive: str = "5m",
        follow_up_size: int = 10000,
        loose_fuzziness: str = "AUTO:5,10",
        speaker_fuzziness: str = "2",
    ) -> None:
        self._es = es_client
        self.words_index = words_index
        self.sentences_index = sentences_index
        self.keep_alive = keep_alive
        self.follow_up_size = follow_up_size
        self.loose_fuzziness = loose_fuzziness
        self.speaker_fuzziness = speaker_fuzziness

    @classmethod
    def from_settings(cls, es_client: AsyncElasticsearch, settings: Settings) -> SearchBackend:
        return cls(
            es_client,
            words_index=settings.words_index,
            sentences_index=settings.sentences_index,
            keep_alive=settings.pit_keep_alive,
            follow_up_size=settings.follow_up_size,
            loose_fuzziness=settings.loose_fuzziness,
            speaker_fuzziness=settings.speaker_fuzziness,
        )

    def fuzziness(self, loose_search: bool) -> str:
        return self.loose_fuzziness if loose_search else queries.EXACT_FUZZINESS

    # ── cursors ──

    async def open_cursor(self, index: str) -> str:
        """Open a point-in-time over *index* and return its id."""
        resp = _body(await self._es.open_point_in_time(index=index, keep_alive=self.keep_alive))
        logger.debug("cursor_opened", index=index)
        return resp["id"]

    async def close_cursor(self, pit_id: str) -> None:
        """Release a point-in-time."""
        await self._es.close_point_in_time(id=pit_id)
        logger.debug("cursor_closed")

    async def _search_page(
        self,
        query: dict[str, Any],
        *,
        pit_id: str,
        sort: list[dict[str, Any]],
        size: int,
        search_after: list[Any] | None,
    ) -> tuple[list[dict[str, Any]], list[Any] | None, str | None]:
        kwargs: dict[str, Any] = {
            "pit": {"id": pit_id, "keep_alive": self.keep_alive},
            "query": query,
            "sort": sort,
            "size": size,
        }
        if search_after is not None:
            kwargs["search_after"] = search_after
        body = _body(await self._es.search(**kwargs))
        raw = _raw_hits(body)
        last_sort = raw[-1].get("sort") if raw else None
        return raw, last_sort, body.get("pit_id", pit_id)

    # ── paged searches ──

    async def search_words(
        self,
        query: dict[str, Any],
        *,
        pit_id: str,
        size: int,
        search_after: list[Any] | None = None,
    ) -> SearchPage[WordHit]:
        """Fetch the next page of word hits through a point-in-time."""
        raw, last_sort, new_pit = await self._search_page(
            query,
            pit_id=pit_id,
            sort=queries.WORDS_SORT,
            size=size,
            search_after=search_after,
        )
        return SearchPage(
            hits=[WordHit.model_validate(h["_source"]) for h in raw],
            search_after=last_sort,
            pit_id=new_pit,
        )

    async def search_sentences(
        self,
        query: dict[str, Any],
        *,
        pit_id: str,
        size: int,
        search_after: list[Any] | None = None,
    ) -> SearchPage[SentenceHit]:
        """Fetch the next page of sentence hits through a point-in-time."""
        raw, last_sort, new_pit = await self._search_page(
            query,
            pit_id=pit_id,
            sort=queries.SENTENCES_SORT,
            size=size,
            search_after=search_after,
        )
        return SearchPage(
            hits=[SentenceHit.from_es_hit(h) for h in raw],
            search_after=last_sort,
            pit_id=new_pit,
        )

    # ── follow-up lookups ──

    async def fetch_sentences(
        self,
        meeting_id: str,
        sentence_ids: Sequence[str],
    ) -> list[SentenceHit]:
        """Return the sentences with *sentence_ids* (coordinates included)."""
        if not sentence_ids:
            return []
        body = _body(
            await self._es.search(
                index=self.sentences_index,
                query=queries.sentences_by_ids_query(meeting_id, sentence_ids),
                source=["sentence_id", "segment_id", "meeting_id", "speaker", "coordinates"],
                size=min(len(sentence_ids), self.follow_up_size),
            ),
        )
        return [SentenceHit.from_es_hit(h) for h in _raw_hits(body)]

    async def fetch_translation_words(
        self,
        meeting_id: str,
        sentence_id: str,
        lang: str,
    ) -> list[WordHit]:
        """Return every word of one translation of a sentence, by position."""
        body = _body(
            await self._es.search(
                index=self.words_index,
                query=queries.translation_words_query(meeting_id, sentence_id, lang),
                sort=[{"pos": {"order": "asc"}}],
                size=self.follow_up_size,
            ),
        )
        return [WordHit.model_validate(h["_source"]) for h in _raw_hits(body)]

    # ── lifecycle ──

    async def ping(self) -> bool:
        return bool(await self._es.ping())

    async def index_exists(self, index: str) -> bool:
        return bool(await self._es.indices.exists(index=index))

    async def close(self) -> None:
        """Close the underlying ES transport."""
        await self._es.close()
