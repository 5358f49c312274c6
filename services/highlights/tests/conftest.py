"""Shared fixtures for highlights service tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Make helpers in this module importable from test files
# (needed with --import-mode=importlib).
sys.path.insert(0, str(Path(__file__).resolve().parent))

# Set env vars before any cv_common settings are read.
os.environ.setdefault("CV_ES_HOSTS", "http://localhost:9200")
os.environ.setdefault("CV_CHUNK_SIZE", "100")
os.environ.setdefault("CV_LOG_JSON", "false")

WORDS_INDEX = "words-index"
SENTENCES_INDEX = "sentences-index"
MEETING_ID = "m1"


# ─── Corpus document builders ─────────────────────────────────


def coord(page: int = 0, x0: float = 0.0, y0: float = 10.0, x1: float = 5.0, y1: float = 20.0) -> dict:
    return {"page": page, "x0": x0, "y0": y0, "x1": x1, "y1": y1}


def word_doc(
    sentence_id: str,
    lang: str,
    pos: int,
    text: str,
    *,
    original: bool = True,
    propn: bool = False,
    wpos: int | None = None,
    speaker: str = "Janez Novak",
    lemma: str | None = None,
    coordinates: list[dict] | None = None,
) -> dict:
    """Build a word-index ``_source`` document."""
    return {
        "meeting_id": MEETING_ID,
        "sentence_id": sentence_id,
        "segment_id": "seg1",
        "word_id": f"{sentence_id}.{lang}.w{pos}",
        "text": text,
        "lemma": lemma if lemma is not None else text.lower(),
        "lang": lang,
        "original": int(original),
        "propn": int(propn),
        "pos": pos,
        "wpos": wpos if wpos is not None else pos,
        "speaker": speaker,
        "coordinates": coordinates if coordinates is not None else [coord(x0=pos * 10.0, x1=pos * 10.0 + 8)],
    }


def translation_words(sentence_id: str, lang: str, text: str, *, original: bool, wpos_offset: int = 0) -> list[dict]:
    return [
        word_doc(sentence_id, lang, i, token, original=original, wpos=wpos_offset + i)
        for i, token in enumerate(text.split())
    ]


def sentence_source(sentence_id: str, *, speaker: str = "Janez Novak", coordinates: list[dict] | None = None) -> dict:
    return {
        "meeting_id": MEETING_ID,
        "sentence_id": sentence_id,
        "segment_id": "seg1",
        "speaker": speaker,
        "coordinates": coordinates if coordinates is not None else [coord(y0=100.0), coord(x0=6, x1=50, y0=100.0)],
    }


def sentence_hit(
    sentence_id: str,
    *,
    lang: str | None = None,
    original: bool = True,
    text: str = "",
    highlight: str | None = None,
    speaker: str = "Janez Novak",
) -> dict:
    """Build a raw sentence-index hit, optionally with a matched translation."""
    hit: dict[str, Any] = {"_source": sentence_source(sentence_id, speaker=speaker)}
    if lang is not None:
        inner: dict[str, Any] = {"_source": {"lang": lang, "original": int(original), "text": text}}
        if highlight is not None:
            inner["highlight"] = {"translations.text": [highlight]}
        hit["inner_hits"] = {"matched_translation": {"hits": {"hits": [inner]}}}
    return hit


# ─── In-memory Elasticsearch ──────────────────────────────────


class FakeIndices:
    """The ``indices`` namespace of the fake client."""

    def __init__(self, names: set[str]) -> None:
        self.names = names

    async def exists(self, *, index: str) -> bool:
        return index in self.names


class FakeElasticsearch:
    """Stand-in for ``AsyncElasticsearch`` used by the highlight engine.

    ``matches`` holds the raw hits a paged (point-in-time) search returns
    per index, regardless of the query. ``documents`` holds the ``_source``
    documents follow-up searches filter with ``term``/``terms`` clauses.
    """

    def __init__(
        self,
        matches: dict[str, list[dict]] | None = None,
        documents: dict[str, list[dict]] | None = None,
    ) -> None:
        self.matches = matches or {}
        self.documents = documents or {}
        self.open_pits: dict[str, str] = {}
        self.closed_pits: list[str] = []
        self.search_calls: list[dict[str, Any]] = []
        self.failing_indices: set[str] = set()
        self.failing_opens: set[str] = set()
        self.indices = FakeIndices({WORDS_INDEX, SENTENCES_INDEX})
        self._pit_seq = 0

    @staticmethod
    def _sort_key(index: str, source: dict) -> str:
        return source["word_id"] if index == WORDS_INDEX else source["sentence_id"]

    async def open_point_in_time(self, *, index: str, keep_alive: str) -> dict:
        if index in self.failing_opens:
            raise ConnectionError(f"cannot open pit on {index}")
        self._pit_seq += 1
        pit_id = f"pit-{index}-{self._pit_seq}"
        self.open_pits[pit_id] = index
        return {"id": pit_id}

    async def close_point_in_time(self, *, id: str) -> dict:
        self.open_pits.pop(id, None)
        self.closed_pits.append(id)
        return {"succeeded": True, "num_freed": 1}

    async def search(self, **kwargs: Any) -> dict:
        self.search_calls.append(kwargs)
        if "pit" in kwargs:
            index = self.open_pits[kwargs["pit"]["id"]]
            if index in self.failing_indices:
                raise ConnectionError(f"search on {index} failed")
            return self._paged(index, kwargs)
        index = kwargs["index"]
        if index in self.failing_indices:
            raise ConnectionError(f"search on {index} failed")
        return self._lookup(index, kwargs)

    def _paged(self, index: str, kwargs: dict) -> dict:
        hits = sorted(self.matches.get(index, []), key=lambda h: self._sort_key(index, h["_source"]))
        after = kwargs.get("search_after")
        if after is not None:
            hits = [h for h in hits if self._sort_key(index, h["_source"]) > after[0]]
        page = [
            {**h, "sort": [self._sort_key(index, h["_source"]), i]}
            for i, h in enumerate(hits[: kwargs["size"]])
        ]
        return {"pit_id": kwargs["pit"]["id"], "hits": {"total": {"value": len(hits)}, "hits": page}}

    def _lookup(self, index: str, kwargs: dict) -> dict:
        clauses = kwargs["query"]["bool"]["filter"]
        docs = []
        for doc in self.documents.get(index, []):
            ok = True
            for clause in clauses:
                if "term" in clause:
                    ((field, value),) = clause["term"].items()
                    ok = ok and doc.get(field) == value
                elif "terms" in clause:
                    ((field, values),) = clause["terms"].items()
                    ok = ok and doc.get(field) in values
            if ok:
                docs.append(doc)
        if kwargs.get("sort"):
            docs.sort(key=lambda d: d.get("pos", 0))
        docs = docs[: kwargs.get("size", 10)]
        return {"hits": {"total": {"value": len(docs)}, "hits": [{"_source": d} for d in docs]}}

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


# ─── Fixtures ────────────────────────────────────────────────


@pytest.fixture()
def meeting_id() -> str:
    return MEETING_ID


@pytest.fixture()
def quick_fox_words() -> list[dict]:
    """Original English sentence and its literal German translation."""
    return [
        *translation_words("m1.s1", "en", "the quick fox", original=True),
        *translation_words("m1.s1", "de", "der schnelle Fuchs", original=False, wpos_offset=3),
    ]


@pytest.fixture()
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()


@pytest.fixture()
def make_backend():
    """Factory building a ``SearchBackend`` over a ``FakeElasticsearch``."""
    from highlights.backend import SearchBackend

    def _make(es: Any) -> SearchBackend:
        return SearchBackend(es, words_index=WORDS_INDEX, sentences_index=SENTENCES_INDEX)

    return _make


@pytest.fixture()
def mock_es_client() -> AsyncMock:
    """Async mock standing in for ``AsyncElasticsearch``."""
    es = AsyncMock()
    es.search = AsyncMock(return_value={"hits": {"total": {"value": 0}, "hits": []}})
    es.open_point_in_time = AsyncMock(return_value={"id": "pit-1"})
    es.close_point_in_time = AsyncMock(return_value={"succeeded": True})
    es.ping = AsyncMock(return_value=True)
    es.close = AsyncMock()
    return es


def _build_app(backend: Any, settings: Any) -> FastAPI:
    """Build a minimal FastAPI app with dependency overrides for testing."""
    from highlights.dependencies import get_app_settings, get_search_backend
    from highlights.routers import health, highlights

    app = FastAPI()

    # Override DI
    app.dependency_overrides[get_search_backend] = lambda: backend
    app.dependency_overrides[get_app_settings] = lambda: settings

    # State (for the health check, which reads app.state directly)
    app.state.search_backend = backend

    app.include_router(highlights.router, prefix="/api/v1")
    app.include_router(health.router)
    return app


@pytest.fixture()
def test_settings():
    from cv_common.config import Settings

    return Settings(chunk_size=2, log_json=False)


@pytest.fixture()
def client_for(test_settings):
    """Factory returning a ``TestClient`` over a given search backend."""

    def _client(backend: Any) -> TestClient:
        return TestClient(_build_app(backend, test_settings))

    return _client
