"""
Search hit models for CorporaViewer.

Typed views over the ``_source`` documents returned by the word-level and
sentence-level Elasticsearch indices. Integer 0/1 flags stored in the
indices coerce to booleans.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from cv_common.models.corpus import Coordinate


class WordHit(BaseModel):
    """A document of the word-level index."""

    model_config = {"from_attributes": True}

    word_id: str
    sentence_id: str
    segment_id: str | None = None
    meeting_id: str | None = None
    text: str = ""
    lemma: str = ""
    lang: str = ""
    original: bool = False
    propn: bool = False
    pos: int = 0
    wpos: int = 0
    speaker: str | None = None
    coordinates: list[Coordinate] = Field(default_factory=list)


class MatchedTranslation(BaseModel):
    """The translation a phrase query matched in (first nested inner hit).

    Attributes:
        lang: Language of the matched translation.
        original: Whether it is the original transcript language.
        text: Plain translation text.
        highlight: Translation text with matched words wrapped in ``<em>``
            tags, when the backend returned one.
    """

    lang: str = ""
    original: bool = False
    text: str = ""
    highlight: str | None = None


class SentenceHit(BaseModel):
    """A document of the sentence-level index."""

    model_config = {"from_attributes": True}

    sentence_id: str
    segment_id: str | None = None
    meeting_id: str | None = None
    speaker: str | None = None
    coordinates: list[Coordinate] = Field(default_factory=list)
    matched_translation: MatchedTranslation | None = None

    @classmethod
    def from_es_hit(cls, hit: dict[str, Any]) -> SentenceHit:
        """Build a hit from a raw Elasticsearch hit including inner hits."""
        source = hit.get("_source", {})
        matched: MatchedTranslation | None = None
        inner = (
            hit.get("inner_hits", {})
            .get("matched_translation", {})
            .get("hits", {})
            .get("hits", [])
        )
        if inner:
            first = inner[0]
            fragments = first.get("highlight", {}).get("translations.text") or hit.get(
                "highlight", {},
            ).get("translations.text")
            matched = MatchedTranslation(
                **first.get("_source", {}),
                highlight=fragments[0] if fragments else None,
            )
        return cls(
            sentence_id=source["sentence_id"],
            segment_id=source.get("segment_id"),
            meeting_id=source.get("meeting_id"),
            speaker=source.get("speaker"),
            coordinates=source.get("coordinates") or [],
            matched_translation=matched,
        )
