"""
Highlight data models for CorporaViewer.

Defines the candidates produced by the highlight engine, the grouped PDF
rectangles attached to them, and the NDJSON chunk envelope streamed to
the viewer.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HighlightKind(str, Enum):
    """Granularity of a highlight candidate."""

    WORD = "word"
    PHRASE = "phrase"
    SENTENCE = "sentence"


class HighlightRef(BaseModel):
    """Composite identifier of a highlighted element.

    ``position`` is the word's position within its translation, or
    ``None`` when the reference denotes the whole sentence.
    """

    model_config = ConfigDict(frozen=True)

    sentence_id: str
    position: int | None = None


class Rect(BaseModel):
    x0: float
    y0: float
    x1: float
    y1: float


class GroupedRect(BaseModel):
    """Merged line rectangles on one PDF page."""

    page: int
    coordinates: list[Rect] = Field(default_factory=list)


class HighlightCandidate(BaseModel):
    """A region of the transcript to highlight.

    A single id denotes a word or a whole sentence; several ids denote a
    phrase spanning consecutive words. Only ``ids`` and ``rects`` are
    serialised to clients.

    Attributes:
        ids: DOM element ids (word ids or a sentence id).
        rects: Grouped PDF rectangles per page.
        kind: Granularity of the candidate.
        refs: Structured owner references, aligned with ``ids``.
    """

    ids: list[str]
    rects: list[GroupedRect] = Field(default_factory=list)
    kind: HighlightKind = Field(default=HighlightKind.WORD, exclude=True)
    refs: list[HighlightRef] = Field(default_factory=list, exclude=True)

    @property
    def sentence_ids(self) -> set[str]:
        return {ref.sentence_id for ref in self.refs}

    @property
    def id_set(self) -> frozenset[str]:
        return frozenset(self.ids)


class HighlightChunk(BaseModel):
    """One NDJSON line of the highlight stream."""

    words: list[str] = Field(default_factory=list)
    phrases: list[list[str]] = Field(default_factory=list)
    speaker: str | None = None
    highlights: list[HighlightCandidate] = Field(default_factory=list)


class HighlightErrorChunk(BaseModel):
    """Single terminal line emitted when the stream cannot proceed."""

    error: str
