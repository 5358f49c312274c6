"""
Shared Pydantic data models for CorporaViewer.

This package contains the shared PDF coordinate model, typed search
hits over the word and sentence indices, and highlight models.
"""

from cv_common.models.corpus import Coordinate
from cv_common.models.highlight import (
    GroupedRect,
    HighlightCandidate,
    HighlightChunk,
    HighlightErrorChunk,
    HighlightKind,
    HighlightRef,
    Rect,
)
from cv_common.models.hits import MatchedTranslation, SentenceHit, WordHit

__all__ = [
    "Coordinate",
    "GroupedRect",
    "HighlightCandidate",
    "HighlightChunk",
    "HighlightErrorChunk",
    "HighlightKind",
    "HighlightRef",
    "MatchedTranslation",
    "Rect",
    "SentenceHit",
    "WordHit",
]
