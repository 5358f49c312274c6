"""
Phrase alignment for the CorporaViewer highlights service.

Given a sentence matched by a phrase query, recovers the runs of words
that make up each match. The backend's ``<em>``-tagged highlight is used
when available (exact-span mode); otherwise a sliding window compares the
folded word texts with the phrase.
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass, field
from typing import Sequence

from cv_common.models import WordHit
from cv_common.utils import fold_text, is_punctuation

_EM_TAG = re.compile(r"</?em>")


@dataclass
class AlignmentResult:
    """Word runs found for one sentence.

    Attributes:
        spans: Each span is one match, as consecutive words.
        exact: ``True`` when every span came from highlighted positions
            (so ``len(span) == len(phrase)``).
    """

    spans: list[list[WordHit]] = field(default_factory=list)
    exact: bool = False


def _normalize(token: str) -> str:
    return fold_text(token).strip(string.punctuation + "«»„“”‘’")


def highlighted_positions(text: str) -> list[int]:
    """Return zero-based word indexes covered by ``<em>`` spans in *text*.

    A span may cover several words (``<em>quick fox</em>``). Punctuation-only
    tokens are not counted as words.

    >>> highlighted_positions("the <em>quick</em> <em>fox</em> .")
    [1, 2]
    >>> highlighted_positions("the <em>quick fox</em> jumps")
    [1, 2]
    """
    positions: list[int] = []
    index = 0
    inside = False
    for token in text.split():
        highlighted = inside or "<em>" in token
        for tag in _EM_TAG.findall(token):
            inside = tag == "<em>"
        plain = _EM_TAG.sub("", token)
        if not plain or is_punctuation(plain):
            continue
        if highlighted:
            positions.append(index)
        index += 1
    return positions


def content_words(words: Sequence[WordHit]) -> list[WordHit]:
    """Order *words* by position and drop punctuation-only words."""
    return [w for w in sorted(words, key=lambda w: w.pos) if w.text and not is_punctuation(w.text)]


def align_highlighted(
    content: Sequence[WordHit],
    phrase: Sequence[str],
    positions: Sequence[int],
    verify: bool = True,
) -> list[list[WordHit]]:
    """Cut highlighted *positions* into runs of ``len(phrase)`` words.

    A run starts at a highlighted position followed by ``len(phrase) - 1``
    further highlighted positions. With *verify*, the run's folded texts
    must equal the phrase.
    """
    size = len(phrase)
    target = [_normalize(t) for t in phrase]
    highlighted = set(positions)
    consumed: set[int] = set()
    spans: list[list[WordHit]] = []
    for start in sorted(highlighted):
        if start in consumed:
            continue
        window = range(start, start + size)
        if window.stop > len(content) or any(p not in highlighted for p in window):
            continue
        span = list(content[start:start + size])
        if verify and [_normalize(w.text) for w in span] != target:
            continue
        spans.append(span)
        consumed.update(window)
    return spans


def align_window(
    content: Sequence[WordHit],
    phrase: Sequence[str],
) -> list[list[WordHit]]:
    """Return the first window of *content* whose texts equal *phrase*."""
    size = len(phrase)
    target = [_normalize(t) for t in phrase]
    for start in range(len(content) - size + 1):
        span = list(content[start:start + size])
        if [_normalize(w.text) for w in span] != target:
            continue
        if all(a.wpos < b.wpos for a, b in zip(span, span[1:])):
            return [span]
    return []


def align_phrases(
    words: Sequence[WordHit],
    phrases: Sequence[Sequence[str]],
    highlight: str | None = None,
    loose_search: bool = False,
) -> AlignmentResult:
    """Find the word runs of *phrases* in one translation's *words*.

    Falls back from exact-span mode to the sliding window, and from the
    window to the highlighted words as a single best-effort span. An empty
    result means nothing could be aligned.
    """
    content = content_words(words)
    positions = highlighted_positions(highlight) if highlight else []

    if positions:
        spans = _unique(
            span
            for phrase in phrases
            for span in align_highlighted(content, phrase, positions, verify=not loose_search)
        )
        if spans:
            return AlignmentResult(spans=spans, exact=True)

    spans = _unique(span for phrase in phrases for span in align_window(content, phrase))
    if spans:
        return AlignmentResult(spans=spans, exact=False)

    best_effort = [content[p] for p in positions if p < len(content)]
    return AlignmentResult(spans=[best_effort] if best_effort else [], exact=False)


def _unique(spans) -> list[list[WordHit]]:
    seen: set[tuple[str, ...]] = set()
    result: list[list[WordHit]] = []
    for span in spans:
        key = tuple(w.word_id for w in span)
        if key not in seen:
            seen.add(key)
            result.append(span)
    return result
