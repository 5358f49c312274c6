"""
Highlight deduplication for the CorporaViewer highlights service.

Removes overlapping candidates so each logical match is shown exactly
once, at the coarsest granularity available: a highlighted sentence
suppresses highlights of its words, and a highlighted phrase suppresses
highlights of the words it already covers.
"""

from __future__ import annotations

from typing import Callable, Iterable

from cv_common.models import HighlightCandidate, HighlightKind


def _canonical_key(candidate: HighlightCandidate) -> tuple[int, tuple[str, ...]]:
    return (-len(candidate.ids), tuple(sorted(candidate.ids)))


def filter_highlights(
    candidates: Iterable[HighlightCandidate],
    covered_sentences: Iterable[str] = (),
    covered_words: Iterable[str] = (),
) -> list[HighlightCandidate]:
    """Return *candidates* without overlaps.

    Whole-sentence candidates always win, once per sentence. Every other
    candidate is dropped when one of its sentences is already highlighted
    as a whole, or when all of its ids are covered by an accepted phrase.
    Decisions are made in a canonical order, so the result does not
    depend on input order.

    Args:
        candidates: Word, phrase and sentence candidates of one chunk.
        covered_sentences: Sentence ids highlighted in earlier chunks.
        covered_words: Word ids highlighted in earlier chunks.

    Returns:
        Sentence candidates, then phrase candidates, then word candidates,
        each group in input order.
    """
    candidates = list(candidates)
    sentences = set(covered_sentences)
    words = set(covered_words)

    kept_sentences: list[HighlightCandidate] = []
    seen_sentence_ids: set[str] = set()
    others: list[HighlightCandidate] = []
    for candidate in candidates:
        if candidate.kind is HighlightKind.SENTENCE:
            sentence_id = candidate.ids[0]
            if sentence_id in seen_sentence_ids or sentence_id in sentences:
                continue
            seen_sentence_ids.add(sentence_id)
            kept_sentences.append(candidate)
        elif candidate.ids:
            others.append(candidate)
    sentences |= seen_sentence_ids

    accepted: set[int] = set()
    for candidate in sorted(others, key=_canonical_key):
        if candidate.sentence_ids & sentences:
            continue
        if candidate.id_set <= words:
            continue
        words |= candidate.id_set
        accepted.add(id(candidate))

    kept = [c for c in others if id(c) in accepted]
    phrases = [c for c in kept if c.kind is HighlightKind.PHRASE]
    singles = [c for c in kept if c.kind is not HighlightKind.PHRASE]
    return [*kept_sentences, *phrases, *singles]


class Deduplicator:
    """Filters successive chunks of one highlight stream.

    Remembers the sentences and words already emitted so that later
    chunks never repeat them. Word and phrase candidates whose sentence a
    later page may still escalate are held back until that sentence is
    settled, so a sentence is never emitted after its own words.
    """

    def __init__(self) -> None:
        self._sentences: set[str] = set()
        self._words: set[str] = set()
        self._held: list[HighlightCandidate] = []

    @property
    def held(self) -> list[HighlightCandidate]:
        return list(self._held)

    def filter(
        self,
        candidates: Iterable[HighlightCandidate],
        is_settled: Callable[[str], bool] | None = None,
    ) -> list[HighlightCandidate]:
        """Filter one chunk and record what it emits.

        Args:
            candidates: Candidates resolved from the current page.
            is_settled: Whether no later page can return a hit of the given
                sentence id. ``None`` treats every sentence as settled.
        """
        ready: list[HighlightCandidate] = []
        held: list[HighlightCandidate] = []
        for candidate in [*self._held, *candidates]:
            if (
                is_settled is None
                or candidate.kind is HighlightKind.SENTENCE
                or all(is_settled(sentence_id) for sentence_id in candidate.sentence_ids)
            ):
                ready.append(candidate)
            else:
                held.append(candidate)

        result = filter_highlights(ready, self._sentences, self._words)
        for candidate in result:
            if candidate.kind is HighlightKind.SENTENCE:
                self._sentences.update(candidate.ids)
            else:
                self._words.update(candidate.ids)
        self._held = [c for c in held if not c.sentence_ids & self._sentences]
        return result
