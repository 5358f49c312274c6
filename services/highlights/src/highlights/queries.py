"""
Elasticsearch query builders for the CorporaViewer highlights service.

Builds the word-index and sentence-index query bodies used to locate
highlight regions of one meeting, plus the follow-up lookups for sentence
coordinates and translation words.
"""

from __future__ import annotations

from typing import Any, Sequence

EXACT_FUZZINESS = "0"

# Sort keys for point-in-time paging; ES appends ``_shard_doc`` as tiebreaker.
WORDS_SORT: list[dict[str, Any]] = [{"word_id": {"order": "asc"}}]
SENTENCES_SORT: list[dict[str, Any]] = [{"sentence_id": {"order": "asc"}}]

MATCHED_TRANSLATION = "matched_translation"


def speaker_clause(speaker: str, fuzziness: str = "2") -> dict[str, Any]:
    """Fuzzy speaker-name match requiring every name term."""
    return {
        "match": {
            "speaker": {
                "query": speaker,
                "fuzziness": fuzziness,
                "operator": "and",
            },
        },
    }


def words_query(
    meeting_id: str,
    words: Sequence[str],
    *,
    speaker: str | None = None,
    lang: str | None = None,
    fuzziness: str = EXACT_FUZZINESS,
    speaker_fuzziness: str = "2",
) -> dict[str, Any]:
    """Query the word index for any of *words* by text or lemma.

    Returns an empty dict when there is nothing to search for.
    """
    if not meeting_id or not words:
        return {}

    filters: list[dict[str, Any]] = [{"term": {"meeting_id": meeting_id}}]
    if lang:
        filters.append({"term": {"lang": lang}})

    must: list[dict[str, Any]] = []
    if speaker:
        must.append(speaker_clause(speaker, speaker_fuzziness))
    must.append(
        {
            "bool": {
                "should": [
                    {
                        "multi_match": {
                            "query": word,
                            "type": "best_fields",
                            "fields": ["text", "lemma"],
                            "fuzziness": fuzziness,
                        },
                    }
                    for word in words
                ],
                "minimum_should_match": 1,
            },
        },
    )
    return {"bool": {"filter": filters, "must": must}}


def _span_phrase(phrase: Sequence[str], fuzziness: str) -> dict[str, Any]:
    # All words must appear consecutively and in order.
    return {
        "span_near": {
            "clauses": [
                {
                    "span_multi": {
                        "match": {
                            "fuzzy": {
                                "translations.text": {
                                    "value": word,
                                    "fuzziness": fuzziness,
                                },
                            },
                        },
                    },
                }
                for word in phrase
            ],
            "slop": 0,
            "in_order": True,
        },
    }


def phrases_query(
    meeting_id: str,
    phrases: Sequence[Sequence[str]],
    *,
    speaker: str | None = None,
    lang: str | None = None,
    fuzziness: str = EXACT_FUZZINESS,
    speaker_fuzziness: str = "2",
) -> dict[str, Any]:
    """Query the sentence index for sentences containing any of *phrases*.

    The nested inner hit ``matched_translation`` reports the translation
    the phrase was found in, original translations first, with the
    matched words wrapped in ``<em>`` tags.
    """
    if not meeting_id or not phrases:
        return {}

    nested_query: dict[str, Any] = {
        "bool": {
            "should": [_span_phrase(phrase, fuzziness) for phrase in phrases],
            "minimum_should_match": 1,
        },
    }
    if lang:
        nested_query["bool"]["filter"] = [{"term": {"translations.lang": lang}}]

    must: list[dict[str, Any]] = []
    if speaker:
        must.append(speaker_clause(speaker, speaker_fuzziness))
    must.append(
        {
            "nested": {
                "path": "translations",
                "query": nested_query,
                "inner_hits": {
                    "name": MATCHED_TRANSLATION,
                    "_source": ["translations.lang", "translations.original", "translations.text"],
                    "highlight": {
                        "number_of_fragments": 0,
                        "fields": {"translations.text": {}},
                    },
                    "sort": [{"translations.original": {"order": "desc"}}],
                },
            },
        },
    )
    return {
        "bool": {
            "filter": [{"term": {"meeting_id": meeting_id}}],
            "must": must,
        },
    }


def speaker_sentences_query(
    meeting_id: str,
    speaker: str,
    speaker_fuzziness: str = "2",
) -> dict[str, Any]:
    """Query the sentence index for every sentence spoken by *speaker*."""
    return {
        "bool": {
            "filter": [{"term": {"meeting_id": meeting_id}}],
            "must": [speaker_clause(speaker, speaker_fuzziness)],
        },
    }


def sentences_by_ids_query(meeting_id: str, sentence_ids: Sequence[str]) -> dict[str, Any]:
    """Look up sentences of one meeting by id."""
    if not meeting_id:
        raise ValueError("meeting_id is required")
    return {
        "bool": {
            "filter": [
                {"term": {"meeting_id": meeting_id}},
                {"terms": {"sentence_id": list(sentence_ids)}},
            ],
        },
    }


def translation_words_query(meeting_id: str, sentence_id: str, lang: str) -> dict[str, Any]:
    """Look up all words of one translation of a sentence."""
    return {
        "bool": {
            "filter": [
                {"term": {"meeting_id": meeting_id}},
                {"term": {"sentence_id": sentence_id}},
                {"term": {"lang": lang}},
            ],
        },
    }
