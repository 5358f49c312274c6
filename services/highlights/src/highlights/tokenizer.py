"""
Query tokenizer for the CorporaViewer highlights service.

Splits a raw search string into OR-groups of single words and quoted
phrases, then folds the tokens for matching against the transcript
indices.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from cv_common.utils import fold_text

_OR_SEPARATOR = re.compile(r"\bOR\b")
_TOKEN = re.compile(r'"([^"]*)"|(\S+)')


@dataclass(frozen=True)
class QueryTerms:
    """Folded query terms split by granularity.

    Attributes:
        words: Single-word terms.
        phrases: Multi-word terms, each a list of consecutive words.
    """

    words: list[str] = field(default_factory=list)
    phrases: list[list[str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.words and not self.phrases


def tokenize_query(query: str | None) -> list[list[str]]:
    """Split *query* into OR-groups of tokens.

    Quoted substrings become one token, the rest splits on whitespace.
    An unmatched quote is kept as literal text.

    >>> tokenize_query('"a b" c OR d')
    [['a b', 'c'], ['d']]
    """
    if not query:
        return []

    groups: list[list[str]] = []
    for part in _OR_SEPARATOR.split(query):
        tokens: list[str] = []
        for match in _TOKEN.finditer(part):
            quoted, bare = match.groups()
            if quoted is not None:
                token = " ".join(quoted.split())
                if token:
                    tokens.append(token)
            else:
                tokens.append(bare)
        if tokens:
            groups.append(tokens)
    return groups


def split_terms(groups: list[list[str]]) -> QueryTerms:
    """Fold the tokens of *groups* and separate words from phrases."""
    words: list[str] = []
    phrases: list[list[str]] = []
    for group in groups:
        for token in group:
            parts = fold_text(token).split()
            if not parts:
                continue
            if len(parts) == 1:
                if parts[0] not in words:
                    words.append(parts[0])
            elif parts not in phrases:
                phrases.append(parts)
    return QueryTerms(words=words, phrases=phrases)


def parse_query(query: str | None) -> QueryTerms:
    """Tokenize and fold *query* in one step."""
    return split_terms(tokenize_query(query))
