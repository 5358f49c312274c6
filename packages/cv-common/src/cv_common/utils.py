"""
Shared utility functions for CorporaViewer.

Text normalisation helpers used to compare query terms against transcript
words independently of case and diacritics. Display text is never altered.
"""

from __future__ import annotations

import re
import unicodedata

# Letters that NFKD does not decompose into a base letter + combining mark.
_SPECIAL_FOLDS = str.maketrans(
    {
        "đ": "d",
        "ð": "d",
        "ħ": "h",
        "ı": "i",
        "ł": "l",
        "ø": "o",
        "œ": "oe",
        "æ": "ae",
        "þ": "th",
    },
)

_PUNCTUATION_ONLY = re.compile(r"^[^\w\s]+$", re.UNICODE)


def fold_text(text: str) -> str:
    """Case-fold *text* and fold diacritics to their ASCII base letters.

    >>> fold_text("Čebelarstvo Straße")
    'cebelarstvo strasse'
    """
    folded = unicodedata.normalize("NFKD", text.casefold())
    folded = "".join(c for c in folded if not unicodedata.combining(c))
    return folded.translate(_SPECIAL_FOLDS)


def is_punctuation(token: str) -> bool:
    """Return ``True`` if *token* consists solely of punctuation/symbols."""
    return bool(_PUNCTUATION_ONLY.match(token.strip()))
