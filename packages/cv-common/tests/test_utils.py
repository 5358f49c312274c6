"""
Tests for cv-common text utilities.
"""

from __future__ import annotations

import pytest

from cv_common.utils import fold_text, is_punctuation


class TestFoldText:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Fox", "fox"),
            ("Čebelarstvo", "cebelarstvo"),
            ("Straße", "strasse"),
            ("Đorđe", "dorde"),
            ("Łódź", "lodz"),
            ("Ærø", "aero"),
            ("élève", "eleve"),
        ],
    )
    def test_folding(self, text: str, expected: str) -> None:
        assert fold_text(text) == expected

    def test_idempotent(self) -> None:
        once = fold_text("Šola ĆEVAPČIĆI")
        assert fold_text(once) == once

    def test_whitespace_preserved(self) -> None:
        assert fold_text("Velika  Šola") == "velika  sola"


class TestIsPunctuation:
    @pytest.mark.parametrize("token", [",", ".", "—", "«»", "...", "?!"])
    def test_punctuation(self, token: str) -> None:
        assert is_punctuation(token) is True

    @pytest.mark.parametrize("token", ["fox", "fox,", "2024", "", " "])
    def test_not_punctuation(self, token: str) -> None:
        assert is_punctuation(token) is False
