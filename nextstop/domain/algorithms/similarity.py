from __future__ import annotations

import unicodedata


def normalize_text(value: str) -> str:
    """Lower-case and strip diacritics ("Atocha Renfe" == "atocha renfe", "Ópera" == "opera")."""

    decomposed = unicodedata.normalize("NFD", value.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _bigrams(value: str) -> list[str]:
    return [value[i : i + 2] for i in range(len(value) - 1)]


def dice_coefficient(a: str, b: str) -> float:
    """Bigram Dice similarity of two strings after normalization, in [0, 1].

    Bigrams are compared as lists (repeated bigrams in `a` each count when
    present anywhere in `b`).
    """

    s1 = normalize_text(a)
    s2 = normalize_text(b)

    if s1 == s2:
        return 1.0
    if len(s1) < 2 or len(s2) < 2:
        return 0.0

    bigrams1 = _bigrams(s1)
    bigrams2 = _bigrams(s2)
    lookup = set(bigrams2)
    intersection = sum(1 for bg in bigrams1 if bg in lookup)
    return (2.0 * intersection) / (len(bigrams1) + len(bigrams2))
