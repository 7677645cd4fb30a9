"""Text normalization for Arabic matching and English gloss tokenizing."""

from __future__ import annotations

import re

# Tashkeel U+064B..U+065F plus superscript alef U+0670.
_DIACRITICS = re.compile("[\u064B-\u065F\u0670]")

_LETTER_FOLDS = str.maketrans({
    "\u0622": "\u0627",  # alef with madda
    "\u0623": "\u0627",  # alef with hamza above
    "\u0625": "\u0627",  # alef with hamza below
    "\u0649": "\u064A",  # alef maqsura -> yeh
})


def normalize_arabic(text: str) -> str:
    """Strip diacritics, fold alef and alef-maqsura variants, trim."""
    text = _DIACRITICS.sub("", text)
    return text.translate(_LETTER_FOLDS).strip()


def normalize_root(text: str) -> str:
    """Normalize a root; internal whitespace runs collapse to one space."""
    return " ".join(normalize_arabic(text).split())


def arabic_matches(a: str, b: str) -> bool:
    return normalize_arabic(a) == normalize_arabic(b)


def arabic_contains(text: str, query: str) -> bool:
    return normalize_arabic(query) in normalize_arabic(text)


def gloss_tokens(text: str) -> list[str]:
    """Tokenize an English gloss for the inverted index.

    Lowercases, turns every non-alphanumeric character into a separator
    and splits on whitespace. ``"to write (a letter)"`` gives
    ``["to", "write", "a", "letter"]``.
    """
    cleaned = "".join(ch if ch.isalnum() else " " for ch in text.lower())
    return cleaned.split()
