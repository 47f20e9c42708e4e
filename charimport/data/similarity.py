"""Edit-distance string similarity used as the last-resort matching stage."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from .catalog import CatalogEntry

_WHITESPACE_RE = re.compile(r"\s+")

# Typographic quotes seen in exported sheets and catalog names
_QUOTE_TRANSLATION = str.maketrans({
    "‘": "'",
    "’": "'",
    "‛": "'",
    "`": "'",
    "´": "'",
    "“": '"',
    "”": '"',
    "″": '"',
})


def normalize_name(value: str) -> str:
    """Collapse whitespace, unify quote characters and lowercase."""
    text = (value or "").translate(_QUOTE_TRANSLATION)
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


def levenshtein(a: str, b: str) -> int:
    """Single-character insert/delete/substitute edit distance."""
    return Levenshtein.distance(a, b)


def similarity(a: str, b: str) -> float:
    """Return ``(max_len - distance) / max_len`` over the normalized strings.

    Two empty strings score 0 so that blank references never match.
    """
    left = normalize_name(a)
    right = normalize_name(b)
    max_len = max(len(left), len(right))
    if max_len == 0:
        return 0.0
    return (max_len - levenshtein(left, right)) / max_len


def best_fuzzy_match(
    name: str,
    index: Iterable[CatalogEntry],
    threshold: float,
) -> tuple[CatalogEntry | None, float]:
    """Find the highest-scoring entry above ``threshold``.

    Ties keep the first maximum encountered in index order.
    """
    best: CatalogEntry | None = None
    best_score = 0.0
    for entry in index:
        score = similarity(name, entry.name)
        if score > best_score:
            best = entry
            best_score = score

    if best is None or best_score <= threshold:
        return None, best_score
    return best, best_score
