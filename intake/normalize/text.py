"""Text cleanup and edit-distance similarity for noisy speech transcripts."""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[\W_]+")
_WHITESPACE = re.compile(r"\s+")


def clean_text(value: str | None) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace."""
    lowered = str(value or "").lower()
    spaced = _NON_WORD.sub(" ", lowered)
    return _WHITESPACE.sub(" ", spaced).strip()


def levenshtein(a: str, b: str) -> int:
    """Classic Levenshtein distance over code points."""
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Two-row dynamic programming table
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current
    return previous[-1]


def similarity_score(a: str | None, b: str | None) -> float:
    """Return ``1 - distance / max_len`` over the cleaned strings.

    Two empty strings score 0.0 rather than 1.0 so an empty transcript never
    matches anything.
    """
    aa = clean_text(a)
    bb = clean_text(b)
    max_len = max(len(aa), len(bb))
    if max_len == 0:
        return 0.0
    return 1 - levenshtein(aa, bb) / max_len
