"""Map a spoken phrase onto a fixed vocabulary (cities, makes).

The same matcher serves every vocabulary: an exact alias lookup on the cleaned
phrase first, then the best edit-distance score against each entry.  Below the
threshold the caller's own words are passed through unchanged so nothing is
silently rewritten into the wrong city or make.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel

from intake.normalize.text import clean_text, similarity_score
from intake.normalize.vocabulary import (
    CITY_ALIASES,
    KNOWN_CITIES,
    KNOWN_MAKES,
    MAKE_ALIASES,
)

log = logging.getLogger("intake.normalize.reference")

FUZZY_THRESHOLD = 0.62


class NormalizationResult(BaseModel):
    """Best-guess canonical value for one spoken phrase."""

    raw: str
    normalized: str
    score: float
    method: Literal["alias", "fuzzy"]


class ReferenceMatcher:
    """Fuzzy matcher over one vocabulary plus its alias table."""

    def __init__(
        self,
        vocabulary: list[str],
        aliases: dict[str, str] | None = None,
        threshold: float = FUZZY_THRESHOLD,
    ) -> None:
        self._vocabulary = list(vocabulary)
        self._aliases = dict(aliases or {})
        self._threshold = threshold

    @property
    def vocabulary(self) -> list[str]:
        return list(self._vocabulary)

    def match(self, spoken: str | None) -> NormalizationResult:
        raw = str(spoken or "").strip()
        cleaned = clean_text(raw)

        if cleaned and cleaned in self._aliases:
            return NormalizationResult(
                raw=raw, normalized=self._aliases[cleaned], score=1.0, method="alias",
            )

        best = ""
        best_score = 0.0
        for entry in self._vocabulary:
            score = similarity_score(cleaned, entry)
            if score > best_score:
                best_score = score
                best = entry

        normalized = best if best_score >= self._threshold else (raw or best)
        log.debug("Matched %r -> %r (score=%.3f)", raw, normalized, best_score)
        return NormalizationResult(
            raw=raw, normalized=normalized, score=round(best_score, 3), method="fuzzy",
        )


CITY_MATCHER = ReferenceMatcher(KNOWN_CITIES, CITY_ALIASES)
MAKE_MATCHER = ReferenceMatcher(KNOWN_MAKES, MAKE_ALIASES)


def normalize_city(spoken: str | None) -> NormalizationResult:
    return CITY_MATCHER.match(spoken)


def normalize_make(spoken: str | None) -> NormalizationResult:
    return MAKE_MATCHER.match(spoken)


def normalize_model(spoken: str | None) -> tuple[str, str]:
    """Return ``(raw, normalized)`` for a model name.

    There is no model vocabulary; the normalized form is just the cleaned
    phrase in title case ("f one fifty" -> "F One Fifty").
    """
    raw = str(spoken or "").strip()
    return raw, clean_text(raw).title()
