"""Rough price range for callers outside the fixed-price program."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from intake.normalize.vocabulary import CLOSE_IN_CITY_PATTERN

MIN_FLOOR = 50
MIN_SPREAD = 50

CONDITION_KEYWORDS = (
    "accident",
    "engine",
    "transmission",
    "fire",
    "flood",
    "rust",
    "normal wear",
)


@dataclass(frozen=True)
class PriceRange:
    min: int
    max: int

    @property
    def text(self) -> str:
        return f"${self.min} to ${self.max}"


def _parse_year(year: str | int | None) -> int | None:
    try:
        return int(str(year).strip())
    except (TypeError, ValueError):
        return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_price_range(
    drivable: bool,
    year: str | int | None,
    location: str | None,
    distance_km: float | None,
) -> PriceRange:
    """Deterministic [min, max] estimate in dollars.

    Base by drivability, then year, distance and close-in-city adjustments,
    then clamped so that ``min >= 50`` and ``max >= min + 50``.
    """
    low = 300 if drivable else 120
    high = 700 if drivable else 350

    y = _parse_year(year)
    if y is not None:
        if y >= 2015:
            low += 100
            high += 100
        elif 2008 <= y <= 2014:
            low += 50
            high += 50

    if isinstance(distance_km, (int, float)) and not isinstance(distance_km, bool) \
            and not math.isnan(distance_km):
        if distance_km <= 15:
            low += 25
            high += 25
        elif distance_km <= 40:
            pass
        elif distance_km <= 80:
            low -= 50
            high -= 50
        else:
            low -= 100
            high -= 150

    if re.search(CLOSE_IN_CITY_PATTERN, (location or "").lower()):
        low -= 10
        high -= 10

    low = max(low, MIN_FLOOR)
    high = max(high, low + MIN_SPREAD)
    return PriceRange(min=_round_half_up(low), max=_round_half_up(high))


def condition_flags(condition: str | None) -> list[str]:
    """Condition keywords mentioned by the caller, in a stable order."""
    text = (condition or "").lower()
    return [kw for kw in CONDITION_KEYWORDS if kw in text]
