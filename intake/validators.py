"""Per-field input parsers.

Every parser takes the raw caller input and returns the value to commit, or
raises ``ValidationError`` carrying a short code.  The code selects which
corrective reprompt the workflow speaks ("format", "range", "empty", ...).
"""

from __future__ import annotations

import re

from intake.pricing.offers import parse_desired_price

YEAR_MIN = 1900
MILEAGE_MAX = 800_000

_YEAR = re.compile(r"[0-9]{4}")
_MILEAGE = re.compile(r"[0-9]{1,6}")
_ASKING_PRICE = re.compile(r"[0-9]{2,7}")
_NON_DIGIT = re.compile(r"[^0-9]")

_YES = re.compile(r"\b(yes|yeah|yep|correct|right|that'?s right|sure|ok|okay)\b")
_NO = re.compile(r"\b(no|nope|nah|incorrect|wrong|not correct|not right)\b")


class ValidationError(ValueError):
    """Caller input does not fit the field; re-prompt without committing."""

    def __init__(self, code: str = "invalid", detail: str = "") -> None:
        super().__init__(detail or code)
        self.code = code


def parse_drives(digits: str) -> bool:
    if digits == "1":
        return True
    if digits == "2":
        return False
    raise ValidationError("invalid")


def parse_year(digits: str, current_year: int) -> str:
    if not _YEAR.fullmatch(digits or ""):
        raise ValidationError("format", f"not a 4 digit year: {digits!r}")
    if not YEAR_MIN <= int(digits) <= current_year:
        raise ValidationError("range", f"year {digits} outside {YEAR_MIN}-{current_year}")
    return digits


def parse_phrase(speech: str) -> str:
    phrase = (speech or "").strip()
    if not phrase:
        raise ValidationError("empty")
    return phrase


def parse_mileage(digits: str) -> int:
    if not _MILEAGE.fullmatch(digits or ""):
        raise ValidationError("format", f"not 1-6 digits: {digits!r}")
    km = int(digits)
    if km > MILEAGE_MAX:
        raise ValidationError("range", f"mileage {km} above {MILEAGE_MAX}")
    return km


def parse_asking_price(digits: str) -> int:
    if not _ASKING_PRICE.fullmatch(digits or ""):
        raise ValidationError("format", f"not 2-7 digits: {digits!r}")
    return int(digits)


def parse_choice(digits: str, speech: str = "") -> bool:
    """1 / yes-phrase -> True, 2 / no-phrase -> False."""
    if digits == "1":
        return True
    if digits == "2":
        return False
    text = (speech or "").lower()
    # "no" is checked first so "not correct" never counts as a yes
    if _NO.search(text):
        return False
    if _YES.search(text):
        return True
    raise ValidationError("invalid")


def parse_callback_number(digits: str) -> str:
    number = _NON_DIGIT.sub("", digits or "")
    if not 10 <= len(number) <= 15:
        raise ValidationError("invalid", f"callback number has {len(number)} digits")
    return number


def parse_desired(digits: str, speech: str = "") -> int:
    """Desired price from keypad digits, falling back to speech."""
    raw = digits.strip() if digits and digits.strip() else (speech or "").strip()
    value = parse_desired_price(raw)
    if value is None:
        raise ValidationError("invalid", f"no price in {raw!r}")
    return value
