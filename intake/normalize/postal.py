"""Canadian postal code extraction from speech transcripts.

Speech-to-text renders "V five J one N four" in many ways ("V5 J1 N for",
"V 5 J won and four", ...).  Digit words are folded back into digits, all
separators are dropped, and the first letter-digit-letter-digit-letter-digit
run wins.  If only the forward sortation area (first three characters) can be
recovered the result is returned with medium confidence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

Confidence = Literal["high", "medium", "low"]

# Whole-word replacements, applied to the uppercased transcript
SPEECH_DIGIT_FIXES: list[tuple[str, str]] = [
    (r"\b(ZERO|OH|O)\b", "0"),
    (r"\bONE\b", "1"),
    (r"\b(TWO|TO|TOO)\b", "2"),
    (r"\bTHREE\b", "3"),
    (r"\b(FOUR|FOR)\b", "4"),
    (r"\bFIVE\b", "5"),
    (r"\bSIX\b", "6"),
    (r"\bSEVEN\b", "7"),
    (r"\bEIGHT\b", "8"),
    (r"\bNINE\b", "9"),
]

_FULL_POSTAL = re.compile(r"[A-Z]\d[A-Z]\d[A-Z]\d")
_FSA = re.compile(r"[A-Z]\d[A-Z]")
_NON_ALNUM = re.compile(r"[^A-Z0-9]")


@dataclass(frozen=True)
class PostalResult:
    ok: bool
    raw: str
    postal: str = ""        # "V5J 1N4" on a full match
    fsa: str = ""           # "V5J"
    confidence: Confidence = "low"


def apply_speech_fixes(text: str) -> str:
    """Uppercase and replace spoken digit words with digits."""
    fixed = str(text or "").upper()
    for pattern, digit in SPEECH_DIGIT_FIXES:
        fixed = re.sub(pattern, digit, fixed)
    return fixed


def extract_postal_code(speech: str | None) -> PostalResult:
    raw = str(speech or "").upper()
    cleaned = _NON_ALNUM.sub("", apply_speech_fixes(raw))

    full = _FULL_POSTAL.search(cleaned)
    if full:
        code = full.group(0)
        return PostalResult(
            ok=True, raw=raw, postal=f"{code[:3]} {code[3:]}", fsa=code[:3],
            confidence="high",
        )

    fsa = _FSA.search(cleaned)
    if fsa:
        return PostalResult(ok=True, raw=raw, fsa=fsa.group(0), confidence="medium")

    return PostalResult(ok=False, raw=raw)
