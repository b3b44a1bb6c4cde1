"""Speech-transcript normalizers: text similarity, vocabularies, postal codes."""

from .postal import PostalResult, extract_postal_code
from .reference import (
    CITY_MATCHER,
    MAKE_MATCHER,
    NormalizationResult,
    ReferenceMatcher,
    normalize_city,
    normalize_make,
    normalize_model,
)
from .text import clean_text, levenshtein, similarity_score

__all__ = [
    "CITY_MATCHER",
    "MAKE_MATCHER",
    "NormalizationResult",
    "PostalResult",
    "ReferenceMatcher",
    "clean_text",
    "extract_postal_code",
    "levenshtein",
    "normalize_city",
    "normalize_make",
    "normalize_model",
    "similarity_score",
]
