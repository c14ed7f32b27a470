"""Tag codec module.

Handles reading and writing embedded metadata and rating scale conversion.
"""

from .codec import RATING_FORMATS, TagCodec
from .rating import (
    CANONICAL_TO_POPM,
    canonical_to_popm,
    normalize_rating,
    normalized_to_canonical,
    parse_rating_text,
    popm_to_canonical,
)

__all__ = [
    "TagCodec",
    "RATING_FORMATS",
    "CANONICAL_TO_POPM",
    "canonical_to_popm",
    "normalize_rating",
    "normalized_to_canonical",
    "parse_rating_text",
    "popm_to_canonical",
]
