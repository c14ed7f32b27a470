"""Conversion between tag-native rating encodings and 0-5 stars.

The canonical in-memory rating is an integer 0-5. MP3 files store a
Popularimeter (POPM) byte 0-255; Vorbis comments store free text; some
readers report a float normalized to 0-1.
"""

from typing import Optional, Union

MIN_RATING = 0
MAX_RATING = 5

# Windows Media Player / MediaMonkey star -> POPM byte convention
CANONICAL_TO_POPM: tuple[int, ...] = (0, 1, 64, 128, 196, 255)
POPM_TO_CANONICAL = {byte: stars for stars, byte in enumerate(CANONICAL_TO_POPM)}


def _round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def clamp_rating(value: int) -> int:
    """Clamp an integer rating into the canonical 0-5 range."""
    return max(MIN_RATING, min(MAX_RATING, value))


def popm_to_canonical(byte: int) -> int:
    """Convert a POPM byte (0-255) to 0-5 stars.

    Bytes written by ``canonical_to_popm`` map back exactly; any other
    byte is scaled linearly and rounded.
    """
    byte = max(0, min(255, int(byte)))
    if byte in POPM_TO_CANONICAL:
        return POPM_TO_CANONICAL[byte]
    return clamp_rating(_round_half_up(byte / 255 * MAX_RATING))


def canonical_to_popm(rating: int) -> int:
    """Convert 0-5 stars to the POPM byte other players expect."""
    return CANONICAL_TO_POPM[clamp_rating(_round_half_up(rating))]


def normalized_to_canonical(value: float) -> int:
    """Convert a 0-1 normalized rating to 0-5 stars."""
    return clamp_rating(_round_half_up(value * MAX_RATING))


def normalize_rating(value: Optional[Union[int, float]]) -> int:
    """Interpret a rating of unknown scale as 0-5 stars.

    Values above 5 are POPM bytes, values up to 1 are normalized 0-1
    floats, anything in between is already on the star scale.

    Note:
        A star rating of exactly 1 is indistinguishable from a
        normalized 1.0 and is read as 5 stars.
    """
    if value is None:
        return 0
    if value > MAX_RATING:
        return popm_to_canonical(_round_half_up(value))
    if value <= 1:
        return normalized_to_canonical(max(0.0, float(value)))
    return clamp_rating(_round_half_up(value))


def parse_rating_text(text: str) -> int:
    """Parse a textual rating such as a Vorbis ``RATING`` comment.

    A plain integer 0-5 is taken as stars; any other number goes
    through ``normalize_rating``. Unparsable text is unrated.
    """
    text = text.strip()
    if not text:
        return 0
    if text.isdigit() and int(text) <= MAX_RATING:
        return int(text)
    try:
        return normalize_rating(float(text))
    except ValueError:
        return 0
