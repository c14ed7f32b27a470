"""Tests for rating scale conversion."""

import pytest

from msync.core.tags.rating import (
    CANONICAL_TO_POPM,
    canonical_to_popm,
    clamp_rating,
    normalize_rating,
    normalized_to_canonical,
    parse_rating_text,
    popm_to_canonical,
)


class TestPopmConversion:
    """Test POPM byte <-> star conversion."""

    def test_lookup_table(self):
        """Test the fixed star to byte table."""
        assert CANONICAL_TO_POPM == (0, 1, 64, 128, 196, 255)
        assert [canonical_to_popm(r) for r in range(6)] == [0, 1, 64, 128, 196, 255]

    def test_boundaries_and_midpoint(self):
        """Test conversion of 0, 255 and 128."""
        assert popm_to_canonical(0) == 0
        assert popm_to_canonical(255) == 5
        assert popm_to_canonical(128) == 3

    @pytest.mark.parametrize("rating", range(6))
    def test_round_trip_is_stable(self, rating):
        """Test byte -> stars -> byte gives the same byte."""
        byte = canonical_to_popm(rating)
        assert canonical_to_popm(popm_to_canonical(byte)) == byte

    def test_table_bytes_map_back_exactly(self):
        """Test bytes 1 and 64 are not flattened by the linear formula."""
        assert popm_to_canonical(1) == 1
        assert popm_to_canonical(64) == 2
        assert popm_to_canonical(196) == 4

    def test_other_bytes_scale_linearly(self):
        """Test bytes outside the table use round(byte / 255 * 5)."""
        assert popm_to_canonical(51) == 1
        assert popm_to_canonical(102) == 2
        assert popm_to_canonical(230) == 5
        assert popm_to_canonical(20) == 0

    def test_out_of_range_input_is_clamped(self):
        """Test bytes and ratings outside their ranges are clamped."""
        assert popm_to_canonical(300) == 5
        assert popm_to_canonical(-4) == 0
        assert canonical_to_popm(9) == 255
        assert canonical_to_popm(-1) == 0


class TestNormalizeRating:
    """Test the three-way scale heuristic."""

    def test_popm_scale_above_five(self):
        """Test values above 5 are treated as POPM bytes."""
        assert normalize_rating(255) == 5
        assert normalize_rating(128) == 3
        assert normalize_rating(6) == 0

    def test_normalized_scale_up_to_one(self):
        """Test values up to 1 are treated as 0-1 floats."""
        assert normalize_rating(0.0) == 0
        assert normalize_rating(0.6) == 3
        assert normalize_rating(1.0) == 5
        assert normalize_rating(1) == 5

    def test_star_scale_in_between(self):
        """Test values between 1 and 5 pass through rounded."""
        assert normalize_rating(2) == 2
        assert normalize_rating(3.4) == 3
        assert normalize_rating(4.5) == 5
        assert normalize_rating(5) == 5

    def test_none_is_unrated(self):
        """Test a missing value means unrated."""
        assert normalize_rating(None) == 0

    def test_half_up_rounding(self):
        """Test halves round up rather than to even."""
        assert normalized_to_canonical(0.5) == 3
        assert normalized_to_canonical(0.1) == 1

    def test_clamp(self):
        """Test clamping into 0-5."""
        assert clamp_rating(-2) == 0
        assert clamp_rating(3) == 3
        assert clamp_rating(7) == 5


class TestParseRatingText:
    """Test parsing of textual ratings."""

    @pytest.mark.parametrize("text,expected", [("0", 0), ("1", 1), ("3", 3), ("5", 5)])
    def test_plain_star_values(self, text, expected):
        """Test integer text 0-5 is read as stars."""
        assert parse_rating_text(text) == expected

    def test_other_scales(self):
        """Test other numbers go through the heuristic."""
        assert parse_rating_text("255") == 5
        assert parse_rating_text("0.8") == 4
        assert parse_rating_text(" 60 ") == 1

    def test_unparsable_text(self):
        """Test empty or garbage text is unrated."""
        assert parse_rating_text("") == 0
        assert parse_rating_text("five") == 0
