"""
Noise Salvage Tests
===================
"""

from functools import reduce
from operator import xor

import pytest

from wiegand_bridge.decode.salvage import is_salvage_candidate, salvage_w26

from conftest import bits


class TestEligibility:
    """Tests for the salvage band."""

    @pytest.mark.parametrize("length", [24, 25, 27, 28, 32])
    def test_inside_band(self, length):
        assert is_salvage_candidate(length)

    @pytest.mark.parametrize("length", [8, 23, 26, 33, 34, 40])
    def test_outside_band(self, length):
        assert not is_salvage_candidate(length)


class TestSalvage:
    """Tests for single-window recovery."""

    def test_trailing_noise_bit(self, card_26):
        """A trailing bit chosen so the shifted window breaks odd parity."""
        extra = reduce(xor, card_26[14:26], 0)
        result = salvage_w26(card_26 + (extra,))
        assert result.recovered
        assert result.offset == 0
        assert result.matches == 1
        assert result.bits == card_26

    def test_leading_noise_bit(self, card_26):
        """A leading bit chosen so the first window breaks even parity."""
        extra = 1 - reduce(xor, card_26[0:12], 0)
        result = salvage_w26((extra,) + card_26)
        assert result.recovered
        assert result.offset == 1
        assert result.bits == card_26

    def test_two_matching_windows_not_resolved(self):
        capture = bits("0" * 25 + "10")
        result = salvage_w26(capture)
        assert not result.recovered
        assert result.matches == 2
        assert result.bits is None

    def test_too_short_for_any_window(self, card_26):
        result = salvage_w26(card_26[:25])
        assert not result.recovered
        assert result.matches == 0

    def test_exact_length_untouched(self, card_26):
        assert not salvage_w26(card_26).recovered

    def test_custom_band(self, card_26):
        extra = reduce(xor, card_26[14:26], 0)
        assert not salvage_w26(card_26 + (extra,), min_bits=28, max_bits=32).recovered
