"""Combination codec tests."""
import itertools

import pytest

from slotcore.errors import (
    ErrorCode,
    InvalidKeyError,
    InvalidReelCountError,
    InvalidSymbolError,
)
from slotcore.logic.codec import decode, encode, key_symbol_counts, symbol_counts


class TestEncode:
    """Symbols -> key."""

    def test_first_reel_is_most_significant(self):
        assert encode([1, 2, 3], 3) == 123
        assert encode([3, 3, 3], 3) == 333
        assert encode([6, 5, 4, 3, 2, 1, 1], 7) == 6543211

    def test_length_must_match_reel_count(self):
        with pytest.raises(InvalidSymbolError):
            encode([1, 2], 3)

    @pytest.mark.parametrize("symbol", [0, 7, -1, True])
    def test_symbol_out_of_range(self, symbol):
        with pytest.raises(InvalidSymbolError) as exc_info:
            encode([1, symbol, 1], 3)
        assert exc_info.value.code is ErrorCode.INVALID_SYMBOL
        assert exc_info.value.recoverable is False

    @pytest.mark.parametrize("reel_count", [2, 8, 0, -3])
    def test_reel_count_out_of_range(self, reel_count):
        with pytest.raises(InvalidReelCountError):
            encode([1] * max(reel_count, 0), reel_count)


class TestDecode:
    """Key -> symbols."""

    def test_decode_known_keys(self):
        assert decode(123, 3) == [1, 2, 3]
        assert decode(666666, 6) == [6, 6, 6, 6, 6, 6]

    @pytest.mark.parametrize("key", [103, 170, 1234, 12, 0, -111])
    def test_invalid_keys(self, key):
        with pytest.raises(InvalidKeyError):
            decode(key, 3)

    def test_non_int_key(self):
        with pytest.raises(InvalidKeyError):
            decode("123", 3)

    def test_invalid_reel_count(self):
        with pytest.raises(InvalidReelCountError):
            decode(123, 2)

    def test_round_trip_three_and_four_reels(self):
        """decode(encode(s)) == s for every 3- and 4-reel combination."""
        for reel_count in (3, 4):
            for symbols in itertools.product(range(1, 7), repeat=reel_count):
                assert decode(encode(symbols, reel_count), reel_count) == list(symbols)

    @pytest.mark.parametrize("reel_count", [5, 6, 7])
    def test_round_trip_larger_reels_sampled(self, reel_count):
        for symbols in [(1,) * reel_count, (6,) * reel_count,
                        tuple((i % 6) + 1 for i in range(reel_count))]:
            assert decode(encode(symbols, reel_count), reel_count) == list(symbols)


class TestSymbolCounts:
    def test_counts_indexed_by_symbol(self):
        counts = symbol_counts([5, 5, 1])
        assert counts[5] == 2
        assert counts[1] == 1
        assert sum(counts) == 3

    def test_key_symbol_counts(self):
        assert key_symbol_counts(4444, 4)[4] == 4
