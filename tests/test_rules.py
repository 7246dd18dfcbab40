"""Closed-form and exact payout rule tests."""
import itertools

import pytest

from slotcore.logic.codec import symbol_counts
from slotcore.logic.models import PayoutTier, Symbol
from slotcore.logic.rules import closed_form_tier, dominant_symbol, exact_tier


def closed(symbols):
    return closed_form_tier(symbol_counts(symbols), len(symbols))


def exact(symbols):
    return exact_tier(symbol_counts(symbols), len(symbols))


class TestClosedFormKnownValues:
    """Three-reel paytable anchors."""

    @pytest.mark.parametrize("symbols,tier", [
        ([6, 6, 6], PayoutTier.JACKPOT),
        ([5, 5, 5], PayoutTier.ULTRA_WIN),
        ([4, 4, 4], PayoutTier.MEGA_WIN),
        ([3, 3, 3], PayoutTier.BIG_WIN),
        ([2, 2, 2], PayoutTier.MEDIUM_WIN),
        ([5, 5, 1], PayoutTier.SPECIAL_COMBO),
        ([1, 2, 3], PayoutTier.LOSE),
        ([1, 1, 1], PayoutTier.LOSE),
    ])
    def test_three_reel_values(self, symbols, tier):
        assert closed(symbols) is tier

    def test_almost_jackpot_is_special_combo(self):
        assert closed([6, 6, 6, 2]) is PayoutTier.SPECIAL_COMBO

    def test_mixed_diamond_rocket(self):
        assert closed([4, 4, 5, 1, 1]) is PayoutTier.SPECIAL_COMBO
        assert closed([5, 5, 4, 1, 1, 2]) is PayoutTier.SPECIAL_COMBO

    def test_triples(self):
        assert closed([6, 6, 6, 1, 2]) is PayoutTier.MEGA_WIN
        assert closed([4, 4, 4, 1, 2]) is PayoutTier.BIG_WIN
        assert closed([3, 3, 3, 1, 2]) is PayoutTier.MEDIUM_WIN

    def test_pair_rules_depend_on_reel_count(self):
        assert closed([3, 3, 1, 2, 1]) is PayoutTier.SMALL_WIN
        assert closed([3, 3, 1, 2, 1, 2]) is PayoutTier.LOSE
        assert closed([2, 2, 1, 3]) is PayoutTier.SMALL_WIN
        assert closed([2, 2, 1, 3, 4]) is PayoutTier.LOSE


class TestExactRules:
    """Fallback families on top of the closed form."""

    def test_exact_agrees_when_closed_form_fires(self):
        assert exact([6, 6, 6]) is PayoutTier.JACKPOT
        assert exact([5, 5, 1]) is PayoutTier.SPECIAL_COMBO

    def test_low_quad(self):
        assert closed([1, 1, 1, 1, 2]) is PayoutTier.LOSE
        assert exact([1, 1, 1, 1, 2]) is PayoutTier.MEDIUM_WIN

    def test_low_quad_needs_four_reels(self):
        assert exact([1, 1, 1]) is PayoutTier.LOSE

    def test_cope_pair_loses(self):
        assert exact([2, 2, 1, 3, 4]) is PayoutTier.LOSE
        assert exact([1, 2, 2, 3, 4]) is PayoutTier.LOSE
        assert exact([1, 2, 2, 3, 3, 4]) is PayoutTier.LOSE

    def test_pump_pair_pays_up_to_four_reels(self):
        assert exact([3, 3, 1, 2]) is PayoutTier.SMALL_WIN
        assert exact([3, 3, 1, 2, 4]) is PayoutTier.SMALL_WIN
        assert exact([3, 3, 1, 2, 4, 6]) is PayoutTier.LOSE
        assert exact([3, 3, 1, 2, 4, 6, 1]) is PayoutTier.LOSE

    def test_valuable_pairs_pay_at_any_reel_count(self):
        assert exact([4, 4, 1, 2, 3, 1, 2]) is PayoutTier.SMALL_WIN
        assert exact([5, 5, 1, 2, 3, 1, 2]) is PayoutTier.SMALL_WIN
        assert exact([6, 6, 1, 2, 3, 1, 2]) is PayoutTier.SMALL_WIN

    @pytest.mark.parametrize("reel_count", [5, 6])
    def test_pair_wins_come_only_from_valuable_dominant_symbols(self, reel_count):
        """A fallback SMALL_WIN needs a DIAMOND+ dominant pair, or PUMP on <= 4 reels."""
        for symbols in itertools.product(range(1, 7), repeat=reel_count):
            counts = symbol_counts(symbols)
            if closed_form_tier(counts, reel_count) is not PayoutTier.LOSE:
                continue
            tier = exact_tier(counts, reel_count)
            if tier is PayoutTier.SMALL_WIN:
                symbol, count = dominant_symbol(counts)
                assert count >= 2, symbols
                assert symbol >= Symbol.DIAMOND or (
                    symbol is Symbol.PUMP and reel_count <= 4
                ), symbols
            else:
                assert tier in (PayoutTier.LOSE, PayoutTier.MEDIUM_WIN), symbols

    def test_dump_pair_loses(self):
        assert exact([1, 1, 2, 3, 4]) is PayoutTier.LOSE

    def test_tie_goes_to_lowest_symbol(self):
        # DUMP and COPE both twice: DUMP dominates, so no win
        assert dominant_symbol(symbol_counts([1, 1, 2, 2, 3]))[0] is Symbol.DUMP
        assert exact([1, 1, 2, 2, 3]) is PayoutTier.LOSE

    def test_no_pairs_lose(self):
        assert exact([1, 2, 3, 4, 6]) is PayoutTier.LOSE
