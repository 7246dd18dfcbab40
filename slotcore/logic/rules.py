"""Payout rules.

Two rule sets live here:

- closed_form_tier: the fast pattern matcher used at serving time. It covers
  the common cases and answers LOSE for everything else.
- exact_tier: the full rule set used by the table builder as the source of
  truth. It runs the closed form first and, only when that yields LOSE,
  applies the fallback families (low-symbol quads, pairs).

Every combination where the two disagree goes into the override table, so
closed form plus overrides always equals exact_tier.

counts is a list indexed by symbol value (see codec.symbol_counts).
"""
from collections.abc import Sequence

from slotcore.logic.models import PayoutTier, Symbol

# Bump whenever either rule set changes; stored tables are stamped with it.
RULES_VERSION = "2"

J = Symbol.JACKPOT
R = Symbol.ROCKET
D = Symbol.DIAMOND
P = Symbol.PUMP
C = Symbol.COPE
L = Symbol.DUMP

# Full-line tier per symbol, in priority order. DUMP has no full-line win.
FULL_LINE: tuple[tuple[Symbol, PayoutTier], ...] = (
    (J, PayoutTier.JACKPOT),
    (R, PayoutTier.ULTRA_WIN),
    (D, PayoutTier.MEGA_WIN),
    (P, PayoutTier.BIG_WIN),
    (C, PayoutTier.MEDIUM_WIN),
)

TRIPLE: tuple[tuple[Symbol, PayoutTier], ...] = (
    (J, PayoutTier.MEGA_WIN),
    (R, PayoutTier.BIG_WIN),
    (D, PayoutTier.BIG_WIN),
    (P, PayoutTier.MEDIUM_WIN),
    (C, PayoutTier.MEDIUM_WIN),
)

QUAD: tuple[tuple[Symbol, PayoutTier], ...] = (
    (J, PayoutTier.MEGA_WIN),
    (R, PayoutTier.MEGA_WIN),
    (D, PayoutTier.MEGA_WIN),
    (P, PayoutTier.BIG_WIN),
    (C, PayoutTier.BIG_WIN),
)

# Tier family for the pair fallback, keyed by the dominant symbol.
PAIR_FAMILY: dict[Symbol, PayoutTier] = {
    J: PayoutTier.SMALL_WIN,
    R: PayoutTier.SMALL_WIN,
    D: PayoutTier.SMALL_WIN,
    P: PayoutTier.SMALL_WIN,
    C: PayoutTier.LOSE,
    L: PayoutTier.LOSE,
}

# A dominant PUMP pair only pays up to this many reels
PUMP_PAIR_MAX_REELS = 4

LOW_QUAD_TIER = PayoutTier.MEDIUM_WIN


def closed_form_tier(counts: Sequence[int], reel_count: int) -> PayoutTier:
    """Closed-form pattern match; first rule that fires wins."""
    n = reel_count

    for symbol, tier in FULL_LINE:
        if counts[symbol] == n:
            return tier

    # Almost-full lines of the two rarest symbols
    if counts[J] == n - 1 or counts[R] == n - 1:
        return PayoutTier.SPECIAL_COMBO
    if n == 3 and counts[R] == 2:
        return PayoutTier.SPECIAL_COMBO
    if n >= 4 and counts[R] == 3:
        return PayoutTier.SPECIAL_COMBO

    # Mixed diamond/rocket
    if counts[D] >= 2 and counts[R] >= 1:
        return PayoutTier.SPECIAL_COMBO
    if counts[R] >= 2 and counts[D] >= 1:
        return PayoutTier.SPECIAL_COMBO

    for symbol, tier in TRIPLE:
        if counts[symbol] >= 3:
            return tier

    # Shadowed by TRIPLE; listed to match the paytable.
    if n >= 4:
        for symbol, tier in QUAD:
            if counts[symbol] >= 4:
                return tier

    if counts[J] >= 2 or counts[R] >= 2 or counts[D] >= 2:
        return PayoutTier.SMALL_WIN
    if n <= 5 and counts[P] >= 2:
        return PayoutTier.SMALL_WIN
    if n <= 4 and counts[C] >= 2:
        return PayoutTier.SMALL_WIN

    return PayoutTier.LOSE


def dominant_symbol(counts: Sequence[int]) -> tuple[Symbol, int]:
    """Most frequent symbol and its count; ties go to the lowest symbol."""
    best = Symbol.DUMP
    best_count = counts[best]
    for symbol in Symbol:
        if counts[symbol] > best_count:
            best, best_count = symbol, counts[symbol]
    return best, best_count


def fallback_tier(counts: Sequence[int], reel_count: int) -> PayoutTier:
    """Fallback families applied when the closed form finds nothing."""
    if reel_count >= 4 and counts[L] >= 4:
        return LOW_QUAD_TIER

    symbol, count = dominant_symbol(counts)
    if count < 2:
        return PayoutTier.LOSE
    if symbol is P and reel_count > PUMP_PAIR_MAX_REELS:
        return PayoutTier.LOSE
    return PAIR_FAMILY[symbol]


def exact_tier(counts: Sequence[int], reel_count: int) -> PayoutTier:
    """Full rule set: source of truth for override generation."""
    tier = closed_form_tier(counts, reel_count)
    if tier is not PayoutTier.LOSE:
        return tier
    return fallback_tier(counts, reel_count)
