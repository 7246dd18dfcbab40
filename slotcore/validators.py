"""Input validators for codec, classifier and reel machine calls."""
from collections.abc import Sequence

from slotcore.errors import (
    InvalidKeyError,
    InvalidReelCountError,
    InvalidReelIndexError,
    InvalidSymbolError,
)
from slotcore.logic.models import SYMBOL_MAX, SYMBOL_MIN

MIN_REELS = 3
MAX_REELS = 7


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_reel_count(reel_count: int) -> None:
    """
    Validate reel count.

    Raises INVALID_REEL_COUNT if reel_count is not an int in [3, 7].
    """
    if not _is_int(reel_count) or not MIN_REELS <= reel_count <= MAX_REELS:
        raise InvalidReelCountError(
            f"Reel count {reel_count!r} not allowed. "
            f"Allowed: {MIN_REELS}..{MAX_REELS}"
        )


def validate_symbol(symbol: int) -> None:
    """Raises INVALID_SYMBOL if symbol is not an int in [1, 6]."""
    if not _is_int(symbol) or not SYMBOL_MIN <= symbol <= SYMBOL_MAX:
        raise InvalidSymbolError(
            f"Symbol {symbol!r} not allowed. Allowed: {SYMBOL_MIN}..{SYMBOL_MAX}"
        )


def validate_symbols(symbols: Sequence[int], reel_count: int) -> None:
    """Validate a full per-reel symbol sequence."""
    validate_reel_count(reel_count)
    if len(symbols) != reel_count:
        raise InvalidSymbolError(
            f"Expected {reel_count} symbols, got {len(symbols)}"
        )
    for symbol in symbols:
        validate_symbol(symbol)


def validate_key(key: int) -> None:
    """Raises INVALID_KEY for anything that is not a non-negative int."""
    if not _is_int(key) or key < 0:
        raise InvalidKeyError(f"Combination key {key!r} must be a non-negative int")


def validate_reel_index(index: int, reel_count: int) -> None:
    if not _is_int(index) or not 0 <= index < reel_count:
        raise InvalidReelIndexError(
            f"Reel index {index!r} out of range for {reel_count} reels"
        )
