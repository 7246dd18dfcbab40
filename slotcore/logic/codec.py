"""Combination codec: per-reel symbols <-> base-10 combination keys.

The first reel is the most significant digit, so [1, 2, 3] encodes to 123.
Digits are symbol values 1..6, never 0.
"""
from collections.abc import Sequence

from slotcore.errors import InvalidKeyError
from slotcore.logic.models import SYMBOL_MAX
from slotcore.validators import validate_key, validate_reel_count, validate_symbols


def encode(symbols: Sequence[int], reel_count: int) -> int:
    """Encode one symbol per reel into a combination key."""
    validate_symbols(symbols, reel_count)
    key = 0
    for symbol in symbols:
        key = key * 10 + int(symbol)
    return key


def decode(key: int, reel_count: int) -> list[int]:
    """
    Decode a combination key back into its per-reel symbols.

    Raises INVALID_KEY if the key does not have exactly reel_count digits
    or contains a digit outside 1..6.
    """
    validate_reel_count(reel_count)
    validate_key(key)

    symbols = []
    remaining = key
    for _ in range(reel_count):
        digit = remaining % 10
        if digit == 0 or digit > SYMBOL_MAX:
            raise InvalidKeyError(
                f"Combination key {key} has invalid digit {digit} "
                f"for {reel_count} reels"
            )
        symbols.append(digit)
        remaining //= 10
    if remaining:
        raise InvalidKeyError(
            f"Combination key {key} has more than {reel_count} digits"
        )
    symbols.reverse()
    return symbols


def symbol_counts(symbols: Sequence[int]) -> list[int]:
    """Occurrence counts indexed by symbol value; index 0 is unused."""
    counts = [0] * (SYMBOL_MAX + 1)
    for symbol in symbols:
        counts[symbol] += 1
    return counts


def key_symbol_counts(key: int, reel_count: int) -> list[int]:
    return symbol_counts(decode(key, reel_count))
