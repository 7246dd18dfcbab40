"""Reel strip generation."""
from slotcore.config import settings
from slotcore.logic.models import SYMBOL_VALUES
from slotcore.logic.rng import RNGBase

# A required target symbol appears at least this many times
REQUIRED_SYMBOL_COPIES = 2


def generate_strip(
    rng: RNGBase,
    length: int | None = None,
    required: int | None = None,
) -> list[int]:
    """
    Random strip with every symbol present at least once.

    When required is given it appears at least REQUIRED_SYMBOL_COPIES times,
    so a target on that symbol always has a landing candidate.
    """
    size = length or settings.reel_positions
    strip = list(SYMBOL_VALUES)
    if required is not None:
        strip.extend([required] * (REQUIRED_SYMBOL_COPIES - 1))
    if len(strip) > size:
        raise ValueError(f"Strip length {size} cannot hold {len(strip)} fixed symbols")
    while len(strip) < size:
        strip.append(rng.choice(SYMBOL_VALUES))
    rng.shuffle(strip)
    return strip
