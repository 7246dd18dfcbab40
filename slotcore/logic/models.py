"""Symbols, payout tiers and state enums shared across the engine."""
from enum import Enum

from pydantic import BaseModel

from slotcore.config import settings


class Symbol(int, Enum):
    """Reel symbols; the value is the digit used in combination keys."""
    DUMP = 1
    COPE = 2
    PUMP = 3
    DIAMOND = 4
    ROCKET = 5
    JACKPOT = 6


SYMBOL_VALUES: tuple[int, ...] = tuple(s.value for s in Symbol)
SYMBOL_MIN = min(SYMBOL_VALUES)
SYMBOL_MAX = max(SYMBOL_VALUES)


class SymbolInfo(BaseModel):
    """Display metadata for a symbol."""

    name: str
    emoji: str
    weight: float  # relative rarity, percent
    color: str


SYMBOL_INFO: dict[Symbol, SymbolInfo] = {
    Symbol.DUMP: SymbolInfo(name="DUMP", emoji="\U0001F4C9", weight=40.0, color="#ff4757"),
    Symbol.COPE: SymbolInfo(name="COPE", emoji="\U0001F921", weight=25.0, color="#ffa502"),
    Symbol.PUMP: SymbolInfo(name="PUMP", emoji="\U0001F4C8", weight=20.0, color="#2ed573"),
    Symbol.DIAMOND: SymbolInfo(name="DIAMOND", emoji="\U0001F48E", weight=10.0, color="#3742fa"),
    Symbol.ROCKET: SymbolInfo(name="ROCKET", emoji="\U0001F680", weight=4.5, color="#ff6348"),
    Symbol.JACKPOT: SymbolInfo(name="JACKPOT", emoji="\U0001F435", weight=0.5, color="#ffd700"),
}


class PayoutTier(int, Enum):
    """Payout classification. Values fit in 3 bits."""
    LOSE = 0
    SMALL_WIN = 1
    MEDIUM_WIN = 2
    BIG_WIN = 3
    MEGA_WIN = 4
    ULTRA_WIN = 5
    SPECIAL_COMBO = 6
    JACKPOT = 7


# Display credits for the reward countdown. Real multipliers and the jackpot
# pool share belong to the business layer.
TIER_CREDITS: dict[PayoutTier, int] = {
    PayoutTier.LOSE: 0,
    PayoutTier.SMALL_WIN: 2,
    PayoutTier.MEDIUM_WIN: 5,
    PayoutTier.BIG_WIN: 10,
    PayoutTier.MEGA_WIN: 50,
    PayoutTier.ULTRA_WIN: 100,
    PayoutTier.SPECIAL_COMBO: 20,
    PayoutTier.JACKPOT: settings.jackpot_display_credits,
}


class MachineState(str, Enum):
    """Top-level reel machine state."""
    REST = "REST"
    SPINUP = "SPINUP"
    SPINDOWN = "SPINDOWN"
    REWARD = "REWARD"


class DriveMode(str, Enum):
    """How reels get their stopping positions."""
    DEMO = "DEMO"  # random stops chosen internally
    CONTROLLED = "CONTROLLED"  # stops supplied by set_reel_target


class LeverState(str, Enum):
    """Lever gesture state."""
    IDLE = "IDLE"
    DRAGGING = "DRAGGING"
    TRIGGERING = "TRIGGERING"
    RETURNING = "RETURNING"
