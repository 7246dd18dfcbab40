"""Status-line quotes for the demo display."""
import math
from collections import Counter
from collections.abc import Sequence
from enum import Enum

from slotcore.logic.models import Symbol
from slotcore.logic.rng import ProductionRNG, RNGBase


class ResultKind(str, Enum):
    JACKPOT = "jackpot"
    NEAR_MISS = "near_miss"
    MATCHING = "matching"
    BUST = "bust"


class MachinePhase(str, Enum):
    IDLE = "idle"
    SPINNING = "spinning"
    EVALUATING = "evaluating"
    WINNING = "winning"
    LOSING = "losing"


PHASE_QUOTES: dict[MachinePhase, list[str]] = {
    MachinePhase.IDLE: [
        "Ready for glory?",
        "Fortune favors the brave!",
        "Feeling lucky, punk?",
        "To the moon or bust!",
        "HODL and spin!",
    ],
    MachinePhase.SPINNING: [
        "Rolling the dice of fate!",
        "Destiny in motion...",
        "Fortune.exe running...",
        "Launching moon mission!",
    ],
    MachinePhase.EVALUATING: [
        "Calculating karma...",
        "Checking luck balance...",
        "Consulting crystal ball...",
    ],
    MachinePhase.WINNING: [
        "Winner winner chicken dinner!",
        "Fortune smiles upon you!",
        "Diamond hands paid off!",
    ],
    MachinePhase.LOSING: [
        "Almost had it!",
        "Better luck next time!",
        "Buy the dip and spin!",
    ],
}

SYMBOL_QUOTES: dict[Symbol, list[str]] = {
    Symbol.DUMP: ["Red alert! DUMP incoming!", "Bear market activated!"],
    Symbol.COPE: ["Clown world activated!", "Copium levels critical!"],
    Symbol.PUMP: ["Green candles rising!", "Number go up!"],
    Symbol.DIAMOND: ["Diamond hands detected!", "Pressure makes diamonds!"],
    Symbol.ROCKET: ["Launch sequence initiated!", "Houston, we have liftoff!"],
    Symbol.JACKPOT: ["Monke see, monke win!", "Return to monke successful!"],
}

RESULT_QUOTES: dict[ResultKind, list[str]] = {
    ResultKind.JACKPOT: [
        "Perfect alignment!",
        "Triple crown victory!",
        "Full house of fortune!",
    ],
    ResultKind.NEAR_MISS: [
        "SO CLOSE! One more!",
        "Millimeters from millions!",
        "On the edge of glory!",
    ],
    ResultKind.MATCHING: [
        "Double trouble! Nice!",
        "Pair-fect result!",
        "Twin towers of luck!",
    ],
    ResultKind.BUST: [
        "Chaos mode activated!",
        "Random gods laughing",
        "Entropy wins again!",
    ],
}

DEFAULT_SYMBOL_QUOTE = "Symbol landed!"


def analyze_result(symbols: Sequence[int]) -> tuple[ResultKind, int]:
    """Classify a landed line for display: kind and the largest match count."""
    max_count = max(Counter(symbols).values())
    n = len(symbols)
    if max_count == n:
        return ResultKind.JACKPOT, max_count
    if max_count == n - 1:
        return ResultKind.NEAR_MISS, max_count
    if max_count >= math.ceil(n / 2):
        return ResultKind.MATCHING, max_count
    return ResultKind.BUST, max_count


class QuoteManager:
    """Picks quotes for machine phases, symbols and results."""

    def __init__(self, rng: RNGBase | None = None):
        self.rng = rng or ProductionRNG()

    def analyze(self, symbols: Sequence[int]) -> ResultKind:
        return analyze_result(symbols)[0]

    def phase_quote(self, phase: MachinePhase) -> str:
        return self.rng.choice(PHASE_QUOTES[phase])

    def symbol_quote(self, symbol: int) -> str:
        try:
            quotes = SYMBOL_QUOTES[Symbol(symbol)]
        except ValueError:
            return DEFAULT_SYMBOL_QUOTE
        return self.rng.choice(quotes)

    def result_quote(self, symbols: Sequence[int]) -> str:
        return self.rng.choice(RESULT_QUOTES[self.analyze(symbols)])
