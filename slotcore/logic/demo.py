"""Self-running demo: a lever repeatedly pulls a controlled reel machine.

Each cycle idles, pulls the lever programmatically, starts a spin from the
lever callback, reveals biased demo targets reel by reel once the machine
reaches full speed, then shows the result.
"""
import asyncio
import logging
import math
from collections.abc import Callable, Sequence

from slotcore.config import ms_to_ticks, settings
from slotcore.logic.lever import LeverController
from slotcore.logic.models import SYMBOL_INFO, SYMBOL_VALUES, LeverState, MachineState, PayoutTier, Symbol
from slotcore.logic.quotes import MachinePhase, QuoteManager
from slotcore.logic.reels import ReelMachine
from slotcore.logic.rng import ProductionRNG, RNGBase
from slotcore.protocol import SpinOutcome
from slotcore.validators import validate_reel_count

logger = logging.getLogger(__name__)

ALL_SAME_CHANCE = 0.2
PARTIAL_MATCH_CHANCE = 0.3

SYMBOL_WEIGHTS = [SYMBOL_INFO[Symbol(value)].weight for value in SYMBOL_VALUES]


def weighted_symbol(rng: RNGBase) -> int:
    """Symbol drawn by rarity weight."""
    return rng.weighted_choice(SYMBOL_VALUES, SYMBOL_WEIGHTS)


def generate_demo_symbols(reel_count: int, rng: RNGBase) -> list[int]:
    """
    Targets biased toward interesting lines.

    20% all the same symbol, 30% with ceil(n/2) matching symbols in random
    positions, 50% independent weighted draws.
    """
    validate_reel_count(reel_count)
    roll = rng.random()
    if roll < ALL_SAME_CHANCE:
        return [weighted_symbol(rng)] * reel_count
    if roll < ALL_SAME_CHANCE + PARTIAL_MATCH_CHANCE:
        matching = math.ceil(reel_count / 2)
        symbols = [weighted_symbol(rng)] * matching
        symbols += [weighted_symbol(rng) for _ in range(reel_count - matching)]
        rng.shuffle(symbols)
        return symbols
    return [weighted_symbol(rng) for _ in range(reel_count)]


class FrameClock:
    """Fixed-rate async tick source. realtime=False runs ticks back to back."""

    def __init__(self, hz: int | None = None, realtime: bool = True):
        self.hz = hz or settings.tick_hz
        self.realtime = realtime
        self.ticks = 0

    async def run(
        self,
        on_tick: Callable[[], None],
        until: Callable[[], bool],
        max_ticks: int,
    ) -> int:
        """Tick until the condition holds; returns ticks spent."""
        for spent in range(max_ticks):
            if until():
                return spent
            on_tick()
            self.ticks += 1
            await asyncio.sleep(self._interval())
        if until():
            return max_ticks
        raise TimeoutError(f"Condition not met within {max_ticks} ticks")

    async def idle(self, ms: int, on_tick: Callable[[], None]) -> None:
        """Keep ticking for a fixed duration."""
        for _ in range(ms_to_ticks(ms, self.hz)):
            on_tick()
            self.ticks += 1
            await asyncio.sleep(self._interval())

    def _interval(self) -> float:
        return 1 / self.hz if self.realtime else 0


class DemoDriver:
    """Owns one controlled machine and its lever and cycles them."""

    def __init__(
        self,
        reel_count: int = 3,
        *,
        rng: RNGBase | None = None,
        clock: FrameClock | None = None,
        quotes: QuoteManager | None = None,
        classify_fn: Callable[[Sequence[int]], PayoutTier] | None = None,
        on_message: Callable[[str], None] | None = None,
        max_cycle_ticks: int = 20_000,
    ):
        self.rng = rng or ProductionRNG()
        self.clock = clock or FrameClock()
        self.quotes = quotes or QuoteManager(self.rng)
        self.on_message = on_message
        self.max_cycle_ticks = max_cycle_ticks
        self.machine = ReelMachine(
            reel_count,
            rng=self.rng,
            classify_fn=classify_fn,
            on_state_change=self._on_state_change,
        )
        self.lever = LeverController(
            self._on_pull,
            guard=self.machine.is_ready,
            on_status_update=self._say,
        )
        self.messages: list[str] = []
        self.outcomes: list[SpinOutcome] = []
        self.last_targets: list[int] | None = None

    async def run(self, cycles: int) -> list[SpinOutcome]:
        results = []
        for _ in range(cycles):
            results.append(await self.run_cycle())
            await self.clock.idle(settings.demo_cycle_pause_ms, self._tick)
        return results

    async def run_cycle(self) -> SpinOutcome:
        """One idle -> pull -> spin -> result cycle."""
        self._say(self.quotes.phase_quote(MachinePhase.IDLE))
        await self.clock.idle(settings.demo_idle_ms, self._tick)

        if not self.lever.trigger_programmatic_pull(1.0):
            raise RuntimeError(f"Demo lever refused to pull in {self.lever.state.value}")
        spins_before = len(self.outcomes)

        def settled() -> bool:
            return (
                len(self.outcomes) > spins_before
                and self.machine.is_ready()
                and self.lever.state is LeverState.IDLE
            )

        await self.clock.run(self._tick, settled, self.max_cycle_ticks)
        await self.clock.idle(settings.demo_result_ms, self._tick)
        return self.outcomes[-1]

    def _tick(self) -> None:
        self.machine.tick()
        self.lever.tick()

    async def _on_pull(self) -> str:
        if not self.machine.is_ready():
            return "Machine is busy!"
        self.last_targets = generate_demo_symbols(self.machine.reel_count, self.rng)
        self.machine.start_spin(required_symbols=self.last_targets)
        return "Spin started!"

    def _on_state_change(self, old: MachineState, new: MachineState) -> None:
        if new is MachineState.SPINUP:
            self._say(self.quotes.phase_quote(MachinePhase.SPINNING))
        elif new is MachineState.SPINDOWN and self.last_targets is not None:
            self.machine.set_all_reel_targets_sequential(self.last_targets)
        elif new is MachineState.REWARD and self.machine.outcome is not None:
            outcome = self.machine.outcome
            self.outcomes.append(outcome)
            self._say(self.quotes.result_quote(outcome.symbols))
            phase = MachinePhase.LOSING if outcome.tier == PayoutTier.LOSE else MachinePhase.WINNING
            self._say(self.quotes.phase_quote(phase))
            logger.info("Demo spin %s -> %s", outcome.symbols, outcome.tier_name)

    def _say(self, message: str) -> None:
        self.messages.append(message)
        if self.on_message is not None:
            self.on_message(message)
