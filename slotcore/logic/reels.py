"""Reel animation state machine.

A ReelMachine groups reel_count reels and moves them through
REST -> SPINUP -> SPINDOWN -> REWARD -> REST, one tick at a time.

Positions are pixels. They decrease while a reel spins (symbols travel
downward) and wrap modulo the strip length. Row r of the visible window shows
strip[top + r], where top = position // SYMBOL_SIZE; the payline is the
center row.

Every reel with a target tracks the exact distance left to its stop. A reel
begins braking only when the reel before it (in stop order) already has,
and it advances to the exact braking point first so deceleration lands it on
the stop position. A reel that has to keep waiting adds whole rotations.
"""
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from slotcore.config import ms_to_ticks, settings
from slotcore.errors import InvalidReelIndexError, InvalidSymbolError
from slotcore.logic.classifier import classify_symbols
from slotcore.logic.codec import encode
from slotcore.logic.models import TIER_CREDITS, DriveMode, MachineState, PayoutTier
from slotcore.logic.rng import ProductionRNG, RNGBase
from slotcore.logic.strips import generate_strip
from slotcore.protocol import SpinOutcome
from slotcore.telemetry import (
    SpinCompletedEvent,
    StaleTargetEvent,
    TargetFallbackEvent,
    TelemetryService,
    telemetry_service,
)
from slotcore.validators import (
    validate_reel_count,
    validate_reel_index,
    validate_symbol,
    validate_symbols,
)

logger = logging.getLogger(__name__)

SYMBOL_SIZE = settings.symbol_size
ROW_COUNT = settings.row_count
PAYLINE_ROW = ROW_COUNT // 2
MAX_REEL_SPEED = settings.max_reel_speed
SPINUP_ACCELERATION = settings.spinup_acceleration
SPINDOWN_ACCELERATION = settings.spindown_acceleration
FALLBACK_STOP_INDEX = 0


def braking_distance(speed: float, deceleration: float = SPINDOWN_ACCELERATION) -> float:
    """Distance covered from speed to rest, moving before each slowdown."""
    distance = 0.0
    while speed > 0:
        distance += speed
        speed -= deceleration
    return distance


STOPPING_DISTANCE = braking_distance(MAX_REEL_SPEED)


@dataclass
class ReelState:
    """Mutable per-reel animation state."""

    index: int
    strip: list[int]
    position: float = 0.0
    speed: float = 0.0
    decelerating: bool = False
    stopped: bool = False
    target_symbol: int | None = None
    stop_position: float | None = None
    remaining: float = 0.0  # px left until stop_position
    traveled: float = 0.0  # px since the target was last assigned
    decel_tick: int | None = None
    fallback: bool = False  # stopping at FALLBACK_STOP_INDEX

    @property
    def has_target(self) -> bool:
        return self.stop_position is not None


class ReelMachine:
    """
    Tick-driven reel machine.

    In CONTROLLED mode stops come from set_reel_target / start_spin targets
    and a reel without one keeps spinning. In DEMO mode reels without a target
    get a random stop when spin-up completes.
    """

    def __init__(
        self,
        reel_count: int,
        *,
        mode: DriveMode = DriveMode.CONTROLLED,
        rng: RNGBase | None = None,
        strips: Sequence[Sequence[int]] | None = None,
        stop_order: Sequence[int] | None = None,
        regenerate_strips: bool = True,
        classify_fn: Callable[[Sequence[int]], PayoutTier] | None = None,
        on_state_change: Callable[[MachineState, MachineState], None] | None = None,
        telemetry: TelemetryService | None = None,
    ):
        validate_reel_count(reel_count)
        self.reel_count = reel_count
        self.mode = mode
        self.rng = rng or ProductionRNG()
        self.regenerate_strips = regenerate_strips
        self._classify = classify_fn or classify_symbols
        self._on_state_change = on_state_change
        self._telemetry = telemetry or telemetry_service
        self.stop_order = self._check_stop_order(stop_order)

        if strips is None:
            initial = [generate_strip(self.rng) for _ in range(reel_count)]
        else:
            initial = self._check_strips(strips)
        self.positions = len(initial[0])
        self.strip_pixels = self.positions * SYMBOL_SIZE
        self.min_spin_distance = settings.min_spin_rotations * self.strip_pixels

        self.reels = [ReelState(index=i, strip=list(strip)) for i, strip in enumerate(initial)]
        for reel in self.reels:
            reel.position = self._random_position()

        self.state = MachineState.REST
        self.tick_count = 0
        self.spin_ticks = 0
        self.outcome: SpinOutcome | None = None
        self.credits_shown = 0
        self._pending: list[tuple[int, int, int]] = []  # (due tick, reel, symbol)
        self._external_result: tuple[PayoutTier, int | None] | None = None
        self._reward_remaining = 0
        self._reward_timer = 0

    # === Public API ===

    def get_state(self) -> MachineState:
        return self.state

    def is_ready(self) -> bool:
        return self.state is MachineState.REST

    def start_spin(
        self,
        target_symbols: Sequence[int] | None = None,
        *,
        required_symbols: Sequence[int] | None = None,
    ) -> bool:
        """
        Start a spin from REST, optionally with one target symbol per reel.

        required_symbols seeds the regenerated strips without assigning
        targets, for callers that set targets later in the spin.

        Returns False (state unchanged) if the machine is not at REST.
        """
        if self.state is not MachineState.REST:
            logger.warning("start_spin rejected: machine is in %s", self.state.value)
            return False
        if target_symbols is not None:
            validate_symbols(target_symbols, self.reel_count)
            required_symbols = target_symbols
        elif required_symbols is not None:
            validate_symbols(required_symbols, self.reel_count)

        for reel in self.reels:
            required = required_symbols[reel.index] if required_symbols is not None else None
            if self.regenerate_strips:
                reel.strip = generate_strip(self.rng, self.positions, required)
            self._reset_reel(reel)

        self.outcome = None
        self.credits_shown = 0
        self.spin_ticks = 0
        self._pending.clear()
        self._external_result = None
        self._transition(MachineState.SPINUP)

        if target_symbols is not None:
            for reel in self.reels:
                self._assign_target(reel, target_symbols[reel.index])
        return True

    def set_reel_target(self, index: int, symbol: int) -> bool:
        """
        Steer one reel to land symbol on the payline.

        Valid once SPINUP has begun. Replaces any earlier target until the reel
        starts decelerating; after that the call is a logged no-op.
        """
        validate_reel_index(index, self.reel_count)
        validate_symbol(symbol)
        if self.state is MachineState.REST:
            logger.warning("set_reel_target(%d) ignored: no spin in progress", index)
            return False
        self._pending = [p for p in self._pending if p[1] != index]
        return self._apply_target(index, symbol)

    def set_all_reel_targets(self, symbols: Sequence[int]) -> bool:
        """Apply every reel's target at once. True if all were applied."""
        validate_symbols(symbols, self.reel_count)
        if self.state is MachineState.REST:
            logger.warning("set_all_reel_targets ignored: no spin in progress")
            return False
        self._pending.clear()
        results = [self._apply_target(index, symbol) for index, symbol in enumerate(symbols)]
        return all(results)

    def set_all_reel_targets_sequential(
        self,
        symbols: Sequence[int],
        interval_ms: int | None = None,
    ) -> bool:
        """
        Apply targets one reel at a time in stop order.

        The first reel gets its target now, each following reel interval_ms
        later (at least one tick apart).
        """
        validate_symbols(symbols, self.reel_count)
        if self.state is MachineState.REST:
            logger.warning("set_all_reel_targets_sequential ignored: no spin in progress")
            return False
        interval = ms_to_ticks(
            interval_ms if interval_ms is not None else settings.reel_stop_interval_ms
        )
        self._pending.clear()
        for order, index in enumerate(self.stop_order):
            if order == 0:
                self._apply_target(index, symbols[index])
            else:
                self._pending.append((self.tick_count + order * interval, index, symbols[index]))
        return True

    def set_result(self, tier: PayoutTier, payout: int | None = None) -> bool:
        """Supply the spin result instead of classifying the payline."""
        if self.state not in (MachineState.SPINUP, MachineState.SPINDOWN):
            logger.warning("set_result ignored in %s", self.state.value)
            return False
        self._external_result = (PayoutTier(tier), payout)
        return True

    def reset(self) -> None:
        """Drop any spin in progress and return to REST with fresh reels."""
        self._pending.clear()
        self._external_result = None
        self.outcome = None
        self._reward_remaining = 0
        for reel in self.reels:
            if self.regenerate_strips:
                reel.strip = generate_strip(self.rng, self.positions)
            self._reset_reel(reel)
        if self.state is not MachineState.REST:
            self._transition(MachineState.REST)

    def tick(self) -> None:
        """Advance the machine by one frame."""
        self.tick_count += 1
        if self.state is MachineState.REST:
            return
        self.spin_ticks += 1
        self._apply_due_targets()

        if self.state is MachineState.SPINUP:
            self._tick_spinup()
        elif self.state is MachineState.SPINDOWN:
            self._tick_spindown()
        elif self.state is MachineState.REWARD:
            self._tick_reward()

    def run_until_rest(self, max_ticks: int = 20_000) -> SpinOutcome | None:
        """Tick until the machine is back at REST; returns the spin outcome."""
        for _ in range(max_ticks):
            if self.state is MachineState.REST:
                return self.outcome
            self.tick()
        if self.state is MachineState.REST:
            return self.outcome
        raise RuntimeError(
            f"Machine still in {self.state.value} after {max_ticks} ticks"
        )

    def payline_symbols(self) -> list[int]:
        return [self._symbol_at_row(reel, PAYLINE_ROW) for reel in self.reels]

    def visible_window(self) -> list[list[int]]:
        """Visible symbols, one list per row, top row first."""
        return [
            [self._symbol_at_row(reel, row) for reel in self.reels]
            for row in range(ROW_COUNT)
        ]

    # === Validation ===

    def _check_stop_order(self, stop_order: Sequence[int] | None) -> list[int]:
        if stop_order is None:
            return list(range(self.reel_count))
        order = list(stop_order)
        if sorted(order) != list(range(self.reel_count)):
            raise InvalidReelIndexError(
                f"Stop order {order} is not a permutation of 0..{self.reel_count - 1}"
            )
        return order

    def _check_strips(self, strips: Sequence[Sequence[int]]) -> list[list[int]]:
        if len(strips) != self.reel_count:
            raise InvalidSymbolError(f"Expected {self.reel_count} strips, got {len(strips)}")
        lengths = {len(strip) for strip in strips}
        if len(lengths) != 1 or min(lengths) < ROW_COUNT:
            raise InvalidSymbolError(
                f"Strips must share one length of at least {ROW_COUNT}, got {sorted(lengths)}"
            )
        for strip in strips:
            for symbol in strip:
                validate_symbol(symbol)
        return [list(strip) for strip in strips]

    # === Targeting ===

    def _apply_target(self, index: int, symbol: int) -> bool:
        reel = self.reels[index]
        if reel.decelerating:
            logger.info(
                "Stale target %d for reel %d ignored: reel already decelerating",
                symbol, index,
            )
            self._telemetry.emit_stale_target(StaleTargetEvent(
                reel_index=index,
                symbol=symbol,
                machine_state=self.state.value,
            ))
            return False
        self._assign_target(reel, symbol)
        return True

    def _assign_target(self, reel: ReelState, symbol: int) -> None:
        candidates = [i for i, s in enumerate(reel.strip) if s == symbol]
        reel.target_symbol = symbol
        reel.fallback = not candidates
        if not candidates:
            logger.warning(
                "Reel %d strip has no symbol %d; stopping at index %d",
                reel.index, symbol, FALLBACK_STOP_INDEX,
            )
            self._telemetry.emit_target_fallback(TargetFallbackEvent(
                reel_index=reel.index,
                symbol=symbol,
                strip_length=len(reel.strip),
            ))
            candidates = [FALLBACK_STOP_INDEX]

        # Top index that puts each candidate on the payline
        tops = [(c - PAYLINE_ROW) % self.positions for c in candidates]
        best = min(tops, key=lambda top: self._distance_to_top(reel, top))
        self._set_stop(reel, best)

    def _distance_to_top(self, reel: ReelState, top: int) -> float:
        return (reel.position - top * SYMBOL_SIZE) % self.strip_pixels

    def _set_stop(self, reel: ReelState, top: int) -> None:
        reel.stop_position = float(top * SYMBOL_SIZE)
        reel.remaining = self._distance_to_top(reel, top) + self.min_spin_distance
        reel.traveled = 0.0

    def _assign_random_stops(self) -> None:
        queued = {index for _, index, _ in self._pending}
        for reel in self.reels:
            if reel.has_target or reel.index in queued:
                continue
            top = self.rng.randint(0, self.positions - 1)
            reel.target_symbol = reel.strip[(top + PAYLINE_ROW) % self.positions]
            self._set_stop(reel, top)

    def _apply_due_targets(self) -> None:
        if not self._pending:
            return
        due = [p for p in self._pending if p[0] <= self.tick_count]
        self._pending = [p for p in self._pending if p[0] > self.tick_count]
        for _, index, symbol in due:
            self._apply_target(index, symbol)

    # === Motion ===

    def _move(self, reel: ReelState, step: float) -> None:
        reel.position = (reel.position - step) % self.strip_pixels
        if reel.has_target:
            reel.remaining -= step
            reel.traveled += step

    def _coast(self, reel: ReelState) -> None:
        """Move at current speed without braking; go round again if too close."""
        self._move(reel, reel.speed)
        if reel.has_target and reel.remaining <= STOPPING_DISTANCE + MAX_REEL_SPEED:
            reel.remaining += self.strip_pixels

    def _brake(self, reel: ReelState) -> None:
        self._move(reel, min(reel.speed, reel.remaining))
        reel.speed -= SPINDOWN_ACCELERATION
        if reel.speed <= 0 or reel.remaining <= 0:
            reel.traveled += max(reel.remaining, 0.0)
            reel.speed = 0.0
            reel.remaining = 0.0
            reel.position = reel.stop_position
            reel.stopped = True

    def _tick_spinup(self) -> None:
        reached_max = False
        for reel in self.reels:
            self._coast(reel)
            reel.speed = min(reel.speed + SPINUP_ACCELERATION, MAX_REEL_SPEED)
            if reel.speed >= MAX_REEL_SPEED:
                reached_max = True
        if reached_max:
            if self.mode is DriveMode.DEMO:
                self._assign_random_stops()
            self._transition(MachineState.SPINDOWN)

    def _tick_spindown(self) -> None:
        for order, index in enumerate(self.stop_order):
            reel = self.reels[index]
            if reel.stopped:
                continue
            if reel.decelerating:
                self._brake(reel)
                continue

            previous = self.reels[self.stop_order[order - 1]] if order else None
            may_brake = previous is None or previous.decelerating
            if not reel.has_target or not may_brake:
                self._coast(reel)
                continue

            brake = braking_distance(reel.speed)
            if reel.remaining - reel.speed <= brake:
                self._move(reel, max(reel.remaining - brake, 0.0))
                reel.decelerating = True
                reel.decel_tick = self.tick_count
                logger.debug("Reel %d decelerating at tick %d", index, self.tick_count)
            else:
                self._move(reel, reel.speed)

        if all(reel.stopped for reel in self.reels):
            self._enter_reward()

    # === Reward ===

    def _enter_reward(self) -> None:
        symbols = self.payline_symbols()
        external = self._external_result is not None
        if self._external_result is not None:
            tier, payout = self._external_result
        else:
            tier, payout = self._classify(symbols), None
        if payout is None:
            payout = TIER_CREDITS[tier]

        self.outcome = SpinOutcome(
            reel_count=self.reel_count,
            symbols=symbols,
            key=encode(symbols, self.reel_count),
            tier=int(tier),
            tier_name=tier.name,
            payout=payout,
            external=external,
        )
        self._telemetry.emit_spin_completed(SpinCompletedEvent(
            reel_count=self.reel_count,
            symbols=symbols,
            tier=tier.name,
            payout=payout,
            spin_ticks=self.spin_ticks,
            fallback_reels=sum(1 for reel in self.reels if reel.fallback),
        ))
        self._reward_remaining = payout
        self._reward_timer = self._reward_delay()
        self._transition(MachineState.REWARD)

    def _reward_delay(self) -> int:
        # Large payouts count faster until they drop to the threshold
        if self._reward_remaining > settings.reward_grand_threshold:
            return settings.reward_delay_grand
        return settings.reward_delay

    def _tick_reward(self) -> None:
        if self._reward_remaining <= 0:
            self._transition(MachineState.REST)
            return
        self._reward_timer -= 1
        if self._reward_timer > 0:
            return
        self._reward_remaining -= 1
        self.credits_shown += 1
        if self._reward_remaining <= 0:
            self._transition(MachineState.REST)
            return
        self._reward_timer = self._reward_delay()

    # === Helpers ===

    def _reset_reel(self, reel: ReelState) -> None:
        reel.position = self._random_position()
        reel.speed = 0.0
        reel.decelerating = False
        reel.stopped = False
        reel.target_symbol = None
        reel.stop_position = None
        reel.remaining = 0.0
        reel.traveled = 0.0
        reel.decel_tick = None
        reel.fallback = False

    def _random_position(self) -> float:
        return float(self.rng.randint(0, self.positions - 1) * SYMBOL_SIZE)

    def _symbol_at_row(self, reel: ReelState, row: int) -> int:
        nearest_top = int(reel.position / SYMBOL_SIZE + 0.5)
        return reel.strip[(nearest_top + row) % self.positions]

    def _transition(self, new_state: MachineState) -> None:
        old_state = self.state
        self.state = new_state
        logger.debug("Reel machine %s -> %s", old_state.value, new_state.value)
        if self._on_state_change is not None:
            self._on_state_change(old_state, new_state)
