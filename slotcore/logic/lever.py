"""Lever gesture controller.

IDLE -> DRAGGING -> TRIGGERING -> RETURNING -> IDLE. A drag released short
of the pull threshold goes straight to RETURNING without invoking anything.

Animations advance on tick(). Triggering schedules the result callback as a
task on the running asyncio loop. Called from plain synchronous code (a timer
with no loop), the callback runs to completion before the call returns.
"""
import asyncio
import inspect
import logging
import math
from collections.abc import Callable
from typing import Any

from slotcore.config import ms_to_ticks, settings
from slotcore.logic.models import LeverState
from slotcore.telemetry import CallbackFailureEvent, TelemetryService, telemetry_service

logger = logging.getLogger(__name__)

REST_ANGLE = 0.0
MAX_PULL_ANGLE = settings.lever_max_angle
TRIGGER_ANGLE = settings.lever_pull_threshold * MAX_PULL_ANGLE

STATUS_PROCESSING = "Processing..."
STATUS_ERROR = "Error occurred!"
STATUS_READY = "Ready to pull!"

COLOR_DISABLED = "#666666"
COLOR_WAITING = "#ffaa00"
COLOR_DRAGGING = "#ff4444"
COLOR_IDLE = "#ffd700"


def ease_in_out_quad(progress: float) -> float:
    if progress < 0.5:
        return 2 * progress * progress
    return 1 - (-2 * progress + 2) ** 2 / 2


def ease_out_cubic(progress: float) -> float:
    return 1 - (1 - progress) ** 3


ResultCallback = Callable[[], Any]


class LeverController:
    """Drag / programmatic pull state machine around one result callback."""

    def __init__(
        self,
        callback: ResultCallback | None = None,
        *,
        guard: Callable[[], bool] | None = None,
        on_pull_start: Callable[[], None] | None = None,
        on_pull_complete: Callable[[Any], None] | None = None,
        on_status_update: Callable[[str], None] | None = None,
        telemetry: TelemetryService | None = None,
        tick_hz: int | None = None,
    ):
        self._callback = callback
        self._guard = guard
        self.on_pull_start = on_pull_start
        self.on_pull_complete = on_pull_complete
        self.on_status_update = on_status_update
        self._telemetry = telemetry or telemetry_service
        self._hz = tick_hz or settings.tick_hz

        self.state = LeverState.IDLE
        self.angle = REST_ANGLE
        self.disabled = False
        self.scripted = False
        self.status = STATUS_READY
        self.triggers = 0
        self.last_result: Any = None
        self.last_error: Exception | None = None

        self._drag_offset_y = 0.0
        self._anim_from = REST_ANGLE
        self._anim_ticks = 1
        self._anim_step = 0
        self._hold_ticks = 0
        self._task: asyncio.Task | None = None

    # === Configuration ===

    def set_callback(self, callback: ResultCallback | None) -> None:
        """Replace the result callback; the next trigger uses the new one."""
        self._callback = callback

    def set_disabled(self, disabled: bool) -> None:
        """Disable or enable new pulls. An in-flight trigger is not aborted."""
        self.disabled = disabled
        if not disabled and self.state is LeverState.IDLE:
            self.angle = REST_ANGLE

    # === Geometry ===

    @property
    def handle_position(self) -> tuple[float, float]:
        y = settings.lever_base_y - math.cos(self.angle) * settings.lever_length
        return settings.lever_base_x, y

    @property
    def pull_progress(self) -> float:
        return self.angle / MAX_PULL_ANGLE

    def hits_handle(self, x: float, y: float) -> bool:
        hx, hy = self.handle_position
        return math.hypot(x - hx, y - hy) <= settings.lever_handle_radius

    @property
    def handle_color(self) -> str:
        if self.disabled:
            return COLOR_DISABLED
        if self.state is LeverState.TRIGGERING:
            return COLOR_WAITING
        if self.state is LeverState.DRAGGING:
            return COLOR_DRAGGING
        return COLOR_IDLE

    def cursor_for(self, x: float, y: float) -> str:
        if self.disabled:
            return "not-allowed"
        if self.state is LeverState.DRAGGING and not self.scripted:
            return "grabbing"
        if self.state is LeverState.IDLE and self.hits_handle(x, y):
            return "grab"
        return "default"

    # === Gestures ===

    def pointer_down(self, x: float, y: float) -> bool:
        """Start a manual drag if the pointer is on the handle."""
        if self.disabled or self.state is not LeverState.IDLE:
            return False
        if not self._guard_allows():
            return False
        if not self.hits_handle(x, y):
            return False
        self._drag_offset_y = y - self.handle_position[1]
        self.scripted = False
        self.state = LeverState.DRAGGING
        return True

    def pointer_move(self, x: float, y: float) -> None:
        if self.state is not LeverState.DRAGGING or self.scripted:
            return
        target_y = y - self._drag_offset_y
        ratio = -(target_y - settings.lever_base_y) / settings.lever_length
        ratio = max(-1.0, min(1.0, ratio))
        self.angle = min(MAX_PULL_ANGLE, max(REST_ANGLE, math.acos(ratio)))

    def pointer_up(self) -> bool:
        """Release a manual drag. Returns True if the pull triggered."""
        if self.state is not LeverState.DRAGGING or self.scripted:
            return False
        if self.angle >= TRIGGER_ANGLE and not self.disabled:
            self._begin_trigger()
            return True
        self._begin_return()
        return False

    def trigger_programmatic_pull(self, speed: float = 1.0) -> bool:
        """
        Animate a full pull, then trigger exactly like a manual pull.

        Duration is the configured pull duration divided by speed.
        """
        if speed <= 0:
            logger.warning("Programmatic pull rejected: speed %s must be positive", speed)
            return False
        if self.disabled or self.state is not LeverState.IDLE:
            logger.info("Programmatic pull rejected: lever %s, disabled=%s",
                        self.state.value, self.disabled)
            return False
        if not self._guard_allows():
            return False
        self.scripted = True
        self.state = LeverState.DRAGGING
        self._start_animation(ms_to_ticks(settings.lever_pull_duration_ms / speed, self._hz))
        return True

    # === Frame updates ===

    def tick(self) -> None:
        """Advance pull and return animations by one frame."""
        if self.state is LeverState.DRAGGING and self.scripted:
            progress = self._advance()
            self.angle = self._anim_from + (MAX_PULL_ANGLE - self._anim_from) * ease_in_out_quad(progress)
            if progress >= 1:
                self.angle = MAX_PULL_ANGLE
                self._begin_trigger()
        elif self.state is LeverState.RETURNING:
            if self._hold_ticks > 0:
                self._hold_ticks -= 1
                return
            progress = self._advance()
            self.angle = self._anim_from * (1 - ease_out_cubic(progress))
            if progress >= 1:
                self.angle = REST_ANGLE
                self.scripted = False
                self.state = LeverState.IDLE
                self._set_status(STATUS_READY)

    async def wait_settled(self) -> None:
        """Wait for the current trigger's callback to finish, if any."""
        if self._task is not None:
            await self._task

    # === Internals ===

    def _guard_allows(self) -> bool:
        if self._guard is None or self._guard():
            return True
        logger.debug("Lever pull blocked by guard")
        return False

    def _start_animation(self, ticks: int) -> None:
        self._anim_from = self.angle
        self._anim_ticks = max(1, ticks)
        self._anim_step = 0

    def _advance(self) -> float:
        self._anim_step += 1
        return min(1.0, self._anim_step / self._anim_ticks)

    def _begin_trigger(self) -> None:
        self.state = LeverState.TRIGGERING
        self.angle = MAX_PULL_ANGLE
        self.triggers += 1
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; running lever callback inline")
            self._task = None
            asyncio.run(self._run_callback())
            return
        self._task = loop.create_task(self._run_callback())

    def _begin_return(self, hold_ticks: int = 0) -> None:
        self.state = LeverState.RETURNING
        self._hold_ticks = hold_ticks
        self._start_animation(ms_to_ticks(settings.lever_return_duration_ms, self._hz))

    async def _run_callback(self) -> None:
        callback = self._callback
        self._safe_call(self.on_pull_start)
        self._set_status(STATUS_PROCESSING)
        try:
            result = callback() if callback is not None else None
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self.last_error = e
            logger.warning("Lever callback failed: %s: %s", type(e).__name__, e)
            self._telemetry.emit_callback_failure(CallbackFailureEvent(
                error_type=type(e).__name__,
                message=str(e),
            ))
            self._set_status(STATUS_ERROR)
        else:
            self.last_result = result
            self.last_error = None
            self._safe_call(self.on_pull_complete, result)
            self._set_status(f"Result: {result if result is not None else 'Complete!'}")
        finally:
            self._begin_return(hold_ticks=ms_to_ticks(settings.lever_settle_delay_ms, self._hz))

    def _set_status(self, message: str) -> None:
        self.status = message
        self._safe_call(self.on_status_update, message)

    def _safe_call(self, hook: Callable[..., Any] | None, *args: Any) -> None:
        """Run a notification hook; hook failures must not wedge the lever."""
        if hook is None:
            return
        try:
            hook(*args)
        except Exception as e:
            logger.warning("Lever hook %s failed: %s", getattr(hook, "__name__", hook), e)
