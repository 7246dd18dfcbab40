"""Engine telemetry: degraded paths and outcomes that need offline auditing."""
import logging
from dataclasses import dataclass
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    """Protocol for telemetry sinks."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Emit a telemetry event."""
        ...


class LoggingTelemetrySink:
    """Default sink that logs telemetry events."""

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        """Log telemetry event."""
        logger.info("TELEMETRY %s: %s", event_name, data)


@dataclass
class TableResolvedEvent:
    """table_resolved: an override table became available to the classifier."""

    reel_count: int
    source: str  # "injected" | "artifact" | "built"
    layout: str
    override_count: int
    rules_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "reel_count": self.reel_count,
            "source": self.source,
            "layout": self.layout,
            "override_count": self.override_count,
            "rules_hash": self.rules_hash,
        }


@dataclass
class TargetFallbackEvent:
    """target_fallback: requested symbol missing from the strip."""

    reel_index: int
    symbol: int
    strip_length: int
    reason: str = "TARGET_SYMBOL_NOT_FOUND"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "reel_index": self.reel_index,
            "symbol": self.symbol,
            "strip_length": self.strip_length,
            "reason": self.reason,
        }


@dataclass
class StaleTargetEvent:
    """stale_target: target arrived after the reel began decelerating."""

    reel_index: int
    symbol: int
    machine_state: str
    reason: str = "STALE_TARGET_ASSIGNMENT"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "reel_index": self.reel_index,
            "symbol": self.symbol,
            "machine_state": self.machine_state,
            "reason": self.reason,
        }


@dataclass
class CallbackFailureEvent:
    """callback_failure: the lever result callback raised."""

    error_type: str
    message: str
    reason: str = "CALLBACK_FAILURE"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "reason": self.reason,
        }


@dataclass
class SpinCompletedEvent:
    """spin_completed: reels stopped and the payline was sampled."""

    reel_count: int
    symbols: list[int]
    tier: str
    payout: int
    spin_ticks: int
    fallback_reels: int  # reels that stopped at the fallback index

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for emission."""
        return {
            "reel_count": self.reel_count,
            "symbols": list(self.symbols),
            "tier": self.tier,
            "payout": self.payout,
            "spin_ticks": self.spin_ticks,
            "fallback_reels": self.fallback_reels,
        }


class TelemetryService:
    """Service for emitting engine telemetry events."""

    def __init__(self, sink: TelemetrySink | None = None):
        self._sink = sink or LoggingTelemetrySink()
        self._sink_errors = 0  # Counter for sink failures

    def set_sink(self, sink: TelemetrySink) -> None:
        """Set the telemetry sink (useful for testing)."""
        self._sink = sink

    @property
    def sink_errors(self) -> int:
        return self._sink_errors

    def _safe_emit(self, event_name: str, data: dict[str, Any]) -> None:
        """
        Emit event with exception safety.

        Sink failures MUST NOT break an animation tick or a classification.
        """
        try:
            self._sink.emit(event_name, data)
        except Exception as e:
            self._sink_errors += 1
            logger.warning(
                "Telemetry sink error (count=%d): %s - %s",
                self._sink_errors,
                event_name,
                str(e),
            )

    def emit_table_resolved(self, event: TableResolvedEvent) -> None:
        self._safe_emit("table_resolved", event.to_dict())

    def emit_target_fallback(self, event: TargetFallbackEvent) -> None:
        self._safe_emit("target_fallback", event.to_dict())

    def emit_stale_target(self, event: StaleTargetEvent) -> None:
        self._safe_emit("stale_target", event.to_dict())

    def emit_callback_failure(self, event: CallbackFailureEvent) -> None:
        self._safe_emit("callback_failure", event.to_dict())

    def emit_spin_completed(self, event: SpinCompletedEvent) -> None:
        self._safe_emit("spin_completed", event.to_dict())


# Global instance
telemetry_service = TelemetryService()
