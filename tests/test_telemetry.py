"""Telemetry service tests."""
from slotcore.telemetry import (
    CallbackFailureEvent,
    LoggingTelemetrySink,
    SpinCompletedEvent,
    StaleTargetEvent,
    TableResolvedEvent,
    TargetFallbackEvent,
    TelemetryService,
)


class FailingSink:
    """Sink that always raises."""

    def emit(self, event_name, data):
        raise ConnectionError("sink offline")


class TestTelemetryService:
    def test_events_reach_sink(self, telemetry, recording_sink):
        telemetry.emit_table_resolved(TableResolvedEvent(
            reel_count=5, source="artifact", layout="flat", override_count=3, rules_hash="abc",
        ))
        telemetry.emit_target_fallback(TargetFallbackEvent(reel_index=1, symbol=6, strip_length=8))
        telemetry.emit_stale_target(StaleTargetEvent(reel_index=0, symbol=2, machine_state="spindown"))
        telemetry.emit_callback_failure(CallbackFailureEvent(error_type="ValueError", message="x"))
        telemetry.emit_spin_completed(SpinCompletedEvent(
            reel_count=3, symbols=[6, 6, 6], tier="JACKPOT", payout=500, spin_ticks=300,
            fallback_reels=0,
        ))

        names = [name for name, _ in recording_sink.events]
        assert names == [
            "table_resolved",
            "target_fallback",
            "stale_target",
            "callback_failure",
            "spin_completed",
        ]
        assert recording_sink.named("target_fallback")[0]["reason"] == "TARGET_SYMBOL_NOT_FOUND"
        assert recording_sink.named("callback_failure")[0]["reason"] == "CALLBACK_FAILURE"

    def test_sink_errors_are_counted_not_raised(self):
        service = TelemetryService(sink=FailingSink())
        service.emit_stale_target(StaleTargetEvent(reel_index=0, symbol=1, machine_state="spindown"))
        service.emit_stale_target(StaleTargetEvent(reel_index=1, symbol=1, machine_state="spindown"))
        assert service.sink_errors == 2

    def test_set_sink(self, recording_sink):
        service = TelemetryService(sink=FailingSink())
        service.set_sink(recording_sink)
        service.emit_callback_failure(CallbackFailureEvent(error_type="E", message="m"))
        assert service.sink_errors == 0
        assert len(recording_sink.events) == 1

    def test_logging_sink(self, caplog):
        caplog.set_level("INFO", logger="slotcore.telemetry")
        LoggingTelemetrySink().emit("spin_completed", {"payout": 2})
        assert "TELEMETRY spin_completed" in caplog.text
