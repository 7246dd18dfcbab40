"""Pytest fixtures for slotcore tests."""
from typing import Any, Generator

import pytest

from slotcore.logic.classifier import PayoutClassifier
from slotcore.logic.rng import SeededRNG
from slotcore.logic.table_builder import build_table
from slotcore.telemetry import TelemetryService


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (exhaustive 6- and 7-reel enumeration)"
    )


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def named(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def recording_sink() -> RecordingTelemetrySink:
    return RecordingTelemetrySink()


@pytest.fixture
def telemetry(recording_sink: RecordingTelemetrySink) -> TelemetryService:
    """TelemetryService writing into a RecordingTelemetrySink."""
    return TelemetryService(sink=recording_sink)


@pytest.fixture
def rng() -> SeededRNG:
    return SeededRNG(seed=20251018)


@pytest.fixture(scope="session")
def small_tables() -> dict[int, Any]:
    """Verified override tables for 3, 4 and 5 reels, built once."""
    return {reel_count: build_table(reel_count)[0] for reel_count in (3, 4, 5)}


@pytest.fixture
def small_classifier(
    small_tables: dict[int, Any],
    tmp_path,
) -> Generator[PayoutClassifier, None, None]:
    """Classifier over the prebuilt small tables; never touches disk tables."""
    yield PayoutClassifier(
        small_tables,
        tables_dir=tmp_path,
        build_missing=False,
        telemetry=TelemetryService(sink=RecordingTelemetrySink()),
    )
