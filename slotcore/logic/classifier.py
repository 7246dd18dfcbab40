"""Payout classifier: closed-form pattern match backed by override tables.

classify(reel_count, key) is a pure function of its inputs. Override tables
are resolved once per reel count and are read-only afterwards, so a single
classifier can be shared by any number of callers.
"""
import logging
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path

from slotcore.config import settings
from slotcore.config_hash import get_config_hash
from slotcore.errors import TableArtifactError
from slotcore.logic.codec import encode, key_symbol_counts
from slotcore.logic.models import PayoutTier
from slotcore.logic.rules import closed_form_tier
from slotcore.logic.table_builder import build_table
from slotcore.logic.tables import OverrideTable, artifact_path, load_table
from slotcore.telemetry import TableResolvedEvent, TelemetryService, telemetry_service
from slotcore.validators import validate_reel_count

logger = logging.getLogger(__name__)


class PayoutClassifier:
    """
    Classify combination keys into payout tiers.

    Table resolution order per reel count:
    1. tables passed to the constructor
    2. payout_table_<n>.json in tables_dir, if its rules hash is current
    3. an in-process build (only when build_missing is True)
    """

    def __init__(
        self,
        tables: Mapping[int, OverrideTable] | None = None,
        *,
        tables_dir: str | Path | None = None,
        build_missing: bool = True,
        telemetry: TelemetryService | None = None,
    ):
        self._tables: dict[int, OverrideTable] = {}
        self._tables_dir = tables_dir if tables_dir is not None else settings.tables_dir
        self._build_missing = build_missing
        self._telemetry = telemetry or telemetry_service
        self._lock = threading.Lock()
        for reel_count, table in (tables or {}).items():
            validate_reel_count(reel_count)
            self._tables[reel_count] = table
            self._announce(table, "injected")

    def classify(self, reel_count: int, combination_key: int) -> PayoutTier:
        """Classify one combination key. Raises on invalid reel count or key."""
        validate_reel_count(reel_count)
        counts = key_symbol_counts(combination_key, reel_count)
        tier = closed_form_tier(counts, reel_count)
        if tier is not PayoutTier.LOSE:
            return tier
        return self.table_for(reel_count).get(combination_key)

    def classify_symbols(self, symbols: Sequence[int]) -> PayoutTier:
        reel_count = len(symbols)
        return self.classify(reel_count, encode(symbols, reel_count))

    def table_for(self, reel_count: int) -> OverrideTable:
        """Resolved override table for a reel count."""
        table = self._tables.get(reel_count)
        if table is not None:
            return table
        with self._lock:
            table = self._tables.get(reel_count)
            if table is None:
                table = self._resolve(reel_count)
                self._tables[reel_count] = table
        return table

    def preload(self, reel_counts: Sequence[int]) -> None:
        for reel_count in reel_counts:
            validate_reel_count(reel_count)
            self.table_for(reel_count)

    def is_loaded(self, reel_count: int) -> bool:
        return reel_count in self._tables

    def _resolve(self, reel_count: int) -> OverrideTable:
        path = artifact_path(reel_count, self._tables_dir)
        if path.exists():
            try:
                table = load_table(path)
            except TableArtifactError as e:
                if not self._build_missing:
                    raise
                logger.warning("Ignoring table artifact: %s", e.message)
            else:
                self._announce(table, "artifact")
                return table
        elif not self._build_missing:
            raise TableArtifactError(f"No override table for {reel_count} reels at {path}")

        logger.warning(
            "No usable override table for %d reels in %s; building in process",
            reel_count, self._tables_dir,
        )
        table, _ = build_table(reel_count)
        self._announce(table, "built")
        return table

    def _announce(self, table: OverrideTable, source: str) -> None:
        self._telemetry.emit_table_resolved(TableResolvedEvent(
            reel_count=table.reel_count,
            source=source,
            layout=table.layout.value,
            override_count=len(table),
            rules_hash=get_config_hash(),
        ))


# Global instance
classifier = PayoutClassifier()


def classify(reel_count: int, combination_key: int) -> PayoutTier:
    """Classify with the shared classifier."""
    return classifier.classify(reel_count, combination_key)


def classify_symbols(symbols: Sequence[int]) -> PayoutTier:
    return classifier.classify_symbols(symbols)
