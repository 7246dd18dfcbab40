"""Offline override table generation and verification.

For a reel count, every one of the 6^n combinations is enumerated, classified
with both the closed form and the exact rules, and the disagreements become
the override table. verify_table is the correctness gate: it re-enumerates
everything and fails loudly on any mismatch.
"""
import logging
from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from slotcore.config import settings
from slotcore.errors import InvalidKeyError, TableInconsistencyError
from slotcore.logic.codec import decode, encode, symbol_counts
from slotcore.logic.models import SYMBOL_VALUES, PayoutTier
from slotcore.logic.rules import closed_form_tier, exact_tier
from slotcore.logic.tables import OverrideTable, table_from_entries
from slotcore.protocol import TableLayout
from slotcore.validators import validate_reel_count

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Summary of one reel count's generation run."""

    reel_count: int
    total_combinations: int
    override_count: int
    layout: str = TableLayout.FLAT.value
    tier_counts: dict[str, int] = field(default_factory=dict)
    verified: bool = False

    @property
    def compression_ratio(self) -> float:
        return 1 - self.override_count / self.total_combinations

    def hit_rate(self) -> float:
        """Share of combinations with any non-LOSE tier."""
        losses = self.tier_counts.get(PayoutTier.LOSE.name, 0)
        return 1 - losses / self.total_combinations

    def to_dict(self) -> dict[str, Any]:
        return {
            "reel_count": self.reel_count,
            "total_combinations": self.total_combinations,
            "override_count": self.override_count,
            "compression_ratio": self.compression_ratio,
            "layout": self.layout,
            "tier_counts": dict(self.tier_counts),
            "hit_rate": self.hit_rate(),
            "verified": self.verified,
        }


def _extend(prefix: tuple[int, ...], reel_count: int) -> Iterator[tuple[int, ...]]:
    if len(prefix) == reel_count:
        yield prefix
        return
    for symbol in SYMBOL_VALUES:
        yield from _extend(prefix + (symbol,), reel_count)


def iter_combinations(reel_count: int) -> Iterator[tuple[int, ...]]:
    """All 6^n symbol tuples in ascending key order."""
    validate_reel_count(reel_count)
    return _extend((), reel_count)


def build_override_entries(reel_count: int) -> tuple[dict[int, PayoutTier], GenerationReport]:
    """
    Diff the closed form against the exact rules for every combination.

    Returns the non-LOSE disagreements (LOSE is the lookup default and is
    never stored) and a report with the exact tier histogram.
    """
    entries: dict[int, PayoutTier] = {}
    tiers: Counter[str] = Counter()
    total = 0

    for symbols in iter_combinations(reel_count):
        total += 1
        counts = symbol_counts(symbols)
        exact = exact_tier(counts, reel_count)
        tiers[exact.name] += 1
        if exact is not PayoutTier.LOSE and closed_form_tier(counts, reel_count) is not exact:
            entries[encode(symbols, reel_count)] = exact

    report = GenerationReport(
        reel_count=reel_count,
        total_combinations=total,
        override_count=len(entries),
        tier_counts=dict(tiers),
    )
    logger.info(
        "%d reels: %d/%d combinations need overrides (%.2f%% compression)",
        reel_count, len(entries), total, report.compression_ratio * 100,
    )
    return entries, report


def choose_layout(
    override_count: int,
    requested: TableLayout | None = None,
    reel_count: int | None = None,
) -> TableLayout:
    """
    Explicit layout wins. Otherwise the largest reel counts are chunked and
    other tables are packed once they pass the packing threshold.
    """
    if requested is not None:
        return requested
    if reel_count is not None and reel_count >= settings.chunked_min_reels:
        return TableLayout.CHUNKED
    if override_count > settings.packing_threshold:
        return TableLayout.PACKED
    return TableLayout.FLAT


def verify_table(reel_count: int, table: OverrideTable) -> int:
    """
    Brute-force check closed form plus overrides against the exact rules.

    Also checks minimality: every stored key must have a closed-form result
    of LOSE. Returns the number of combinations checked.

    Raises TABLE_INCONSISTENCY on the first violation.
    """
    if table.reel_count != reel_count:
        raise TableInconsistencyError(
            f"Table is for {table.reel_count} reels, expected {reel_count}"
        )

    checked = 0
    for symbols in iter_combinations(reel_count):
        counts = symbol_counts(symbols)
        key = encode(symbols, reel_count)
        closed = closed_form_tier(counts, reel_count)
        served = closed if closed is not PayoutTier.LOSE else table.get(key)
        expected = exact_tier(counts, reel_count)
        if served is not expected:
            raise TableInconsistencyError(
                f"{reel_count} reels, key {key}: lookup gives {served.name}, "
                f"exact rules give {expected.name}"
            )
        checked += 1

    for key, tier in table.items():
        counts = symbol_counts(_digits(key, reel_count))
        if closed_form_tier(counts, reel_count) is not PayoutTier.LOSE:
            raise TableInconsistencyError(
                f"{reel_count} reels, key {key}: override {tier.name} shadows "
                f"a closed-form result"
            )

    logger.info("%d reels: verified %d combinations", reel_count, checked)
    return checked


def _digits(key: int, reel_count: int) -> list[int]:
    # Corrupt stored keys are an inconsistency, not a codec error.
    try:
        return decode(key, reel_count)
    except InvalidKeyError as e:
        raise TableInconsistencyError(
            f"{reel_count} reels: stored key {key} is not a valid combination"
        ) from e


def build_table(
    reel_count: int,
    layout: TableLayout | None = None,
    verify: bool = True,
) -> tuple[OverrideTable, GenerationReport]:
    """Generate, lay out and (by default) verify one reel count's table."""
    entries, report = build_override_entries(reel_count)
    chosen = choose_layout(len(entries), layout, reel_count)
    table = table_from_entries(reel_count, entries, chosen)
    report.layout = chosen.value
    if verify:
        verify_table(reel_count, table)
        report.verified = True
    return table, report
