"""Override table storage layouts and their JSON artifacts.

Three interchangeable layouts answer get(key) -> PayoutTier, returning LOSE
for keys that are not stored:

- FlatOverrideTable: one entry per key.
- PackedOverrideTable: tiers packed 3 bits each into slots keyed by
  key // packing_factor, decoded with shift and mask.
- ChunkedOverrideTable: sorted key ranges of bounded size, for targets that
  cap the size of a single storage write.
"""
import bisect
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from slotcore.config import settings
from slotcore.config_hash import get_config_hash
from slotcore.errors import TableArtifactError
from slotcore.logic.models import PayoutTier
from slotcore.protocol import OverrideTableArtifact, TableChunk, TableLayout
from slotcore.validators import validate_reel_count

logger = logging.getLogger(__name__)

TIER_BITS = 3
TIER_MASK = (1 << TIER_BITS) - 1


class OverrideTable(ABC):
    """Read-only key -> tier mapping for one reel count."""

    layout: TableLayout

    def __init__(self, reel_count: int):
        validate_reel_count(reel_count)
        self.reel_count = reel_count

    @abstractmethod
    def get(self, key: int) -> PayoutTier:
        """Stored tier for key, LOSE when absent."""

    @abstractmethod
    def items(self) -> Iterator[tuple[int, PayoutTier]]:
        """Stored (key, tier) pairs in ascending key order."""

    @abstractmethod
    def __len__(self) -> int: ...

    @abstractmethod
    def _payload(self) -> dict[str, Any]: ...

    def __contains__(self, key: int) -> bool:
        return self.get(key) is not PayoutTier.LOSE

    def as_dict(self) -> dict[int, PayoutTier]:
        return dict(self.items())

    def to_artifact(self) -> OverrideTableArtifact:
        total = 6 ** self.reel_count
        return OverrideTableArtifact(
            reel_count=self.reel_count,
            layout=self.layout,
            rules_hash=get_config_hash(),
            total_combinations=total,
            override_count=len(self),
            compression_ratio=1 - len(self) / total,
            **self._payload(),
        )


class FlatOverrideTable(OverrideTable):
    layout = TableLayout.FLAT

    def __init__(self, reel_count: int, entries: Mapping[int, int]):
        super().__init__(reel_count)
        self._entries = {
            int(key): PayoutTier(tier)
            for key, tier in entries.items()
            if tier != PayoutTier.LOSE
        }

    def get(self, key: int) -> PayoutTier:
        return self._entries.get(key, PayoutTier.LOSE)

    def items(self) -> Iterator[tuple[int, PayoutTier]]:
        return iter(sorted(self._entries.items()))

    def __len__(self) -> int:
        return len(self._entries)

    def _payload(self) -> dict[str, Any]:
        return {"entries": {key: int(tier) for key, tier in self.items()}}


class PackedOverrideTable(OverrideTable):
    layout = TableLayout.PACKED

    def __init__(
        self,
        reel_count: int,
        slots: Mapping[int, int],
        packing_factor: int | None = None,
    ):
        super().__init__(reel_count)
        self.packing_factor = packing_factor or settings.packing_factor
        self._slots = {int(slot): int(packed) for slot, packed in slots.items() if packed}
        self._count = sum(1 for _ in self.items())

    @classmethod
    def from_entries(
        cls,
        reel_count: int,
        entries: Mapping[int, int],
        packing_factor: int | None = None,
    ) -> "PackedOverrideTable":
        factor = packing_factor or settings.packing_factor
        slots: dict[int, int] = {}
        for key, tier in entries.items():
            if tier == PayoutTier.LOSE:
                continue
            slot, position = divmod(key, factor)
            slots[slot] = slots.get(slot, 0) | (int(tier) << (position * TIER_BITS))
        return cls(reel_count, slots, factor)

    def get(self, key: int) -> PayoutTier:
        slot, position = divmod(key, self.packing_factor)
        packed = self._slots.get(slot, 0)
        return PayoutTier((packed >> (position * TIER_BITS)) & TIER_MASK)

    def items(self) -> Iterator[tuple[int, PayoutTier]]:
        for slot in sorted(self._slots):
            packed = self._slots[slot]
            for position in range(self.packing_factor):
                tier = (packed >> (position * TIER_BITS)) & TIER_MASK
                if tier:
                    yield slot * self.packing_factor + position, PayoutTier(tier)

    def __len__(self) -> int:
        return self._count

    @property
    def slot_count(self) -> int:
        return len(self._slots)

    def _payload(self) -> dict[str, Any]:
        return {
            "packing_factor": self.packing_factor,
            "slots": dict(sorted(self._slots.items())),
        }


class ChunkedOverrideTable(OverrideTable):
    layout = TableLayout.CHUNKED

    def __init__(self, reel_count: int, chunks: list[TableChunk]):
        super().__init__(reel_count)
        self._chunks = sorted(chunks, key=lambda c: c.min_key)
        self._min_keys = [chunk.min_key for chunk in self._chunks]
        self._entries = [
            {key: PayoutTier(tier) for key, tier in chunk.entries.items()}
            for chunk in self._chunks
        ]

    @classmethod
    def from_entries(
        cls,
        reel_count: int,
        entries: Mapping[int, int],
        chunk_size: int | None = None,
    ) -> "ChunkedOverrideTable":
        size = chunk_size or settings.chunk_size
        keys = sorted(key for key, tier in entries.items() if tier != PayoutTier.LOSE)
        chunks = []
        for start in range(0, len(keys), size):
            part = keys[start:start + size]
            chunks.append(TableChunk(
                min_key=part[0],
                max_key=part[-1],
                entries={key: int(entries[key]) for key in part},
            ))
        return cls(reel_count, chunks)

    def get(self, key: int) -> PayoutTier:
        index = bisect.bisect_right(self._min_keys, key) - 1
        if index < 0 or key > self._chunks[index].max_key:
            return PayoutTier.LOSE
        return self._entries[index].get(key, PayoutTier.LOSE)

    def items(self) -> Iterator[tuple[int, PayoutTier]]:
        for entries in self._entries:
            yield from sorted(entries.items())

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries)

    @property
    def chunk_count(self) -> int:
        return len(self._chunks)

    def _payload(self) -> dict[str, Any]:
        return {"chunks": self._chunks}


def table_from_entries(
    reel_count: int,
    entries: Mapping[int, int],
    layout: TableLayout = TableLayout.FLAT,
) -> OverrideTable:
    """Build a table in the requested layout from key -> tier entries."""
    if layout is TableLayout.PACKED:
        return PackedOverrideTable.from_entries(reel_count, entries)
    if layout is TableLayout.CHUNKED:
        return ChunkedOverrideTable.from_entries(reel_count, entries)
    return FlatOverrideTable(reel_count, entries)


def table_from_artifact(artifact: OverrideTableArtifact) -> OverrideTable:
    """Rebuild a table from its artifact; the payload must match the layout."""
    if artifact.layout is TableLayout.FLAT and artifact.entries is not None:
        table: OverrideTable = FlatOverrideTable(artifact.reel_count, artifact.entries)
    elif artifact.layout is TableLayout.PACKED and artifact.slots is not None:
        table = PackedOverrideTable(
            artifact.reel_count, artifact.slots, artifact.packing_factor
        )
    elif artifact.layout is TableLayout.CHUNKED and artifact.chunks is not None:
        table = ChunkedOverrideTable(artifact.reel_count, artifact.chunks)
    else:
        raise TableArtifactError(
            f"{artifact.reel_count}-reel artifact has no {artifact.layout.value} payload"
        )

    if len(table) != artifact.override_count:
        raise TableArtifactError(
            f"{artifact.reel_count}-reel artifact declares {artifact.override_count} "
            f"overrides but holds {len(table)}"
        )
    return table


def artifact_path(reel_count: int, tables_dir: str | Path | None = None) -> Path:
    base = Path(tables_dir if tables_dir is not None else settings.tables_dir)
    return base / f"payout_table_{reel_count}.json"


def save_table(table: OverrideTable, path: Path) -> OverrideTableArtifact:
    """Write a table artifact as JSON, creating parent directories."""
    artifact = table.to_artifact()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(artifact.model_dump_json(indent=2))
    logger.info(
        "Wrote %d-reel %s table (%d overrides) to %s",
        table.reel_count, table.layout.value, len(table), path,
    )
    return artifact


def load_artifact(path: Path) -> OverrideTableArtifact:
    try:
        return OverrideTableArtifact.model_validate_json(path.read_text())
    except (OSError, ValidationError) as e:
        raise TableArtifactError(f"Cannot read table artifact {path}: {e}") from e


def load_table(path: Path, *, check_hash: bool = True) -> OverrideTable:
    """
    Load a table artifact.

    Raises TABLE_ARTIFACT_INVALID if the file is unreadable, malformed, or
    was generated for a different rules hash.
    """
    artifact = load_artifact(path)
    if check_hash and artifact.rules_hash != get_config_hash():
        raise TableArtifactError(
            f"Table artifact {path} has rules hash {artifact.rules_hash}, "
            f"expected {get_config_hash()}"
        )
    return table_from_artifact(artifact)
