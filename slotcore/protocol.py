"""Serialized shapes: override table artifacts and spin outcomes."""
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field


class TableLayout(str, Enum):
    """Storage layout of an override table."""

    FLAT = "flat"
    PACKED = "packed"
    CHUNKED = "chunked"


# === Override table artifact ===

# Stored tier values are PayoutTier ints (3 bits)
TierValue = Annotated[int, Field(ge=0, le=7)]


class TableChunk(BaseModel):
    """One contiguous key range of a chunked table."""

    min_key: int
    max_key: int
    entries: dict[int, TierValue]


class OverrideTableArtifact(BaseModel):
    """payout_table_<n>.json written by the table generator."""

    reel_count: int = Field(..., ge=3, le=7)
    layout: TableLayout
    rules_hash: str
    total_combinations: int
    override_count: int
    compression_ratio: float

    # Exactly one payload is set, depending on layout
    entries: dict[int, TierValue] | None = None
    packing_factor: int | None = Field(default=None, ge=1)
    slots: dict[int, Annotated[int, Field(ge=0)]] | None = None
    chunks: list[TableChunk] | None = None


# === Spin outcome ===


class SpinOutcome(BaseModel):
    """Result sampled from the payline when a spin enters REWARD."""

    reel_count: int
    symbols: list[int]
    key: int
    tier: int
    tier_name: str
    payout: int = Field(..., description="Display credits counted down in REWARD")
    external: bool = Field(default=False, description="Result supplied by the caller")
