"""Override table layout and artifact tests."""
import json

import pytest

from slotcore.config_hash import get_config_hash
from slotcore.errors import ErrorCode, TableArtifactError
from slotcore.logic.models import PayoutTier
from slotcore.logic.table_builder import build_override_entries
from slotcore.logic.tables import (
    ChunkedOverrideTable,
    FlatOverrideTable,
    PackedOverrideTable,
    artifact_path,
    load_table,
    save_table,
    table_from_entries,
)
from slotcore.protocol import TableLayout


@pytest.fixture(scope="class")
def five_reel_entries():
    entries, _ = build_override_entries(5)
    return entries


class TestLayoutsAreLossless:
    """Packed and chunked layouts answer exactly like the flat table."""

    @pytest.mark.parametrize("layout", list(TableLayout))
    def test_same_lookups_as_flat(self, five_reel_entries, layout):
        flat = FlatOverrideTable(5, five_reel_entries)
        other = table_from_entries(5, five_reel_entries, layout)
        assert other.layout is layout
        assert len(other) == len(flat)
        assert other.as_dict() == flat.as_dict()
        for key in range(11111, 66667, 7):
            assert other.get(key) is flat.get(key)

    def test_missing_key_is_lose(self, five_reel_entries):
        packed = PackedOverrideTable.from_entries(5, five_reel_entries)
        assert packed.get(66666) is PayoutTier.LOSE
        assert 66666 not in packed


class TestPackedTable:
    """3-bit tiers in slots keyed by key // 10."""

    def test_slot_math(self):
        table = PackedOverrideTable.from_entries(5, {
            11112: PayoutTier.MEDIUM_WIN,
            11114: PayoutTier.SMALL_WIN,
            22134: PayoutTier.SMALL_WIN,
        })
        assert table.slot_count == 2
        assert table.get(11112) is PayoutTier.MEDIUM_WIN
        assert table.get(11114) is PayoutTier.SMALL_WIN
        assert table.get(11113) is PayoutTier.LOSE
        assert table.as_dict() == {
            11112: PayoutTier.MEDIUM_WIN,
            11114: PayoutTier.SMALL_WIN,
            22134: PayoutTier.SMALL_WIN,
        }

    def test_packed_word_layout(self):
        table = PackedOverrideTable.from_entries(5, {11112: PayoutTier.MEDIUM_WIN})
        payload = table.to_artifact().slots
        assert payload == {1111: PayoutTier.MEDIUM_WIN << 6}

    def test_lose_entries_are_not_stored(self):
        table = PackedOverrideTable.from_entries(4, {1111: PayoutTier.LOSE})
        assert len(table) == 0


class TestChunkedTable:
    def test_chunks_split_by_size(self, five_reel_entries):
        table = ChunkedOverrideTable.from_entries(5, five_reel_entries, chunk_size=100)
        expected_chunks = -(-len(five_reel_entries) // 100)
        assert table.chunk_count == expected_chunks

    def test_lookup_outside_ranges(self):
        table = ChunkedOverrideTable.from_entries(
            5, {22134: PayoutTier.SMALL_WIN, 11112: PayoutTier.MEDIUM_WIN}, chunk_size=1
        )
        assert table.get(11111) is PayoutTier.LOSE
        assert table.get(11112) is PayoutTier.MEDIUM_WIN
        assert table.get(20000) is PayoutTier.LOSE
        assert table.get(22134) is PayoutTier.SMALL_WIN
        assert table.get(66666) is PayoutTier.LOSE


class TestArtifacts:
    """JSON artifacts round-trip and reject stale or malformed files."""

    @pytest.mark.parametrize("layout", list(TableLayout))
    def test_round_trip(self, tmp_path, five_reel_entries, layout):
        table = table_from_entries(5, five_reel_entries, layout)
        path = artifact_path(5, tmp_path)
        artifact = save_table(table, path)

        assert path.name == "payout_table_5.json"
        assert artifact.rules_hash == get_config_hash()
        assert artifact.override_count == len(five_reel_entries)

        loaded = load_table(path)
        assert loaded.layout is layout
        assert loaded.as_dict() == table.as_dict()

    def test_stale_rules_hash_rejected(self, tmp_path):
        path = artifact_path(4, tmp_path)
        save_table(FlatOverrideTable(4, {1111: PayoutTier.MEDIUM_WIN}), path)
        data = json.loads(path.read_text())
        data["rules_hash"] = "0" * 16
        path.write_text(json.dumps(data))

        with pytest.raises(TableArtifactError) as exc_info:
            load_table(path)
        assert exc_info.value.code is ErrorCode.TABLE_ARTIFACT_INVALID
        assert load_table(path, check_hash=False).get(1111) is PayoutTier.MEDIUM_WIN

    def test_override_count_mismatch_rejected(self, tmp_path):
        path = artifact_path(4, tmp_path)
        save_table(FlatOverrideTable(4, {1111: PayoutTier.MEDIUM_WIN}), path)
        data = json.loads(path.read_text())
        data["override_count"] = 2
        path.write_text(json.dumps(data))

        with pytest.raises(TableArtifactError, match="declares 2"):
            load_table(path)

    def test_missing_payload_rejected(self, tmp_path):
        path = artifact_path(4, tmp_path)
        save_table(FlatOverrideTable(4, {1111: PayoutTier.MEDIUM_WIN}), path)
        data = json.loads(path.read_text())
        data["layout"] = "packed"
        path.write_text(json.dumps(data))

        with pytest.raises(TableArtifactError, match="no packed payload"):
            load_table(path)

    @pytest.mark.parametrize("tier", [9, -1])
    def test_out_of_range_tier_rejected(self, tmp_path, tier):
        path = artifact_path(4, tmp_path)
        save_table(FlatOverrideTable(4, {1111: PayoutTier.MEDIUM_WIN}), path)
        data = json.loads(path.read_text())
        data["entries"] = {"1111": tier}
        path.write_text(json.dumps(data))

        with pytest.raises(TableArtifactError):
            load_table(path)

    def test_out_of_range_chunk_tier_rejected(self, tmp_path):
        path = artifact_path(4, tmp_path)
        save_table(ChunkedOverrideTable.from_entries(4, {1111: PayoutTier.MEDIUM_WIN}), path)
        data = json.loads(path.read_text())
        data["chunks"][0]["entries"] = {"1111": 8}
        path.write_text(json.dumps(data))

        with pytest.raises(TableArtifactError):
            load_table(path)

    def test_malformed_json_rejected(self, tmp_path):
        path = tmp_path / "payout_table_3.json"
        path.write_text("{not json")
        with pytest.raises(TableArtifactError):
            load_table(path)

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(TableArtifactError):
            load_table(tmp_path / "nope.json")
