"""Tests for identifier gap scan and repair."""

from outreach.operations import repair_gaps, scan_gaps
from outreach.snapshot import read_registry
from tests.fixtures.workbook import REGISTRY_ID, REGISTRY_SHEET, TRACKER_ID, TRACKER_SHEET, build_store, store_config


def gapped_store():
    return build_store(
        registry=[
            ("ME-0001", "A", "a1"),
            ("ME-0002", "B", "b1"),
            ("ME-0004", "D", "d1"),
            ("ME-0007", "G", "g1"),
            ("ME-0004", "D", "d2"),
        ],
        tracker=[("ME-0001", "A"), ("ME-0002", "B"), ("ME-0004", "D"), ("ME-0007", "G")],
    )


# ============================================================
# Scan
# ============================================================


class TestScanGaps:
    def test_reports_missing_ids(self, codec):
        scan = scan_gaps(read_registry(gapped_store(), store_config(), codec), codec)
        assert scan.missing_ids == ["ME-0003", "ME-0005", "ME-0006"]
        assert scan.count == 3
        assert scan.min_id == "ME-0001"
        assert scan.max_id == "ME-0007"
        assert scan.total_companies == 4

    def test_empty_registry(self, codec):
        scan = scan_gaps(read_registry(build_store(), store_config(), codec), codec)
        assert scan.to_dict() == {
            "missing_ids": [],
            "count": 0,
            "min_id": None,
            "max_id": None,
            "total_companies": 0,
        }


# ============================================================
# Repair
# ============================================================


class TestRepairGaps:
    def test_renumbers_to_rank(self, make_ctx):
        store = gapped_store()
        result = repair_gaps(make_ctx(store))

        assert result.changes == [("ME-0004", "ME-0003"), ("ME-0007", "ME-0004")]
        assert result.total_renumbered == 2
        assert store.column(REGISTRY_ID, REGISTRY_SHEET) == ["ME-0001", "ME-0002", "ME-0003", "ME-0004", "ME-0003"]
        assert store.column(TRACKER_ID, TRACKER_SHEET) == ["ME-0001", "ME-0002", "ME-0003", "ME-0004"]

    def test_rows_never_move(self, make_ctx):
        store = gapped_store()
        repair_gaps(make_ctx(store))
        assert not [c for c in store.calls if c[0] in ("insert_rows", "delete_rows", "append_rows")]

    def test_second_run_is_a_no_op(self, make_ctx, cache):
        store = gapped_store()
        repair_gaps(make_ctx(store))
        cache.set("sheet_data", "fresh")
        writes_before = len(store.write_calls())

        result = repair_gaps(make_ctx(store))
        assert result.changes == []
        assert len(store.write_calls()) == writes_before
        # nothing changed, nothing invalidated
        assert cache.get("sheet_data") == "fresh"

    def test_writes_chunked_by_batch_size(self, make_ctx):
        registry = [(f"ME-{2 * i:04d}", f"C{i}") for i in range(1, 8)]
        store = build_store(registry=registry, tracker=[])
        repair_gaps(make_ctx(store, batch_size=3))
        batches = [c for c in store.calls if c[0] == "batch_write_cells" and c[1] == REGISTRY_ID]
        assert [len(c[2]) for c in batches] == [3, 3, 1]

    def test_tracker_only_collision_reported(self, make_ctx):
        store = build_store(
            registry=[("ME-0001", "A"), ("ME-0003", "C")],
            tracker=[("ME-0001", "A"), ("ME-0002", "Tracker Only"), ("ME-0003", "C")],
        )
        result = repair_gaps(make_ctx(store))
        assert result.changes == [("ME-0003", "ME-0002")]
        assert result.collisions == ["ME-0002"]

    def test_unparsable_ids_left_alone(self, make_ctx):
        store = build_store(registry=[("ME-0001", "A"), ("pending", "X"), ("ME-0005", "E")], tracker=[])
        repair_gaps(make_ctx(store))
        assert store.column(REGISTRY_ID, REGISTRY_SHEET) == ["ME-0001", "pending", "ME-0002"]
