"""Tests for OutreachService: locking, cached scans and operation context."""

import pytest

from outreach.errors import NotFoundError, OperationInProgressError, PartialApplyError
from outreach.observability import get_operation
from outreach.operations import CompanyPayload
from tests.fixtures.sheet_store import InMemorySheetStore
from tests.fixtures.workbook import REGISTRY_ID, TRACKER_ID, build_store, dense_store


class RecordingStore(InMemorySheetStore):
    """Remembers the operation name active during each read."""

    def __init__(self, spreadsheets):
        super().__init__(spreadsheets)
        self.operations: list[str | None] = []

    def read_range(self, spreadsheet_id, range_spec):
        self.operations.append(get_operation())
        return super().read_range(spreadsheet_id, range_spec)


def registry_reads(store):
    return [c for c in store.calls if c[0] == "read_range" and c[1] == REGISTRY_ID]


# ============================================================
# Serialisation of structural operations
# ============================================================


class TestStructuralLock:
    def test_concurrent_structural_operation_rejected(self, make_service):
        service = make_service(dense_store(3))
        service._lock.acquire()
        try:
            with pytest.raises(OperationInProgressError) as exc_info:
                service.repair_gaps()
            assert exc_info.value.http_status == 409
        finally:
            service._lock.release()

    def test_lock_released_after_failure(self, make_service):
        store = dense_store(3)
        service = make_service(store)
        with pytest.raises(NotFoundError):
            service.merge_companies("ME-0001", "ME-0042")
        assert service.repair_gaps().changes == []

    def test_preview_does_not_take_the_lock(self, make_service):
        service = make_service(dense_store(3))
        service._lock.acquire()
        try:
            assert service.reconcile(preview=True).stats["added"] == 0
        finally:
            service._lock.release()


# ============================================================
# Cached scans
# ============================================================


class TestCachedScans:
    def test_scans_share_one_snapshot(self, make_service):
        store = dense_store(3)
        service = make_service(store)
        service.scan_gaps()
        service.scan_duplicates()
        assert len(registry_reads(store)) == 1

    def test_structural_operation_invalidates_snapshot(self, make_service):
        store = build_store(registry=[("ME-0001", "A"), ("ME-0003", "C")], tracker=[])
        service = make_service(store)
        assert service.scan_gaps().missing_ids == ["ME-0002"]

        service.repair_gaps()
        assert service.scan_gaps().missing_ids == []
        # the repair reads fresh and the second scan reloads
        assert len(registry_reads(store)) == 3

    def test_failed_insert_invalidates_snapshot(self, make_service):
        store = dense_store(3)
        service = make_service(store)
        assert service.scan_gaps().max_id == "ME-0003"

        store.fail_on("insert_rows", after=1)
        with pytest.raises(PartialApplyError):
            service.insert_company("ME-0002", CompanyPayload(name="New Co"))

        # registry row landed before the tracker insert failed
        assert service.scan_gaps().max_id == "ME-0004"

    def test_snapshot_reads_refresh_sheet_metadata(self, make_service):
        store = dense_store(2)
        service = make_service(store)
        service.scan_gaps()
        assert store.metadata_refreshes == [REGISTRY_ID, TRACKER_ID]

    def test_clear_cache(self, make_service, cache):
        service = make_service(dense_store(1))
        service.scan_gaps()
        service.clear_cache()
        assert cache.stats().size == 0


# ============================================================
# Operation context
# ============================================================


class TestOperationContext:
    def test_operation_name_visible_during_reads(self, make_service):
        store = RecordingStore(dense_store(2).spreadsheets)
        service = make_service(store)
        service.repair_gaps()
        service.scan_gaps()
        assert store.operations[0] == "repair_gaps"
        assert store.operations[-1] == "scan_gaps"
        assert get_operation() is None
