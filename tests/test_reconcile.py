"""Tests for the Reconciliation Engine (sync-database)."""

from outreach.operations import reconcile
from outreach.sheets import layout
from tests.fixtures.workbook import REGISTRY_ID, REGISTRY_SHEET, TRACKER_ID, TRACKER_SHEET, build_store


def drifted_store(**kwargs):
    return build_store(
        registry=[
            ("ME-0001", "Alpha"),
            ("ME-0002", "Beta Corp"),
            ("ME-0003", "Gamma"),
            ("ME-0010", "Acme Pty"),
        ],
        tracker=[
            ("ME-0001", "Alpha"),
            ("ME-0009", "beta corp"),
            ("ME-0010", "Acme Pty"),
            ("ME-0014", "acme  pty"),
            ("ME-0020", "Delta"),
            ("", "Echo"),
            ("ME-0020", "delta"),
        ],
        **kwargs,
    )


def tracker_pairs(store):
    return [(r[layout.TRK_ID], r[layout.TRK_NAME]) for r in store.data_rows(TRACKER_ID, TRACKER_SHEET)]


# ============================================================
# Plan contents
# ============================================================


class TestReconcilePlan:
    def test_stats(self, make_ctx):
        result = reconcile(make_ctx(drifted_store()), preview=True)
        assert result.preview is True
        assert result.stats == {"added": 1, "added_to_database": 2, "corrected": 3, "duplicates_removed": 2}

    def test_details(self, make_ctx):
        details = reconcile(make_ctx(drifted_store()), preview=True).details

        assert details["added"] == [{"id": "ME-0003", "name": "Gamma"}]
        assert details["name_corrections"] == [{"id": "ME-0002", "old_name": "beta corp", "new_name": "Beta Corp"}]
        assert details["id_changes"] == [
            {"name": "Beta Corp", "old_id": "ME-0009", "new_id": "ME-0002"},
            {"name": "Echo", "old_id": "", "new_id": "ME-0021"},
        ]
        assert details["missing_in_database"] == [
            {"id": "ME-0020", "name": "Delta"},
            {"id": "ME-0021", "name": "Echo"},
        ]
        assert [d["row_number"] for d in details["duplicates_removed"]] == [8, 5]

    def test_acme_duplicate_row_deleted(self, make_ctx):
        store = build_store(
            registry=[("ME-0010", "Acme Pty")],
            tracker=[("ME-0010", "Acme Pty"), ("ME-0014", "ACME Pty")],
        )
        result = reconcile(make_ctx(store))
        assert result.details["duplicates_removed"] == [{"row_number": 3, "id": "ME-0014", "name": "ACME Pty"}]
        assert tracker_pairs(store) == [("ME-0010", "Acme Pty")]

    def test_row_owned_by_other_company_not_treated_as_duplicate(self, make_ctx):
        store = build_store(
            registry=[("ME-0001", "Acme"), ("ME-0002", "Acme")],
            tracker=[("ME-0001", "Acme"), ("ME-0002", "Acme")],
        )
        result = reconcile(make_ctx(store), preview=True)
        assert result.stats == {"added": 0, "added_to_database": 0, "corrected": 0, "duplicates_removed": 0}

    def test_legacy_id_format_healed(self, make_ctx):
        store = build_store(registry=[("ME-0012", "Legacy")], tracker=[("ME-12", "Legacy")])
        result = reconcile(make_ctx(store), preview=True)
        assert result.details["id_changes"] == [{"name": "Legacy", "old_id": "ME-12", "new_id": "ME-0012"}]


# ============================================================
# Apply
# ============================================================


class TestReconcileApply:
    def test_apply_converges_both_stores(self, make_ctx):
        store = drifted_store()
        reconcile(make_ctx(store))

        assert tracker_pairs(store) == [
            ("ME-0001", "Alpha"),
            ("ME-0002", "Beta Corp"),
            ("ME-0010", "Acme Pty"),
            ("ME-0020", "Delta"),
            ("ME-0021", "Echo"),
            ("ME-0003", "Gamma"),
        ]
        registry = store.data_rows(REGISTRY_ID, REGISTRY_SHEET)
        assert [(r[layout.REG_ID], r[layout.REG_NAME]) for r in registry][-2:] == [
            ("ME-0020", "Delta"),
            ("ME-0021", "Echo"),
        ]
        assert registry[-1][layout.REG_IS_ACTIVE] == "TRUE"
        assert len(registry[-1]) == len(layout.REGISTRY_HEADERS)

    def test_new_tracker_row_defaults(self, make_ctx):
        store = drifted_store()
        reconcile(make_ctx(store))
        gamma = store.data_rows(TRACKER_ID, TRACKER_SHEET)[-1]
        assert gamma[layout.TRK_STATUS] == "To Contact"
        assert gamma[layout.TRK_ASSIGNED] == "Unassigned"
        assert gamma[layout.TRK_URGENCY] == "0"

    def test_second_run_is_empty(self, make_ctx):
        store = drifted_store()
        reconcile(make_ctx(store))
        writes = len(store.write_calls())

        again = reconcile(make_ctx(store))
        assert again.stats == {"added": 0, "added_to_database": 0, "corrected": 0, "duplicates_removed": 0}
        assert len(store.write_calls()) == writes

    def test_preview_and_apply_report_same_stats(self, make_ctx):
        preview = reconcile(make_ctx(drifted_store()), preview=True)
        applied = reconcile(make_ctx(drifted_store()), preview=False)
        assert preview.stats == applied.stats
        assert preview.details == applied.details

    def test_preview_writes_nothing(self, make_ctx, cache):
        store = drifted_store()
        cache.set("sheet_data", "cached")
        reconcile(make_ctx(store), preview=True)
        assert store.write_calls() == []
        assert cache.get("sheet_data") == "cached"

    def test_apply_order(self, make_ctx):
        store = drifted_store(with_logs=True)
        reconcile(make_ctx(store))
        methods = [c[0] for c in store.write_calls()]
        # bootstrap adds Thread_History, then the plan, then the audit row
        first_append = methods.index("append_rows")
        assert methods[:first_append] == ["add_sheet", "batch_write_cells"]
        assert methods[first_append:first_append + 2] == ["append_rows", "append_rows"]
        assert methods[-1] == "append_rows"
        assert methods[-3:-1] == ["delete_rows", "delete_rows"]

    def test_bootstrap_and_audit_log(self, make_ctx):
        store = drifted_store()
        result = reconcile(make_ctx(store))
        sheets = store.get_sheet_names(TRACKER_ID)
        assert sheets == [TRACKER_SHEET, layout.LOGS_SHEET, layout.THREAD_HISTORY_SHEET]
        assert result.bootstrap

        logs = store.data_rows(TRACKER_ID, layout.LOGS_SHEET)
        assert store.grid(TRACKER_ID, layout.LOGS_SHEET)[0] == layout.LOGS_HEADERS
        assert len(logs) == 1
        assert logs[0][2] == "SYNC_DATABASE"
