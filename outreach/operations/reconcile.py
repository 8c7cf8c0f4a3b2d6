"""
Reconciliation Engine: bring the Tracker in line with the Registry.

Every Registry company claims one Tracker row: by id first, then by
normalised name (id healing). Further unclaimed rows with the same name
are duplicates. Tracker rows nobody claimed are copied into the Registry.

The plan is computed identically for preview and apply; preview only
skips the writes.
"""

import logging
from dataclasses import dataclass, field

from outreach.ids import IdCodec
from outreach.sheets import layout
from outreach.sheets.a1 import cell, quote_sheet_name
from outreach.sheets.base import CellWrite
from outreach.snapshot import Snapshot, TrackerRecord, read_snapshot

from .base import (
    ApplyRunner,
    OperationContext,
    delete_rows_descending,
    id_cell_write,
    record_audit,
    write_cells,
)
from .bootstrap import ensure_tracker_sheets

logger = logging.getLogger(__name__)


@dataclass
class NameCorrection:
    id: str
    row_number: int
    old_name: str
    new_name: str


@dataclass
class IdHealing:
    name: str
    row_number: int
    old_id: str
    new_id: str


@dataclass
class DuplicateRow:
    row_number: int
    id: str
    name: str


@dataclass
class ReconcilePlan:
    registry_sheet: str
    tracker_sheet: str
    tracker_additions: list[list[str]] = field(default_factory=list)
    registry_additions: list[list[str]] = field(default_factory=list)
    name_corrections: list[NameCorrection] = field(default_factory=list)
    id_healings: list[IdHealing] = field(default_factory=list)
    duplicates: list[DuplicateRow] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.tracker_additions
            or self.registry_additions
            or self.name_corrections
            or self.id_healings
            or self.duplicates
        )

    def stats(self) -> dict:
        return {
            "added": len(self.tracker_additions),
            "added_to_database": len(self.registry_additions),
            "corrected": len(self.name_corrections) + len(self.id_healings),
            "duplicates_removed": len(self.duplicates),
        }

    def details(self) -> dict:
        return {
            "added": [{"id": r[layout.TRK_ID], "name": r[layout.TRK_NAME]} for r in self.tracker_additions],
            "name_corrections": [
                {"id": c.id, "old_name": c.old_name, "new_name": c.new_name} for c in self.name_corrections
            ],
            "id_changes": [{"name": h.name, "old_id": h.old_id, "new_id": h.new_id} for h in self.id_healings],
            "missing_in_database": [
                {"id": r[layout.REG_ID], "name": r[layout.REG_NAME]} for r in self.registry_additions
            ],
            "duplicates_removed": [
                {"row_number": d.row_number, "id": d.id or "Unknown", "name": d.name or "Unknown"}
                for d in self.duplicates
            ],
        }

    def name_writes(self) -> list[CellWrite]:
        return [
            CellWrite(range=cell(self.tracker_sheet, layout.TRK_NAME, c.row_number), value=c.new_name)
            for c in self.name_corrections
        ]

    def id_writes(self) -> list[CellWrite]:
        return [id_cell_write(self.tracker_sheet, h.row_number, h.new_id) for h in self.id_healings]


@dataclass
class ReconcileResult:
    preview: bool
    stats: dict
    details: dict
    bootstrap: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"preview": self.preview, "stats": self.stats, "details": self.details}


def plan_reconcile(snapshot: Snapshot, codec: IdCodec) -> ReconcilePlan:
    """Pure: claim Tracker rows for every Registry company and collect the fixes."""
    tracker = snapshot.tracker
    companies = snapshot.registry.companies(codec)
    canonical_numbers = {c.number for c in companies}
    plan = ReconcilePlan(registry_sheet=snapshot.registry.sheet_name, tracker_sheet=tracker.sheet_name)

    records = [r for r in tracker.records if not r.is_blank]
    by_name: dict[str, list[TrackerRecord]] = {}
    for rec in records:
        if rec.name:
            by_name.setdefault(rec.normalized_name, []).append(rec)
    claimed: set[int] = set()

    def first_unclaimed(candidates):
        return next((r for r in candidates if r.row_number not in claimed), None)

    for company in companies:
        normalized = company.normalized_name
        primary = first_unclaimed(r for r in records if r.number == company.number)
        if primary is None and normalized:
            primary = first_unclaimed(by_name.get(normalized, []))

        if primary is None:
            if not company.name:
                logger.warning(f"Reconcile: {company.id} has no name and no tracker row; skipped")
                continue
            plan.tracker_additions.append(layout.tracker_row(company.id, company.name))
            continue

        claimed.add(primary.row_number)
        if company.name and primary.name != company.name:
            plan.name_corrections.append(
                NameCorrection(id=company.id, row_number=primary.row_number, old_name=primary.name, new_name=company.name)
            )
        if primary.id != company.id:
            plan.id_healings.append(
                IdHealing(name=company.name, row_number=primary.row_number, old_id=primary.id, new_id=company.id)
            )

        for other in by_name.get(normalized, []) if normalized else []:
            if other.row_number in claimed:
                continue
            # another company's own row; it will claim it itself
            if other.number in canonical_numbers and other.number != company.number:
                continue
            claimed.add(other.row_number)
            plan.duplicates.append(DuplicateRow(row_number=other.row_number, id=other.id, name=other.name))

    _plan_missing_in_registry(plan, snapshot, codec, [r for r in records if r.row_number not in claimed])
    plan.duplicates.sort(key=lambda d: d.row_number, reverse=True)
    return plan


def _plan_missing_in_registry(
    plan: ReconcilePlan, snapshot: Snapshot, codec: IdCodec, unclaimed: list[TrackerRecord]
) -> None:
    """Copy unclaimed Tracker rows into the Registry, one per distinct name."""
    used = set(snapshot.registry.occupied())
    next_free = max(snapshot.occupied(), default=0) + 1
    seen_names: set[str] = set()

    for rec in unclaimed:
        if not rec.name:
            continue
        if rec.normalized_name in seen_names:
            plan.duplicates.append(DuplicateRow(row_number=rec.row_number, id=rec.id, name=rec.name))
            continue
        seen_names.add(rec.normalized_name)

        number = rec.number
        if number is None or number in used:
            number = next_free
            next_free += 1
        used.add(number)
        company_id = codec.format(number)
        if rec.id != company_id:
            plan.id_healings.append(
                IdHealing(name=rec.name, row_number=rec.row_number, old_id=rec.id, new_id=company_id)
            )
        plan.registry_additions.append(
            layout.registry_row(company_id, rec.name, sponsorship_tier=rec.sponsorship_tier, is_active=True)
        )


def apply_reconcile(ctx: OperationContext, plan: ReconcilePlan) -> None:
    cfg = ctx.config
    store = ctx.store
    runner = ApplyRunner("reconcile", plan.stats())

    if plan.registry_additions:
        runner.step(
            "append registry rows",
            store.append_rows,
            cfg.registry_spreadsheet_id,
            f"{quote_sheet_name(plan.registry_sheet)}!A:N",
            plan.registry_additions,
        )
    if plan.tracker_additions:
        runner.step(
            "append tracker rows",
            store.append_rows,
            cfg.tracker_spreadsheet_id,
            f"{quote_sheet_name(plan.tracker_sheet)}!A:N",
            plan.tracker_additions,
        )
    write_cells(runner, store, cfg.tracker_spreadsheet_id, plan.name_writes(), cfg.batch_size, "correct names")
    write_cells(runner, store, cfg.tracker_spreadsheet_id, plan.id_writes(), cfg.batch_size, "heal ids")
    delete_rows_descending(
        runner,
        store,
        cfg.tracker_spreadsheet_id,
        plan.tracker_sheet,
        [d.row_number for d in plan.duplicates],
        "remove duplicates",
    )


def reconcile(ctx: OperationContext, preview: bool = False) -> ReconcileResult:
    bootstrap = []
    if not preview:
        bootstrap = ensure_tracker_sheets(ctx.store, ctx.config.tracker_spreadsheet_id)

    snapshot = read_snapshot(ctx.store, ctx.config, ctx.codec)
    plan = plan_reconcile(snapshot, ctx.codec)
    stats = plan.stats()
    prefix = "[PREVIEW] " if preview else ""
    logger.info(
        f"{prefix}Reconcile: {stats['added']} to add, {stats['added_to_database']} to copy into the registry, "
        f"{stats['corrected']} to correct, {stats['duplicates_removed']} duplicate(s)"
    )

    if not preview and not plan.is_empty:
        with ctx.invalidating():
            apply_reconcile(ctx, plan)
        record_audit(ctx, "SYNC_DATABASE", "Reconciled tracker with company database", stats)
    return ReconcileResult(preview=preview, stats=stats, details=plan.details(), bootstrap=bootstrap)
