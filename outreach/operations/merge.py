"""
Merge two companies (survivor absorbs victim).

The victim's Tracker row is physically deleted and every Tracker row below
it moves up one, so their ids are recomputed from the new positions. The
same id changes are propagated to the Registry. Registry contact rows of
either company are kept (retagged to the survivor's final id) or deleted
according to the caller's selection.
"""

import logging
from dataclasses import dataclass, field

from outreach.errors import InconsistentStateError, NotFoundError, ValidationError
from outreach.ids import IdCodec
from outreach.planning import ShiftPlan, plan_collapse_by_position
from outreach.sanitize import DEFAULT_MAX, NAME_MAX, PRIORITY_MAX, sanitize_input
from outreach.sheets import layout
from outreach.sheets.a1 import cell
from outreach.sheets.base import CellWrite
from outreach.snapshot import Snapshot, read_snapshot

from .base import (
    ApplyRunner,
    OperationContext,
    delete_rows_descending,
    id_cell_write,
    record_audit,
    write_cells,
)
from .insert import parse_target

logger = logging.getLogger(__name__)


@dataclass
class MergeStrategy:
    """Values for the surviving Tracker row; None keeps the survivor's own value."""

    name: str | None = None
    status: str | None = None
    assigned_to: str | None = None
    remarks: str | None = None

    def sanitized(self) -> "MergeStrategy":
        def clean(value, limit):
            return None if value is None else sanitize_input(value, limit)

        return MergeStrategy(
            name=clean(self.name, NAME_MAX) or None,
            status=clean(self.status, PRIORITY_MAX),
            assigned_to=clean(self.assigned_to, PRIORITY_MAX),
            remarks=clean(self.remarks, DEFAULT_MAX),
        )


def resolve_final_id(id_changes: dict[int, int], number: int) -> int:
    """Where an id ends up once every change of the merge is applied."""
    return id_changes.get(number, number)


@dataclass
class MergePlan:
    survivor: int
    victim: int
    final_survivor: int
    id_changes: dict[int, int]
    shift: ShiftPlan
    registry_sheet: str
    tracker_sheet: str
    registry_writes: list[CellWrite] = field(default_factory=list)
    registry_deletions: list[int] = field(default_factory=list)
    tracker_field_writes: list[CellWrite] = field(default_factory=list)
    tracker_victim_row: int = 0
    tracker_retags: list[CellWrite] = field(default_factory=list)
    contacts_retained: int = 0

    def formatted_changes(self, codec: IdCodec) -> dict[str, str]:
        return {codec.format(old): codec.format(new) for old, new in self.id_changes.items()}

    def to_dict(self, codec: IdCodec) -> dict:
        return {
            "survivor_id": codec.format(self.survivor),
            "victim_id": codec.format(self.victim),
            "final_survivor_id": codec.format(self.final_survivor),
            "id_changes": self.formatted_changes(codec),
            "registry_cell_writes": len(self.registry_writes),
            "registry_rows_deleted": sorted(self.registry_deletions, reverse=True),
            "tracker_victim_row": self.tracker_victim_row,
            "tracker_retags": len(self.tracker_retags),
        }


@dataclass
class MergeResult:
    survivor_id: str
    victim_id: str
    final_survivor_id: str
    contacts_updated: int
    contacts_removed: int
    shifted_count: int
    id_changes: dict[str, str]
    plan: dict

    def to_dict(self) -> dict:
        return {
            "survivor_id": self.survivor_id,
            "victim_id": self.victim_id,
            "final_survivor_id": self.final_survivor_id,
            "contacts_updated": self.contacts_updated,
            "contacts_removed": self.contacts_removed,
            "shifted_count": self.shifted_count,
            "id_changes": self.id_changes,
        }


def plan_merge(
    snapshot: Snapshot,
    codec: IdCodec,
    survivor: int,
    victim: int,
    strategy: MergeStrategy,
    retain_keys: list[str] | None,
) -> MergePlan:
    """
    Pure merge planner.

    retain_keys=None keeps every contact row of both companies; an explicit
    list keeps exactly the rows whose selection keys it names.
    """
    tracker = snapshot.tracker
    registry = snapshot.registry

    survivor_rec = tracker.find(survivor)
    victim_rec = tracker.find(victim)
    missing = [codec.format(n) for n, rec in ((survivor, survivor_rec), (victim, victim_rec)) if rec is None]
    if missing:
        raise NotFoundError(
            f"Company not found in Tracker: {', '.join(missing)}",
            details={"missing": missing},
        )

    repeated = [
        rec.row_number
        for rec in tracker.records
        if rec.number in (survivor, victim) and rec.row_number not in (survivor_rec.row_number, victim_rec.row_number)
    ]
    if repeated:
        raise InconsistentStateError(
            "Outreach Tracker holds more than one row for a merged company; repair it before merging",
            details={"rows": repeated},
        )

    victim_position = victim_rec.row_number - layout.FIRST_DATA_ROW
    shift = plan_collapse_by_position([rec.number for rec in tracker.records], victim_position)
    id_changes: dict[int, int] = {victim: survivor}
    for entry in shift.entries:
        id_changes.setdefault(entry.old, entry.new)
    final_survivor = resolve_final_id(id_changes, survivor)
    final_id = codec.format(final_survivor)

    # Registry: keep/delete candidates, retag everything else that moved
    candidates = [row for row in registry.rows if row.number in (survivor, victim)]
    if retain_keys is None:
        retained_keys = {row.key for row in candidates}
    else:
        retained_keys = set(retain_keys)
        unknown = retained_keys - {row.key for row in candidates}
        if unknown:
            raise InconsistentStateError(
                "Selected contacts no longer match the Company Database; rescan duplicates and retry",
                details={"unknown_keys": sorted(unknown)},
            )
        if candidates and not retained_keys:
            raise ValidationError(
                "At least one contact must be kept when merging",
                details={"candidates": [row.key for row in candidates]},
            )

    resolved_name = strategy.name or survivor_rec.name
    registry_writes: list[CellWrite] = []
    registry_deletions: list[int] = []
    retained = 0
    for row in registry.rows:
        if row.number in (survivor, victim):
            if row.key not in retained_keys:
                registry_deletions.append(row.row_number)
                continue
            retained += 1
            if row.company_id != final_id:
                registry_writes.append(id_cell_write(registry.sheet_name, row.row_number, final_id))
            if resolved_name and row.company_name != resolved_name:
                registry_writes.append(
                    CellWrite(range=cell(registry.sheet_name, layout.REG_NAME, row.row_number), value=resolved_name)
                )
        elif row.number is not None and row.number in id_changes:
            registry_writes.append(
                id_cell_write(registry.sheet_name, row.row_number, codec.format(id_changes[row.number]))
            )

    # Tracker: survivor fields at the pre-deletion address
    sheet = tracker.sheet_name
    row_number = survivor_rec.row_number
    field_writes = []
    if strategy.name is not None:
        field_writes.append(CellWrite(range=cell(sheet, layout.TRK_NAME, row_number), value=strategy.name))
    if strategy.status is not None:
        field_writes.append(CellWrite(range=cell(sheet, layout.TRK_STATUS, row_number), value=strategy.status))
    if strategy.assigned_to is not None:
        field_writes.append(CellWrite(range=cell(sheet, layout.TRK_ASSIGNED, row_number), value=strategy.assigned_to))
    if strategy.remarks is not None:
        field_writes.append(CellWrite(range=cell(sheet, layout.TRK_REMARKS, row_number), value=strategy.remarks))
    field_writes.append(CellWrite(range=cell(sheet, layout.TRK_LAST_UPDATE, row_number), value=layout.utc_now_iso()))

    # Tracker: rows below the victim move up one, retagged at their new address
    tracker_retags = [
        id_cell_write(sheet, rec.row_number - 1, codec.format(id_changes[rec.number]))
        for rec in tracker.records
        if rec.row_number > victim_rec.row_number and rec.number is not None and rec.number != victim
        and rec.number in id_changes
    ]

    return MergePlan(
        survivor=survivor,
        victim=victim,
        final_survivor=final_survivor,
        id_changes=id_changes,
        shift=shift,
        registry_sheet=registry.sheet_name,
        tracker_sheet=sheet,
        registry_writes=registry_writes,
        registry_deletions=registry_deletions,
        tracker_field_writes=field_writes,
        tracker_victim_row=victim_rec.row_number,
        tracker_retags=tracker_retags,
        contacts_retained=retained,
    )


def apply_merge(ctx: OperationContext, plan: MergePlan) -> None:
    cfg = ctx.config
    store = ctx.store
    runner = ApplyRunner("merge_companies", plan.to_dict(ctx.codec))

    write_cells(runner, store, cfg.registry_spreadsheet_id, plan.registry_writes, cfg.batch_size, "retag registry")
    delete_rows_descending(
        runner, store, cfg.registry_spreadsheet_id, plan.registry_sheet, plan.registry_deletions, "delete contacts"
    )

    write_cells(
        runner, store, cfg.tracker_spreadsheet_id, plan.tracker_field_writes, cfg.batch_size, "update survivor"
    )
    delete_rows_descending(
        runner, store, cfg.tracker_spreadsheet_id, plan.tracker_sheet, [plan.tracker_victim_row], "delete victim"
    )
    write_cells(runner, store, cfg.tracker_spreadsheet_id, plan.tracker_retags, cfg.batch_size, "retag tracker")


def merge_companies(
    ctx: OperationContext,
    survivor_id: str,
    victim_id: str,
    strategy: MergeStrategy | None = None,
    retain_keys: list[str] | None = None,
) -> MergeResult:
    codec = ctx.codec
    survivor = parse_target(codec, survivor_id)
    victim = parse_target(codec, victim_id)
    if survivor == victim:
        raise ValidationError("Cannot merge a company into itself", details={"id": survivor_id})
    strategy = (strategy or MergeStrategy()).sanitized()

    snapshot = read_snapshot(ctx.store, ctx.config, codec)
    plan = plan_merge(snapshot, codec, survivor, victim, strategy, retain_keys)
    logger.info(
        f"Merge {codec.format(victim)} into {codec.format(survivor)}: final id {codec.format(plan.final_survivor)}, "
        f"{len(plan.shift)} shifted, {len(plan.registry_deletions)} contact row(s) removed"
    )

    with ctx.invalidating():
        apply_merge(ctx, plan)
    id_changes = plan.formatted_changes(codec)
    record_audit(
        ctx,
        "MERGE_COMPANIES",
        f"Merged {codec.format(victim)} into {codec.format(survivor)}",
        {"final_survivor_id": codec.format(plan.final_survivor), "id_changes": id_changes},
    )
    return MergeResult(
        survivor_id=codec.format(survivor),
        victim_id=codec.format(victim),
        final_survivor_id=codec.format(plan.final_survivor),
        contacts_updated=plan.contacts_retained,
        contacts_removed=len(plan.registry_deletions),
        shifted_count=len(plan.shift),
        id_changes=id_changes,
        plan=plan.to_dict(codec),
    )
