"""
Insert a company at a chosen identifier.

Every company whose id is >= the target moves up by one (in both stores,
contact rows follow their parent), then the new Registry and Tracker rows
are physically inserted right after the last row with a smaller id.
"""

import logging
from dataclasses import dataclass, field

from outreach.errors import InvalidIdError, ValidationError
from outreach.ids import IdCodec
from outreach.planning import ShiftPlan, plan_insert
from outreach.sheets import layout
from outreach.sheets.base import CellWrite
from outreach.snapshot import Snapshot, read_snapshot

from .base import (
    ApplyRunner,
    CompanyPayload,
    OperationContext,
    id_cell_write,
    record_audit,
    write_cells,
)

logger = logging.getLogger(__name__)


@dataclass
class InsertPlan:
    target_id: str
    target: int
    payload: CompanyPayload
    shift: ShiftPlan
    registry_sheet: str
    tracker_sheet: str
    registry_writes: list[CellWrite] = field(default_factory=list)
    tracker_writes: list[CellWrite] = field(default_factory=list)
    registry_insert_index: int = layout.FIRST_DATA_ROW - 1
    tracker_insert_index: int = layout.FIRST_DATA_ROW - 1
    registry_row: list[str] = field(default_factory=list)
    tracker_row: list[str] = field(default_factory=list)
    changes: list[tuple[str, str]] = field(default_factory=list)
    new_total_count: int = 0

    def to_dict(self) -> dict:
        return {
            "target_id": self.target_id,
            "changes": [list(c) for c in self.changes],
            "registry_cell_writes": len(self.registry_writes),
            "tracker_cell_writes": len(self.tracker_writes),
            "registry_insert_row": self.registry_insert_index + 1,
            "tracker_insert_row": self.tracker_insert_index + 1,
        }


@dataclass
class InsertResult:
    inserted_id: str
    companies_shifted: int
    new_total_count: int
    changes: list[tuple[str, str]]
    plan: dict

    def to_dict(self) -> dict:
        return {
            "inserted_id": self.inserted_id,
            "companies_shifted": self.companies_shifted,
            "new_total_count": self.new_total_count,
            "changes": [{"old_id": old, "new_id": new} for old, new in self.changes],
        }


def parse_target(codec: IdCodec, target_id: str) -> int:
    number = codec.parse(target_id)
    if number is None:
        raise InvalidIdError(
            f"Invalid company id {target_id!r}: expected {codec.prefix}-{'N' * codec.width} "
            f"between 1 and {codec.max_value}",
            details={"id": target_id},
        )
    return number


def _insert_index(numbers: list[tuple[int | None, int]], target: int) -> int:
    """0-based sheet index right after the last row whose id is below target."""
    last_row = layout.FIRST_DATA_ROW - 1
    for number, row_number in numbers:
        if number is not None and number < target:
            last_row = max(last_row, row_number)
    return last_row


def plan_insert_company(snapshot: Snapshot, codec: IdCodec, target: int, payload: CompanyPayload) -> InsertPlan:
    """Pure: everything Insert will write, computed from one snapshot."""
    occupied = snapshot.occupied()
    shift = plan_insert(occupied, target)
    if shift and shift.entries[0].new > codec.max_value:
        raise ValidationError(
            f"Cannot insert at {codec.format(target)}: identifier space is full",
            details={"max_id": codec.format(codec.max_value)},
        )

    registry = snapshot.registry
    tracker = snapshot.tracker
    mapping = shift.as_mapping()
    registry_writes = [
        id_cell_write(registry.sheet_name, row.row_number, codec.format(mapping[row.number]))
        for row in registry.rows
        if row.number in mapping
    ]
    tracker_writes = [
        id_cell_write(tracker.sheet_name, rec.row_number, codec.format(mapping[rec.number]))
        for rec in tracker.records
        if rec.number in mapping
    ]

    new_id = codec.format(target)
    return InsertPlan(
        target_id=new_id,
        target=target,
        payload=payload,
        shift=shift,
        registry_sheet=registry.sheet_name,
        tracker_sheet=tracker.sheet_name,
        registry_writes=registry_writes,
        tracker_writes=tracker_writes,
        registry_insert_index=_insert_index([(r.number, r.row_number) for r in registry.rows], target),
        tracker_insert_index=_insert_index([(r.number, r.row_number) for r in tracker.records], target),
        registry_row=payload.registry_row(new_id),
        tracker_row=payload.tracker_row(new_id),
        changes=shift.formatted(codec),
        new_total_count=len(registry.occupied()) + 1,
    )


def apply_insert(ctx: OperationContext, plan: InsertPlan) -> None:
    cfg = ctx.config
    runner = ApplyRunner("insert_company", plan.to_dict())
    write_cells(runner, ctx.store, cfg.registry_spreadsheet_id, plan.registry_writes, cfg.batch_size, "shift registry ids")
    write_cells(runner, ctx.store, cfg.tracker_spreadsheet_id, plan.tracker_writes, cfg.batch_size, "shift tracker ids")
    runner.step(
        "insert registry row",
        ctx.store.insert_rows,
        cfg.registry_spreadsheet_id,
        plan.registry_sheet,
        plan.registry_insert_index,
        [plan.registry_row],
    )
    runner.step(
        "insert tracker row",
        ctx.store.insert_rows,
        cfg.tracker_spreadsheet_id,
        plan.tracker_sheet,
        plan.tracker_insert_index,
        [plan.tracker_row],
    )


def insert_company(ctx: OperationContext, target_id: str, payload: CompanyPayload) -> InsertResult:
    target = parse_target(ctx.codec, target_id)
    clean = payload.sanitized()

    snapshot = read_snapshot(ctx.store, ctx.config, ctx.codec)
    plan = plan_insert_company(snapshot, ctx.codec, target, clean)
    logger.info(
        f"Insert {plan.target_id} ({clean.name!r}): shifting {len(plan.shift)} company id(s), "
        f"{len(plan.registry_writes)} registry + {len(plan.tracker_writes)} tracker cell write(s)"
    )

    with ctx.invalidating(everything=True):
        apply_insert(ctx, plan)
    record_audit(
        ctx,
        "INSERT_COMPANY",
        f"Inserted {clean.name} at {plan.target_id}",
        {"inserted_id": plan.target_id, "changes": plan.changes},
    )
    return InsertResult(
        inserted_id=plan.target_id,
        companies_shifted=len(plan.shift),
        new_total_count=plan.new_total_count,
        changes=plan.changes,
        plan=plan.to_dict(),
    )
