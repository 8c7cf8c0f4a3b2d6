"""
Identifier gap scan and repair.

Repair renumbers the distinct Registry ids to their 1-based rank, rewriting
id cells by value in both stores. Rows never move.
"""

import logging
from dataclasses import dataclass, field

from outreach.ids import IdCodec
from outreach.sheets.base import CellWrite
from outreach.snapshot import RegistrySnapshot, Snapshot, read_snapshot

from .base import ApplyRunner, OperationContext, id_cell_write, record_audit, write_cells

logger = logging.getLogger(__name__)


@dataclass
class GapScan:
    missing_ids: list[str]
    min_id: str | None
    max_id: str | None
    total_companies: int

    @property
    def count(self) -> int:
        return len(self.missing_ids)

    def to_dict(self) -> dict:
        return {
            "missing_ids": self.missing_ids,
            "count": self.count,
            "min_id": self.min_id,
            "max_id": self.max_id,
            "total_companies": self.total_companies,
        }


@dataclass
class GapRepairPlan:
    id_map: dict[int, int]
    registry_writes: list[CellWrite] = field(default_factory=list)
    tracker_writes: list[CellWrite] = field(default_factory=list)
    collisions: list[str] = field(default_factory=list)

    def changes(self, codec: IdCodec) -> list[tuple[str, str]]:
        return [(codec.format(old), codec.format(new)) for old, new in self.id_map.items()]

    def to_dict(self, codec: IdCodec) -> dict:
        return {
            "changes": [list(c) for c in self.changes(codec)],
            "registry_cell_writes": len(self.registry_writes),
            "tracker_cell_writes": len(self.tracker_writes),
            "collisions": self.collisions,
        }


@dataclass
class GapRepairResult:
    changes: list[tuple[str, str]]
    total_renumbered: int
    collisions: list[str]
    plan: dict

    def to_dict(self) -> dict:
        return {
            "changes": [{"old_id": old, "new_id": new} for old, new in self.changes],
            "total_renumbered": self.total_renumbered,
            "collisions": self.collisions,
        }


def scan_gaps(registry: RegistrySnapshot, codec: IdCodec) -> GapScan:
    numbers = sorted(registry.occupied())
    if not numbers:
        return GapScan(missing_ids=[], min_id=None, max_id=None, total_companies=0)
    present = set(numbers)
    missing = [codec.format(n) for n in range(numbers[0], numbers[-1] + 1) if n not in present]
    return GapScan(
        missing_ids=missing,
        min_id=codec.format(numbers[0]),
        max_id=codec.format(numbers[-1]),
        total_companies=len(numbers),
    )


def plan_gap_repair(snapshot: Snapshot, codec: IdCodec) -> GapRepairPlan:
    registry_numbers = sorted(snapshot.registry.occupied())
    id_map = {old: rank for rank, old in enumerate(registry_numbers, 1) if old != rank}
    if not id_map:
        return GapRepairPlan(id_map={})

    registry = snapshot.registry
    tracker = snapshot.tracker
    registry_writes = [
        id_cell_write(registry.sheet_name, row.row_number, codec.format(id_map[row.number]))
        for row in registry.rows
        if row.number in id_map
    ]
    tracker_writes = [
        id_cell_write(tracker.sheet_name, rec.row_number, codec.format(id_map[rec.number]))
        for rec in tracker.records
        if rec.number in id_map
    ]

    # Tracker-only ids that will now share a value with a renumbered company
    targets = set(id_map.values())
    tracker_only = tracker.occupied() - set(registry_numbers)
    collisions = [codec.format(n) for n in sorted(tracker_only & targets)]
    if collisions:
        logger.warning(f"Gap repair: tracker-only id(s) collide with renumbered companies: {collisions}")

    return GapRepairPlan(
        id_map=id_map,
        registry_writes=registry_writes,
        tracker_writes=tracker_writes,
        collisions=collisions,
    )


def apply_gap_repair(ctx: OperationContext, plan: GapRepairPlan) -> None:
    cfg = ctx.config
    runner = ApplyRunner("repair_gaps", plan.to_dict(ctx.codec))
    write_cells(runner, ctx.store, cfg.registry_spreadsheet_id, plan.registry_writes, cfg.batch_size, "renumber registry")
    write_cells(runner, ctx.store, cfg.tracker_spreadsheet_id, plan.tracker_writes, cfg.batch_size, "renumber tracker")


def repair_gaps(ctx: OperationContext) -> GapRepairResult:
    codec = ctx.codec
    snapshot = read_snapshot(ctx.store, ctx.config, codec)
    plan = plan_gap_repair(snapshot, codec)
    changes = plan.changes(codec)
    if not plan.id_map:
        logger.info("Gap repair: identifiers already dense, nothing to do")
        return GapRepairResult(changes=[], total_renumbered=0, collisions=[], plan=plan.to_dict(codec))

    logger.info(f"Gap repair: renumbering {len(changes)} company id(s)")
    with ctx.invalidating(everything=True):
        apply_gap_repair(ctx, plan)
    record_audit(ctx, "FIX_ID_GAPS", f"Renumbered {len(changes)} company id(s)", {"changes": changes})
    return GapRepairResult(
        changes=changes,
        total_renumbered=len(changes),
        collisions=plan.collisions,
        plan=plan.to_dict(codec),
    )
