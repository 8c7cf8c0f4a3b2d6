"""
Shift Planner: identifier reassignments caused by structural edits.

All functions are pure. They describe which identifiers change when a
company is inserted at, or removed from, a position of the dense space.

- plan_insert: ids >= pivot move to +1, entries ordered descending so that
  applying them one by one never collides with a not-yet-moved id.
- plan_collapse: ids > pivot move to -1, entries ordered ascending; only
  valid once the row at pivot is gone.
- plan_collapse_by_position: the live-sheet form of collapse. After the
  physical row is deleted every later row moves up one, and its new id is
  recomputed from that position, not from its old id.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from outreach.config import HEADER_ROWS
from outreach.ids import IdCodec


@dataclass(frozen=True)
class ShiftEntry:
    old: int
    new: int


@dataclass
class ShiftPlan:
    """Ordered identifier reassignments; contains only real changes."""

    direction: str
    pivot: int
    entries: list[ShiftEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def as_mapping(self) -> dict[int, int]:
        return {e.old: e.new for e in self.entries}

    def formatted(self, codec: IdCodec) -> list[tuple[str, str]]:
        return [(codec.format(e.old), codec.format(e.new)) for e in self.entries]


def plan_insert(occupied: Iterable[int], pivot: int) -> ShiftPlan:
    """Make room at pivot: every occupied id >= pivot moves up by one."""
    moving = sorted({n for n in occupied if n >= pivot}, reverse=True)
    return ShiftPlan(
        direction="insert",
        pivot=pivot,
        entries=[ShiftEntry(old=n, new=n + 1) for n in moving],
    )


def plan_collapse(occupied: Iterable[int], pivot: int) -> ShiftPlan:
    """Close the hole left by removing pivot: every occupied id > pivot moves down by one."""
    moving = sorted(n for n in set(occupied) if n > pivot)
    return ShiftPlan(
        direction="collapse",
        pivot=pivot,
        entries=[ShiftEntry(old=n, new=n - 1) for n in moving],
    )


def plan_collapse_by_position(
    ids_in_row_order: Sequence[int | None],
    removed_position: int,
    header_offset: int = HEADER_ROWS,
) -> ShiftPlan:
    """
    Recompute ids of the rows below a removed row from their new positions.

    Args:
        ids_in_row_order: Parsed id of each data row, top to bottom (None for
            blank/unparsable cells, which are skipped but still occupy a row).
        removed_position: 0-based data position of the removed row.
        header_offset: Rows above the data; sheet row number = position + 1 + offset.

    The id of a data row is its 1-based sheet row number minus header_offset.
    A row at data position i > removed_position ends up at sheet row
    number i + header_offset (one higher up), hence new id = i.
    """
    entries: list[ShiftEntry] = []
    for position in range(removed_position + 1, len(ids_in_row_order)):
        old = ids_in_row_order[position]
        if old is None:
            continue
        new_row_number = position + header_offset  # 1-based, after the removal
        new = new_row_number - header_offset
        if new != old:
            entries.append(ShiftEntry(old=old, new=new))
    return ShiftPlan(direction="collapse", pivot=removed_position, entries=entries)
