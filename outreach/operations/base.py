"""
Shared plumbing for structural operations.

Each operation is plan (pure, from one Snapshot) -> apply (ordered remote
batches). ApplyRunner records which apply steps completed so a write
failure surfaces as PartialApplyError naming exactly what landed.
"""

import json
import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol, TypeVar

from outreach.config import SNAPSHOT_CACHE_KEY, StoreConfig
from outreach.disciplines import discipline_to_database
from outreach.errors import PartialApplyError, UpstreamUnavailableError, ValidationError
from outreach.ids import IdCodec
from outreach.sanitize import (
    DEFAULT_MAX,
    DISCIPLINE_MAX,
    NAME_MAX,
    PRIORITY_MAX,
    sanitize_input,
)
from outreach.sheets import layout
from outreach.sheets.a1 import cell, quote_sheet_name
from outreach.sheets.base import CellWrite, RowStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Invalidator(Protocol):
    """Cache collaborator notified after structural mutations."""

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


@dataclass
class OperationContext:
    store: RowStore
    config: StoreConfig
    codec: IdCodec
    cache: Invalidator | None = None

    def invalidate(self, key: str = SNAPSHOT_CACHE_KEY) -> None:
        if self.cache is not None:
            self.cache.delete(key)

    def invalidate_all(self) -> None:
        if self.cache is not None:
            self.cache.clear()

    @contextmanager
    def invalidating(self, everything: bool = False) -> Iterator[None]:
        """
        Invalidate cached snapshots when the block exits, including on
        PartialApplyError: a failed apply may already have mutated the stores.
        """
        try:
            yield
        finally:
            if everything:
                self.invalidate_all()
            else:
                self.invalidate()


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ApplyRunner:
    """Run apply steps in order; convert upstream failures into PartialApplyError."""

    def __init__(self, operation: str, plan: dict[str, Any] | None = None):
        self.operation = operation
        self.plan = plan or {}
        self.completed: list[str] = []

    def step(self, name: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            result = func(*args, **kwargs)
        except UpstreamUnavailableError as e:
            logger.error(f"{self.operation}: step '{name}' failed after {len(self.completed)} step(s): {e}")
            raise PartialApplyError(
                operation=self.operation,
                failed_step=name,
                completed_steps=self.completed,
                cause=e,
                plan=self.plan,
            ) from e
        self.completed.append(name)
        return result


def id_cell_write(sheet_name: str, row_number: int, value: str) -> CellWrite:
    return CellWrite(range=cell(sheet_name, 0, row_number), value=value)


def write_cells(
    runner: ApplyRunner,
    store: RowStore,
    spreadsheet_id: str,
    writes: Sequence[CellWrite],
    batch_size: int,
    label: str,
) -> None:
    """Send writes in chunks of batch_size, one apply step per chunk."""
    chunks = list(chunked(writes, batch_size))
    for i, chunk in enumerate(chunks, 1):
        runner.step(f"{label} [{i}/{len(chunks)}]", store.batch_write_cells, spreadsheet_id, list(chunk))


def delete_rows_descending(
    runner: ApplyRunner,
    store: RowStore,
    spreadsheet_id: str,
    sheet_name: str,
    row_numbers: Sequence[int],
    label: str,
) -> None:
    """
    Delete 1-based sheet rows bottom-up.

    Contiguous rows are coalesced into one range. Deleting from the bottom
    keeps every not-yet-deleted row number valid.
    """
    runs: list[tuple[int, int]] = []  # (first, last) inclusive, descending
    for row in sorted(set(row_numbers), reverse=True):
        if runs and runs[-1][0] == row + 1:
            runs[-1] = (row, runs[-1][1])
        else:
            runs.append((row, row))
    for first, last in runs:
        runner.step(
            f"{label} rows {first}-{last}",
            store.delete_rows,
            spreadsheet_id,
            sheet_name,
            first - 1,
            last,
        )


def record_audit(ctx: OperationContext, action: str, details: str, data: dict[str, Any]) -> None:
    """
    Append one row to the Tracker's Logs_DoNotEdit sheet when it exists.

    Audit failures are logged, never raised: the structural change already landed.
    """
    spreadsheet_id = ctx.config.tracker_spreadsheet_id
    try:
        if layout.LOGS_SHEET not in ctx.store.get_sheet_names(spreadsheet_id):
            return
        ctx.store.append_rows(
            spreadsheet_id,
            f"{quote_sheet_name(layout.LOGS_SHEET)}!A:E",
            [[layout.utc_now_iso(), ctx.config.audit_user, action, details, json.dumps(data, default=str)]],
        )
    except UpstreamUnavailableError as e:
        logger.warning(f"Audit log write failed for {action}: {e}")


@dataclass
class CompanyPayload:
    """New company fields accepted by insert and add."""

    name: str
    discipline: str = ""
    priority: str = ""
    sponsorship_tier: str = ""
    contact_name: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    remarks: str = ""
    assigned_to: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def sanitized(self) -> "CompanyPayload":
        """Sanitised copy; raises ValidationError when the name ends up empty."""
        name = sanitize_input(self.name, NAME_MAX)
        if not name:
            raise ValidationError("Company name cannot be empty after sanitization")
        discipline = sanitize_input(self.discipline, DISCIPLINE_MAX)
        return CompanyPayload(
            name=name,
            discipline=discipline_to_database(discipline) if discipline else "",
            priority=sanitize_input(self.priority, PRIORITY_MAX),
            sponsorship_tier=sanitize_input(self.sponsorship_tier, PRIORITY_MAX),
            contact_name=sanitize_input(self.contact_name, DEFAULT_MAX),
            role=sanitize_input(self.role, DEFAULT_MAX),
            email=sanitize_input(self.email, DEFAULT_MAX),
            phone=sanitize_input(self.phone, DEFAULT_MAX),
            linkedin=sanitize_input(self.linkedin, DEFAULT_MAX),
            remarks=sanitize_input(self.remarks, DEFAULT_MAX),
            assigned_to=sanitize_input(self.assigned_to, PRIORITY_MAX),
        )

    def registry_row(self, company_id: str) -> list[str]:
        return layout.registry_row(
            company_id,
            self.name,
            discipline=self.discipline,
            sponsorship_tier=self.sponsorship_tier,
            priority=self.priority,
            contact_name=self.contact_name,
            role=self.role,
            email=self.email,
            phone=self.phone,
            linkedin=self.linkedin,
        )

    def tracker_row(self, company_id: str) -> list[str]:
        return layout.tracker_row(
            company_id,
            self.name,
            assigned_to=self.assigned_to or layout.UNASSIGNED,
            remarks=self.remarks,
            sponsorship_tier=self.sponsorship_tier,
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("extra")
        return data
