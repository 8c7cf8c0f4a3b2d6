"""
Point-in-time view of the Registry and Tracker.

Every structural operation reads one Snapshot, plans against it without
further I/O, and only then writes. Row numbers are 1-based sheet rows and
are valid only for the snapshot that produced them.
"""

import logging
from dataclasses import dataclass, field

from outreach.config import StoreConfig
from outreach.ids import IdCodec
from outreach.sheets import layout
from outreach.sheets.a1 import row_range
from outreach.sheets.base import RowStore

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Lowercase and collapse whitespace: 'ACME  Pty ' -> 'acme pty'."""
    return " ".join(name.lower().split())


@dataclass
class ContactRecord:
    """One Registry row. company_id is the raw cell text of column A."""

    company_id: str
    row_number: int
    company_name: str = ""
    discipline: str = ""
    sponsorship_tier: str = ""
    priority: str = ""
    name: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    landline: str = ""
    linkedin: str = ""
    reference: str = ""
    remark: str = ""
    is_active: bool = True
    number: int | None = None

    @property
    def key(self) -> str:
        """Selection key handed to clients (duplicate scan -> merge)."""
        return f"contact-{self.company_id}-{self.row_number}"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "company_id": self.company_id,
            "row_number": self.row_number,
            "name": self.name,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
            "linkedin": self.linkedin,
            "remark": self.remark,
            "is_active": self.is_active,
        }

    @classmethod
    def from_row(cls, row: list[str], row_number: int, codec: IdCodec) -> "ContactRecord":
        company_id = layout.cell_at(row, layout.REG_ID)
        return cls(
            company_id=company_id,
            row_number=row_number,
            company_name=layout.cell_at(row, layout.REG_NAME),
            discipline=layout.cell_at(row, layout.REG_DISCIPLINE),
            sponsorship_tier=layout.cell_at(row, layout.REG_TIER),
            priority=layout.cell_at(row, layout.REG_PRIORITY),
            name=layout.cell_at(row, layout.REG_CONTACT_NAME),
            role=layout.cell_at(row, layout.REG_ROLE),
            email=layout.cell_at(row, layout.REG_EMAIL),
            phone=layout.cell_at(row, layout.REG_PHONE),
            landline=layout.cell_at(row, layout.REG_LANDLINE),
            linkedin=layout.cell_at(row, layout.REG_LINKEDIN),
            reference=layout.cell_at(row, layout.REG_REFERENCE),
            remark=layout.cell_at(row, layout.REG_REMARK),
            is_active=layout.cell_at(row, layout.REG_IS_ACTIVE).upper() != "FALSE",
            number=codec.parse_loose(company_id),
        )


@dataclass
class CanonicalRecord:
    """A Registry company: every row sharing one identifier."""

    id: str
    number: int
    name: str
    discipline: str = ""
    contacts: list[ContactRecord] = field(default_factory=list)

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)


@dataclass
class TrackerRecord:
    """One Tracker row (exactly one per company when healthy)."""

    id: str
    name: str
    row_number: int
    status: str = ""
    channel: str = ""
    urgency_score: int = 0
    assigned_to: str = ""
    follow_ups_completed: int = 0
    sponsorship_tier: str = ""
    remarks: str = ""
    last_update: str = ""
    number: int | None = None

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    @property
    def is_blank(self) -> bool:
        return not self.id and not self.name

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "row_number": self.row_number,
            "status": self.status,
            "assigned_to": self.assigned_to,
            "follow_ups_completed": self.follow_ups_completed,
            "remarks": self.remarks,
            "last_update": self.last_update,
        }

    @classmethod
    def from_row(cls, row: list[str], row_number: int, codec: IdCodec) -> "TrackerRecord":
        company_id = layout.cell_at(row, layout.TRK_ID)
        return cls(
            id=company_id,
            name=layout.cell_at(row, layout.TRK_NAME),
            row_number=row_number,
            status=layout.cell_at(row, layout.TRK_STATUS),
            channel=layout.cell_at(row, layout.TRK_CHANNEL),
            urgency_score=_to_int(layout.cell_at(row, layout.TRK_URGENCY)),
            assigned_to=layout.cell_at(row, layout.TRK_ASSIGNED),
            follow_ups_completed=max(0, _to_int(layout.cell_at(row, layout.TRK_FOLLOW_UPS))),
            sponsorship_tier=layout.cell_at(row, layout.TRK_TIER),
            remarks=layout.cell_at(row, layout.TRK_REMARKS),
            last_update=layout.cell_at(row, layout.TRK_LAST_UPDATE),
            number=codec.parse_loose(company_id),
        )


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


@dataclass
class RegistrySnapshot:
    sheet_name: str
    rows: list[ContactRecord]

    @property
    def last_row_number(self) -> int:
        return self.rows[-1].row_number if self.rows else layout.FIRST_DATA_ROW - 1

    def companies(self, codec: IdCodec) -> list[CanonicalRecord]:
        """Distinct companies in order of first appearance; unparsable ids skipped."""
        by_number: dict[int, CanonicalRecord] = {}
        for row in self.rows:
            if row.number is None:
                continue
            record = by_number.get(row.number)
            if record is None:
                record = CanonicalRecord(
                    id=codec.format(row.number),
                    number=row.number,
                    name=row.company_name,
                    discipline=row.discipline,
                )
                by_number[row.number] = record
            elif not record.name and row.company_name:
                record.name = row.company_name
            record.contacts.append(row)
        return list(by_number.values())

    def occupied(self) -> set[int]:
        return {row.number for row in self.rows if row.number is not None}

    def rows_for(self, number: int) -> list[ContactRecord]:
        return [row for row in self.rows if row.number == number]


@dataclass
class TrackerSnapshot:
    sheet_name: str
    records: list[TrackerRecord]

    @property
    def last_row_number(self) -> int:
        return self.records[-1].row_number if self.records else layout.FIRST_DATA_ROW - 1

    def occupied(self) -> set[int]:
        return {r.number for r in self.records if r.number is not None}

    def find(self, number: int) -> TrackerRecord | None:
        """First row carrying the identifier."""
        for record in self.records:
            if record.number == number:
                return record
        return None


@dataclass
class Snapshot:
    registry: RegistrySnapshot
    tracker: TrackerSnapshot

    def occupied(self) -> set[int]:
        return self.registry.occupied() | self.tracker.occupied()


def read_registry(store: RowStore, cfg: StoreConfig, codec: IdCodec) -> RegistrySnapshot:
    sheet_name = layout.find_registry_sheet(
        store.get_sheet_names(cfg.registry_spreadsheet_id), cfg.registry_sheet_marker
    )
    values = store.read_range(
        cfg.registry_spreadsheet_id,
        row_range(sheet_name, 0, layout.REG_LAST_COLUMN, layout.FIRST_DATA_ROW),
    )
    rows = [
        ContactRecord.from_row(row, layout.FIRST_DATA_ROW + i, codec) for i, row in enumerate(values)
    ]
    return RegistrySnapshot(sheet_name=sheet_name, rows=rows)


def read_tracker(store: RowStore, cfg: StoreConfig, codec: IdCodec) -> TrackerSnapshot:
    sheet_name = layout.find_tracker_sheet(store.get_sheet_names(cfg.tracker_spreadsheet_id))
    values = store.read_range(
        cfg.tracker_spreadsheet_id,
        row_range(sheet_name, 0, layout.TRK_LAST_COLUMN, layout.FIRST_DATA_ROW),
    )
    records = [
        TrackerRecord.from_row(row, layout.FIRST_DATA_ROW + i, codec) for i, row in enumerate(values)
    ]
    return TrackerSnapshot(sheet_name=sheet_name, records=records)


def read_snapshot(store: RowStore, cfg: StoreConfig, codec: IdCodec) -> Snapshot:
    """
    Read both stores. Any failure here happens before a single write.

    Sheet titles and ids are re-fetched so renamed, added or recreated tabs
    are seen by the operation that follows.
    """
    store.refresh_metadata(cfg.registry_spreadsheet_id)
    store.refresh_metadata(cfg.tracker_spreadsheet_id)
    registry = read_registry(store, cfg, codec)
    tracker = read_tracker(store, cfg, codec)
    logger.info(
        f"Snapshot: {len(registry.rows)} registry row(s) in {registry.sheet_name!r}, "
        f"{len(tracker.records)} tracker row(s) in {tracker.sheet_name!r}"
    )
    return Snapshot(registry=registry, tracker=tracker)
