"""Find Tracker rows that name the same company."""

from dataclasses import dataclass, field

from outreach.snapshot import ContactRecord, Snapshot, TrackerRecord


@dataclass
class DuplicateCandidate:
    record: TrackerRecord
    contacts: list[ContactRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.record.id,
            "name": self.record.name,
            "status": self.record.status,
            "assigned_to": self.record.assigned_to,
            "remarks": self.record.remarks,
            "row_number": self.record.row_number,
            "contacts": [c.to_dict() for c in self.contacts],
        }


@dataclass
class DuplicateGroup:
    normalized_name: str
    companies: list[DuplicateCandidate]

    @property
    def name(self) -> str:
        return self.companies[0].record.name

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "count": len(self.companies),
            "companies": [c.to_dict() for c in self.companies],
        }


def scan_duplicates(snapshot: Snapshot) -> list[DuplicateGroup]:
    """
    Group Tracker rows by normalised name; groups of two or more are returned.

    Each row carries the Registry contacts of its id, with the selection keys
    merge_companies expects in retain_keys.
    """
    contacts: dict[int, list[ContactRecord]] = {}
    for row in snapshot.registry.rows:
        if row.number is not None:
            contacts.setdefault(row.number, []).append(row)

    groups: dict[str, list[DuplicateCandidate]] = {}
    for rec in snapshot.tracker.records:
        if not rec.id or not rec.name:
            continue
        candidate = DuplicateCandidate(record=rec, contacts=contacts.get(rec.number, []) if rec.number else [])
        groups.setdefault(rec.normalized_name, []).append(candidate)

    return [
        DuplicateGroup(normalized_name=name, companies=members)
        for name, members in groups.items()
        if len(members) > 1
    ]
