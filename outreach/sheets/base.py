"""
Row store contract consumed by the planners and operations.

SheetsClient implements it against the Google Sheets API; tests use an
in-memory implementation with the same semantics (trailing blank cells and
rows are omitted from reads, appends land after the last non-empty row).
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CellWrite:
    """A single-cell value write addressed in A1 notation."""

    range: str
    value: str


class RowStore(Protocol):
    def refresh_metadata(self, spreadsheet_id: str) -> None: ...

    def get_sheet_names(self, spreadsheet_id: str) -> list[str]: ...

    def get_sheet_id(self, spreadsheet_id: str, sheet_name: str) -> int: ...

    def read_range(self, spreadsheet_id: str, range_spec: str) -> list[list[str]]: ...

    def batch_write_cells(self, spreadsheet_id: str, writes: list[CellWrite]) -> None: ...

    def append_rows(self, spreadsheet_id: str, range_spec: str, rows: list[list[str]]) -> None: ...

    def insert_rows(
        self, spreadsheet_id: str, sheet_name: str, start_index: int, rows: list[list[str]]
    ) -> None: ...

    def delete_rows(
        self, spreadsheet_id: str, sheet_name: str, start_index: int, end_index: int
    ) -> None: ...

    def add_sheet(self, spreadsheet_id: str, title: str) -> None: ...
