"""Make sure the Tracker spreadsheet has its working sheets and header rows."""

import logging

from outreach.sheets import layout
from outreach.sheets.a1 import cell, row_range
from outreach.sheets.base import CellWrite, RowStore

logger = logging.getLogger(__name__)

DEFAULT_TRACKER_SHEET = "Companies"


def _header_writes(sheet_name: str, headers: list[str]) -> list[CellWrite]:
    return [CellWrite(range=cell(sheet_name, i, 1), value=h) for i, h in enumerate(headers)]


def ensure_tracker_sheets(store: RowStore, spreadsheet_id: str) -> list[str]:
    """
    Create missing sheets and write headers onto empty ones.

    The first tab is the main Tracker sheet whatever its title. Existing
    header rows are never overwritten. Returns a description of each change.
    """
    store.refresh_metadata(spreadsheet_id)
    existing = store.get_sheet_names(spreadsheet_id)
    main_sheet = existing[0] if existing else DEFAULT_TRACKER_SHEET
    required = [
        (main_sheet, layout.TRACKER_HEADERS),
        (layout.LOGS_SHEET, layout.LOGS_HEADERS),
        (layout.THREAD_HISTORY_SHEET, layout.THREAD_HISTORY_HEADERS),
    ]

    changes = []
    for title, headers in required:
        if title not in existing:
            store.add_sheet(spreadsheet_id, title)
            store.batch_write_cells(spreadsheet_id, _header_writes(title, headers))
            changes.append(f"created sheet {title!r}")
            continue
        current = store.read_range(spreadsheet_id, row_range(title, 0, len(headers) - 1, 1, 1))
        if not current or not any(str(v).strip() for v in current[0]):
            store.batch_write_cells(spreadsheet_id, _header_writes(title, headers))
            changes.append(f"wrote headers on {title!r}")

    if changes:
        logger.info(f"Tracker bootstrap: {'; '.join(changes)}")
    return changes
