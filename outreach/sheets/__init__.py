"""
Row store adapter for the Registry and Tracker spreadsheets.

Provides:
- RowStore: protocol the operations depend on
- SheetsClient: Google Sheets v4 implementation
- CellWrite: single-cell write addressed in A1 notation
"""

from .base import CellWrite, RowStore
from .client import SheetsClient

__all__ = [
    "CellWrite",
    "RowStore",
    "SheetsClient",
]
