"""
Test fixtures for deterministic testing.

This module provides:
- InMemorySheetStore: RowStore with Sheets read/append/insert/delete semantics
- build_store: Registry + Tracker spreadsheets from compact row specs
"""

from .sheet_store import InMemorySheetStore
from .workbook import REGISTRY_ID, REGISTRY_SHEET, TRACKER_ID, TRACKER_SHEET, build_store, store_config

__all__ = [
    "InMemorySheetStore",
    "REGISTRY_ID",
    "REGISTRY_SHEET",
    "TRACKER_ID",
    "TRACKER_SHEET",
    "build_store",
    "store_config",
]
