"""
Centralized configuration for Outreach Sync.

All hardcoded values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# ============================================================
# Spreadsheets
# ============================================================

REGISTRY_SPREADSHEET_ID: str = os.environ.get(
    "OUTREACH_REGISTRY_SPREADSHEET_ID", os.environ.get("SPREADSHEET_ID_1", "")
)
"""Company Database spreadsheet (canonical store, one row per contact)."""

TRACKER_SPREADSHEET_ID: str = os.environ.get(
    "OUTREACH_TRACKER_SPREADSHEET_ID", os.environ.get("SPREADSHEET_ID_2", "")
)
"""Outreach Tracker spreadsheet (operational twin, one row per company)."""

REGISTRY_SHEET_MARKER: str = os.environ.get("OUTREACH_REGISTRY_SHEET_MARKER", "[AUTOMATION ONLY]")
"""Substring identifying the Registry sheet among the spreadsheet's tabs."""

# ============================================================
# Identifiers
# ============================================================

ID_PREFIX: str = os.environ.get("OUTREACH_ID_PREFIX", "ME")
"""Company identifier prefix, e.g. ME in ME-0042."""

ID_WIDTH: int = int(os.environ.get("OUTREACH_ID_WIDTH", "4"))
"""Zero-pad width of the numeric identifier part."""

HEADER_ROWS: int = 1
"""Rows above the first data row in both stores."""

# ============================================================
# Remote calls
# ============================================================

BATCH_SIZE: int = int(os.environ.get("OUTREACH_BATCH_SIZE", "100"))
"""Maximum cell writes per batchUpdate request."""

REQUEST_TIMEOUT_SECONDS: float = float(os.environ.get("OUTREACH_REQUEST_TIMEOUT", "15"))
"""Socket timeout applied to every Sheets API call."""

MAX_RETRIES: int = int(os.environ.get("OUTREACH_MAX_RETRIES", "3"))
"""Retries for read calls (writes are never retried)."""

# ============================================================
# Google credentials
# ============================================================

SA_FILE: str = os.environ.get(
    "OUTREACH_SA_FILE",
    os.environ.get(
        "GOOGLE_APPLICATION_CREDENTIALS",
        str(Path.home() / ".config" / "outreach-sync" / "service-account.json"),
    ),
)
"""Service account key file. Takes precedence over the inline env credentials."""

SA_EMAIL: str = os.environ.get("GOOGLE_SERVICE_ACCOUNT_EMAIL", "")
SA_PRIVATE_KEY: str = os.environ.get("GOOGLE_PRIVATE_KEY", "").replace("\\n", "\n")
"""Inline service account credentials (escaped newlines are restored)."""

DELEGATED_USER: str | None = os.environ.get("OUTREACH_DELEGATED_USER") or None
"""Optional user to impersonate with domain-wide delegation."""

SCOPES: list[str] = ["https://www.googleapis.com/auth/spreadsheets"]

# ============================================================
# Cache / logging / API
# ============================================================

CACHE_TTL_SECONDS: int = int(os.environ.get("OUTREACH_CACHE_TTL", "60"))
"""TTL of cached snapshots served to read-only scans."""

SNAPSHOT_CACHE_KEY: str = "sheet_data"

LOG_LEVEL: str = os.environ.get("OUTREACH_LOG_LEVEL", "INFO")

CORS_ORIGINS: str = os.environ.get("CORS_ORIGINS", "*")


@dataclass(frozen=True)
class StoreConfig:
    """Per-run view of the settings the operations need."""

    registry_spreadsheet_id: str
    tracker_spreadsheet_id: str
    registry_sheet_marker: str = REGISTRY_SHEET_MARKER
    id_prefix: str = ID_PREFIX
    id_width: int = ID_WIDTH
    batch_size: int = BATCH_SIZE
    audit_user: str = "outreach-sync"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        return cls(
            registry_spreadsheet_id=REGISTRY_SPREADSHEET_ID,
            tracker_spreadsheet_id=TRACKER_SPREADSHEET_ID,
        )
