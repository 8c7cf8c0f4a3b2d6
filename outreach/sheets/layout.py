"""
Column layout of the Registry and Tracker sheets.

Both sheets carry one header row; data starts on row 2. Column A always
holds the company identifier and column B the company name.
"""

from datetime import UTC, datetime

from outreach.errors import SheetNotFoundError

FIRST_DATA_ROW = 2

# Registry (Company Database): one row per contact
REG_ID = 0
REG_NAME = 1
REG_DISCIPLINE = 2
REG_TIER = 3
REG_PRIORITY = 4
REG_CONTACT_NAME = 5
REG_ROLE = 6
REG_EMAIL = 7
REG_PHONE = 8
REG_LANDLINE = 9
REG_LINKEDIN = 10
REG_REFERENCE = 11
REG_REMARK = 12
REG_IS_ACTIVE = 13
REG_LAST_COLUMN = REG_IS_ACTIVE

REGISTRY_HEADERS = [
    "Company ID",
    "Company Name",
    "Discipline",
    "Target Sponsorship Tier",
    "Priority",
    "Company PIC",
    "Role",
    "Email",
    "Phone Number",
    "Landline Number",
    "LinkedIn",
    "Reference",
    "Remarks",
    "Is Active",
]

# Tracker (Outreach Tracker): one row per company
TRK_ID = 0
TRK_NAME = 1
TRK_STATUS = 2
TRK_CHANNEL = 3
TRK_URGENCY = 4
TRK_PREV_RESPONSE = 5
TRK_ASSIGNED = 6
TRK_LAST_COMPANY_CONTACT = 7
TRK_LAST_COMMITTEE_CONTACT = 8
TRK_FOLLOW_UPS = 9
TRK_TIER = 10
TRK_DAYS_ATTENDING = 11
TRK_REMARKS = 12
TRK_LAST_UPDATE = 13
TRK_LAST_COLUMN = TRK_LAST_UPDATE

TRACKER_HEADERS = [
    "ID",
    "Name",
    "Status",
    "Channel",
    "Urgency Score",
    "Previous Response",
    "Assigned PIC",
    "Last Company Contact Date",
    "Last Committee Contact Date",
    "Follow Ups Completed",
    "Sponsorship Tier",
    "Days Attending",
    "Remarks",
    "Last Update",
]

DEFAULT_STATUS = "To Contact"
UNASSIGNED = "Unassigned"

LOGS_SHEET = "Logs_DoNotEdit"
LOGS_HEADERS = ["Timestamp", "User", "Action", "Details", "Data"]
THREAD_HISTORY_SHEET = "Thread_History"
THREAD_HISTORY_HEADERS = ["Date", "Company ID", "User", "Remark"]


def utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


def cell_at(row: list[str], index: int) -> str:
    """Cell text at index; reads omit trailing blanks so short rows are normal."""
    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return ""


def registry_row(
    company_id: str,
    name: str,
    discipline: str = "",
    sponsorship_tier: str = "",
    priority: str = "",
    contact_name: str = "",
    role: str = "",
    email: str = "",
    phone: str = "",
    landline: str = "",
    linkedin: str = "",
    reference: str = "",
    remark: str = "",
    is_active: bool = True,
) -> list[str]:
    return [
        company_id,
        name,
        discipline,
        sponsorship_tier,
        priority,
        contact_name,
        role,
        email,
        phone,
        landline,
        linkedin,
        reference,
        remark,
        "TRUE" if is_active else "FALSE",
    ]


def tracker_row(
    company_id: str,
    name: str,
    status: str = DEFAULT_STATUS,
    assigned_to: str = UNASSIGNED,
    remarks: str = "",
    sponsorship_tier: str = "",
    last_update: str | None = None,
) -> list[str]:
    return [
        company_id,
        name,
        status,
        "",  # Channel
        "0",  # Urgency Score
        "",  # Previous Response
        assigned_to or UNASSIGNED,
        "",  # Last Company Contact Date
        "",  # Last Committee Contact Date
        "0",  # Follow Ups Completed
        sponsorship_tier,
        "",  # Days Attending
        remarks,
        last_update or utc_now_iso(),
    ]


def find_registry_sheet(sheet_names: list[str], marker: str) -> str:
    """The Registry lives in the tab whose title contains the automation marker."""
    for name in sheet_names:
        if marker in name:
            return name
    raise SheetNotFoundError(
        f"Company Database sheet with {marker} label not found",
        details={"sheets": sheet_names},
    )


def find_tracker_sheet(sheet_names: list[str]) -> str:
    """The Tracker is the first tab of its spreadsheet, whatever its title."""
    if not sheet_names:
        raise SheetNotFoundError("Outreach Tracker sheet not found")
    return sheet_names[0]
