"""
Input sanitising for values written into the sheets.

Cells starting with = + - @ are evaluated as formulas by Sheets, so those
leading characters are stripped.
"""

import re

_FORMULA_PREFIX = re.compile(r"^[=+\-@]+")

NAME_MAX = 200
DISCIPLINE_MAX = 100
PRIORITY_MAX = 50
DEFAULT_MAX = 500


def sanitize_input(value: object, max_length: int = DEFAULT_MAX) -> str:
    """
    Trim, strip formula-trigger prefixes and truncate.

    >>> sanitize_input("  =SUM(A1:A9)")
    'SUM(A1:A9)'
    """
    if value is None:
        return ""
    clean = _FORMULA_PREFIX.sub("", str(value).strip()).strip()
    return clean[:max_length]
