"""
A1 notation helpers.

Row numbers are 1-based as in the Sheets UI; column indexes are 0-based.
"""

import re
from dataclasses import dataclass

_CELL_RE = re.compile(r"^([A-Za-z]*)(\d*)$")


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    if index < 0:
        raise ValueError(f"Negative column index: {index}")
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """A -> 0, Z -> 25, AA -> 26."""
    if not letters or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    index = 0
    for ch in letters.upper():
        index = index * 26 + (ord(ch) - ord("A") + 1)
    return index - 1


def quote_sheet_name(name: str) -> str:
    """Quote a sheet title for use in a range ('[AUTOMATION ONLY] DB' needs quotes)."""
    if re.fullmatch(r"[A-Za-z0-9_]+", name):
        return name
    return "'" + name.replace("'", "''") + "'"


def cell(sheet: str, column: int, row: int) -> str:
    return f"{quote_sheet_name(sheet)}!{column_letter(column)}{row}"


def row_range(sheet: str, first_column: int, last_column: int, start_row: int, end_row: int | None = None) -> str:
    """Range over columns [first, last]; end_row None means open-ended (A2:N)."""
    end = f"{column_letter(last_column)}{end_row if end_row is not None else ''}"
    return f"{quote_sheet_name(sheet)}!{column_letter(first_column)}{start_row}:{end}"


@dataclass(frozen=True)
class A1Range:
    """Parsed range. None bounds are open (whole column / whole row span)."""

    sheet: str
    start_column: int
    start_row: int
    end_column: int | None
    end_row: int | None


def _split_sheet(spec: str) -> tuple[str, str]:
    if spec.startswith("'"):
        i = 1
        name = []
        while i < len(spec):
            ch = spec[i]
            if ch == "'":
                if i + 1 < len(spec) and spec[i + 1] == "'":
                    name.append("'")
                    i += 2
                    continue
                break
            name.append(ch)
            i += 1
        rest = spec[i + 1 :]
        if not rest.startswith("!"):
            raise ValueError(f"Invalid range: {spec!r}")
        return "".join(name), rest[1:]
    if "!" not in spec:
        raise ValueError(f"Range without sheet name: {spec!r}")
    sheet, _, ref = spec.partition("!")
    return sheet, ref


def _parse_cell(ref: str) -> tuple[int | None, int | None]:
    match = _CELL_RE.match(ref)
    if not match or not ref:
        raise ValueError(f"Invalid cell reference: {ref!r}")
    letters, digits = match.groups()
    return (
        column_index(letters) if letters else None,
        int(digits) if digits else None,
    )


def parse_range(spec: str) -> A1Range:
    """Parse 'Sheet'!A2:N, Sheet!A:A or Sheet!B5."""
    sheet, ref = _split_sheet(spec)
    start, _, end = ref.partition(":")
    start_col, start_row = _parse_cell(start)
    if end:
        end_col, end_row = _parse_cell(end)
    else:
        end_col, end_row = start_col, start_row
    return A1Range(
        sheet=sheet,
        start_column=start_col or 0,
        start_row=start_row or 1,
        end_column=end_col,
        end_row=end_row,
    )
