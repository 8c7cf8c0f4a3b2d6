"""
Discipline abbreviations stored in the Registry and their display names.
"""

DISCIPLINE_ABBREV_TO_FULL: dict[str, str] = {
    "MEC": "Mechanical Engineering",
    "ECSE": "Electrical and Computer Systems Engineering",
    "CHE": "Chemical Engineering",
    "CIV": "Civil Engineering",
    "SE": "Software Engineering",
    "TRC": "Robotics and Mechatronics Engineering",
    "CS": "Computer Science",
    "DS": "Data Science",
    "AI": "Artificial Intelligence",
}

DISCIPLINE_FULL_TO_ABBREV: dict[str, str] = {v: k for k, v in DISCIPLINE_ABBREV_TO_FULL.items()}


def discipline_to_database(value: str) -> str:
    """Full name -> abbreviation. Known abbreviations and unknown text pass through."""
    value = value.strip()
    if value.upper() in DISCIPLINE_ABBREV_TO_FULL:
        return value.upper()
    return DISCIPLINE_FULL_TO_ABBREV.get(value, value)


def discipline_to_display(value: str) -> str:
    return DISCIPLINE_ABBREV_TO_FULL.get(value.strip().upper(), value)
