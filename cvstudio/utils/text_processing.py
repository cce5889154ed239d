"""
Text and date normalization utilities.

Parsers use these helpers so every source format lands in the canonical
record with the same conventions: free text collapsed to single spaces and
dates as ISO YYYY-MM-DD strings.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

# Fixed month-name table (full names and common abbreviations)
MONTHS = {
    "jan": 1,
    "january": 1,
    "feb": 2,
    "february": 2,
    "mar": 3,
    "march": 3,
    "apr": 4,
    "april": 4,
    "may": 5,
    "jun": 6,
    "june": 6,
    "jul": 7,
    "july": 7,
    "aug": 8,
    "august": 8,
    "sep": 9,
    "sept": 9,
    "september": 9,
    "oct": 10,
    "october": 10,
    "nov": 11,
    "november": 11,
    "dec": 12,
    "december": 12,
}

# End-date words meaning "still ongoing"; normalized to an absent date
ONGOING_DATE_WORDS = {"present", "current", "now", "ongoing", "today"}

ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
YEAR_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")
US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
MONTH_SLASH_YEAR = re.compile(r"^(\d{1,2})/(\d{4})$")
YEAR_ONLY = re.compile(r"^(\d{4})$")
MONTH_NAME_YEAR = re.compile(r"^([A-Za-z]+)\.?,?\s+(\d{4})$")
STRICT_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

WHITESPACE = re.compile(r"\s+")


def clean_text(text: Any) -> Optional[str]:
    """
    Collapse whitespace (including newlines and tabs) to single spaces and trim.

    Args:
        text: Free text (non-strings are converted with str())

    Returns:
        Cleaned text, or None when empty

    Example:
        >>> clean_text("Hello  \\n  world   \\t test")
        'Hello world test'
    """
    if text is None:
        return None
    cleaned = WHITESPACE.sub(" ", str(text)).strip()
    return cleaned or None


def _iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def is_ongoing(value: Any) -> bool:
    """True for end-date words like "Present" that mean the entry is ongoing."""
    return isinstance(value, str) and value.strip().lower() in ONGOING_DATE_WORDS


def normalize_date(value: Any) -> Optional[str]:
    """
    Normalize a source-specific date to ISO YYYY-MM-DD.

    Supported inputs:
        2020-01-15, 2020-01-15T10:00:00  -> 2020-01-15
        2020-03                          -> 2020-03-01
        01/15/2020 (US month first)      -> 2020-01-15
        03/2020                          -> 2020-03-01
        2020 (string or int)             -> 2020-01-01
        Jan 2020, January 2020           -> 2020-01-01

    Args:
        value: Raw date value

    Returns:
        ISO date string, or None when empty or unrecognized
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, int):
        return _iso(value, 1, 1) if 1000 <= value <= 9999 else None

    text = str(value).strip()
    if not text:
        return None

    match = ISO_DATE.match(text)
    if match:
        return _iso(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = YEAR_MONTH.match(text)
    if match:
        return _iso(int(match.group(1)), int(match.group(2)), 1)

    match = US_DATE.match(text)
    if match:
        return _iso(int(match.group(3)), int(match.group(1)), int(match.group(2)))

    match = MONTH_SLASH_YEAR.match(text)
    if match:
        return _iso(int(match.group(2)), int(match.group(1)), 1)

    match = YEAR_ONLY.match(text)
    if match:
        return _iso(int(match.group(1)), 1, 1)

    match = MONTH_NAME_YEAR.match(text)
    if match:
        month = MONTHS.get(match.group(1).lower())
        if month:
            return _iso(int(match.group(2)), month, 1)

    return None


def is_iso_date(value: Any) -> bool:
    """True if value is a valid calendar date in strict YYYY-MM-DD form."""
    if not isinstance(value, str) or not STRICT_ISO_DATE.match(value):
        return False
    year, month, day = (int(part) for part in value.split("-"))
    return _iso(year, month, day) is not None
