"""
validation.py - pure input checks and text normalization

Used by both the Expense model and the UI collaborators. Nothing here raises
for bad user input: checks return bool and parsers return None on failure so
callers can re-prompt.
"""

import datetime
import re
from typing import Optional

# delimiter used by the storage line format; free text may not contain it
FIELD_DELIMITER = "|"

_AMOUNT_RE = re.compile(r"[0-9]+(\.[0-9]{1,2})?")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_INT_RE = re.compile(r"[+-]?[0-9]+")

MIN_YEAR = 1900
MAX_YEAR = 2100

_DAYS_IN_MONTH = [31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def normalize(text: Optional[str]) -> str:
    """Strip surrounding whitespace; None becomes an empty string."""
    if text is None:
        return ""
    return str(text).strip()


def is_storable(text: Optional[str]) -> bool:
    """True when the value can be written to a single storage line unchanged."""
    value = "" if text is None else str(text)
    return FIELD_DELIMITER not in value and "\n" not in value and "\r" not in value


def is_valid_amount(text: str) -> bool:
    """Positive number with at most two decimal places, e.g. '10' or '10.50'."""
    text = normalize(text)
    if not _AMOUNT_RE.fullmatch(text):
        return False
    return float(text) > 0


def parse_amount(text: str) -> Optional[float]:
    text = normalize(text)
    if not is_valid_amount(text):
        return None
    return round(float(text), 2)


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def is_valid_date(text: str) -> bool:
    """
    Check a 'YYYY-MM-DD' string denotes a real calendar day between
    1900-01-01 and 2100-12-31.
    """
    if not isinstance(text, str) or not _DATE_RE.fullmatch(text):
        return False
    year, month, day = (int(p) for p in text.split("-"))
    if year < MIN_YEAR or year > MAX_YEAR:
        return False
    if month < 1 or month > 12:
        return False
    if day < 1 or day > _DAYS_IN_MONTH[month - 1]:
        return False
    if month == 2 and day == 29:
        return is_leap_year(year)
    return True


def today() -> str:
    """Current local date as 'YYYY-MM-DD'."""
    return datetime.date.today().isoformat()


def parse_int(text: str) -> Optional[int]:
    text = normalize(text)
    if not _INT_RE.fullmatch(text):
        return None
    return int(text)


def parse_bool(text: str) -> Optional[bool]:
    """Accept y/yes/1 and n/no/0 (any case); anything else is None."""
    value = normalize(text).lower()
    if value in ("y", "yes", "1"):
        return True
    if value in ("n", "no", "0"):
        return False
    return None


def format_currency(amount: float) -> str:
    return f"${amount:.2f}"
