"""
Date normalization to the canonical DD/MM/YYYY representation.

Handles the notations found in Spanish bank statements and Catalan/Spanish
supplier workbooks: numeric dates with ``/``, ``-`` or ``.`` separators,
``DD-monthName-YY`` dates, ISO timestamps and spreadsheet date serials.
"""

from datetime import date, datetime, timedelta
from typing import Optional, Union
import re
import unicodedata

CANONICAL_FORMAT = "%d/%m/%Y"
CANONICAL_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")

# Spreadsheet serials count days from 1899-12-30
SPREADSHEET_EPOCH = date(1899, 12, 30)
MIN_SERIAL = 1000
MAX_SERIAL = 2958465  # 31/12/9999

# Two-digit years below this pivot resolve to 20xx, the rest to 19xx
TWO_DIGIT_YEAR_PIVOT = 50

MONTH_NAMES: dict[str, int] = {
    # Spanish
    "ene": 1, "enero": 1,
    "feb": 2, "febrero": 2,
    "mar": 3, "marzo": 3,
    "abr": 4, "abril": 4,
    "may": 5, "mayo": 5,
    "jun": 6, "junio": 6,
    "jul": 7, "julio": 7,
    "ago": 8, "agosto": 8,
    "sep": 9, "sept": 9, "septiembre": 9, "setiembre": 9,
    "oct": 10, "octubre": 10,
    "nov": 11, "noviembre": 11,
    "dic": 12, "diciembre": 12,
    # Catalan
    "gen": 1, "gener": 1,
    "febrer": 2,
    "marc": 3, "març": 3,
    "maig": 5,
    "juny": 6,
    "juliol": 7,
    "agost": 8,
    "set": 9, "setembre": 9,
    "novembre": 11,
    "des": 12, "desembre": 12,
    # English
    "jan": 1, "january": 1, "february": 2, "march": 3,
    "apr": 4, "april": 4, "june": 6, "july": 7,
    "aug": 8, "august": 8, "september": 9, "october": 10,
    "november": 11, "dec": 12, "december": 12,
}

NUMERIC_DATE = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2}|\d{4})$")
NAMED_MONTH_DATE = re.compile(r"^(\d{1,2})[\s\-/.]+([^\W\d_]+)\.?[\s\-/.]+(\d{2}|\d{4})$")
ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[T\s]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?$")
SERIAL = re.compile(r"^\d+(?:\.0+)?$")

DateLike = Union[str, int, float, date, datetime, None]


def expand_year(year: str) -> int:
    """Expand a two-digit year with the legacy 50-year pivot."""
    value = int(year)
    if len(year) == 2:
        return 2000 + value if value < TWO_DIGIT_YEAR_PIVOT else 1900 + value
    return value


def month_from_name(name: str) -> Optional[int]:
    """Resolve a Spanish, Catalan or English month name or abbreviation."""
    key = name.strip().lower().rstrip(".")
    if key in MONTH_NAMES:
        return MONTH_NAMES[key]
    folded = "".join(
        c for c in unicodedata.normalize("NFKD", key) if not unicodedata.combining(c)
    )
    return MONTH_NAMES.get(folded)


def _format(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).strftime(CANONICAL_FORMAT)
    except ValueError:
        return None


def serial_to_date(serial: int) -> Optional[date]:
    """Convert a spreadsheet date serial to a date."""
    if not MIN_SERIAL < serial <= MAX_SERIAL:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=serial)


def normalize_date(value: DateLike, month_first: bool = False) -> str:
    """
    Normalize a date in any supported notation to DD/MM/YYYY.

    Never raises. Unrecognized input is returned stripped so the caller can
    still display it; empty input yields an empty string.

    Args:
        value: Raw date text, date/datetime object or spreadsheet serial
        month_first: Read numeric dates as MM/DD/YYYY (declared per source)

    Returns:
        Canonical date string, or the best-effort original text
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().strftime(CANONICAL_FORMAT)
    if isinstance(value, date):
        return value.strftime(CANONICAL_FORMAT)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        converted = serial_to_date(int(value))
        return converted.strftime(CANONICAL_FORMAT) if converted else str(value)

    text = str(value).strip()
    if not text:
        return ""

    match = NUMERIC_DATE.match(text)
    if match:
        first, second, year = match.groups()
        day, month = (second, first) if month_first else (first, second)
        normalized = _format(expand_year(year), int(month), int(day))
        return normalized or text

    match = NAMED_MONTH_DATE.match(text)
    if match:
        day, month_name, year = match.groups()
        month = month_from_name(month_name)
        if month:
            normalized = _format(expand_year(year), month, int(day))
            return normalized or text
        return text

    match = ISO_DATE.match(text)
    if match:
        year, month, day = match.groups()
        return _format(int(year), int(month), int(day)) or text

    if SERIAL.match(text):
        converted = serial_to_date(int(float(text)))
        if converted:
            return converted.strftime(CANONICAL_FORMAT)

    return text


def is_canonical(value: str) -> bool:
    """Check whether a string is a valid canonical DD/MM/YYYY date."""
    return bool(value) and CANONICAL_PATTERN.match(value) is not None and parse_date(value) is not None


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a canonical DD/MM/YYYY string.

    Args:
        value: Canonical date string

    Returns:
        Python date object or None if the string is not a valid date
    """
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), CANONICAL_FORMAT).date()
    except ValueError:
        return None


def month_key(value: Optional[str]) -> Optional[tuple[int, int]]:
    """Return ``(year, month)`` for a canonical date string."""
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.year, parsed.month
