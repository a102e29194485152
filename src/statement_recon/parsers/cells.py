"""
Cell classifiers for loosely formatted bank statement sheets.

Each classifier looks at a single cell in isolation; the row scanner in
``statement_parser`` decides which cell claims which slot.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import math
import re
import warnings

import pandas as pd

# Serial window for numeric date cells, roughly 2009-07 to 2036-11
DATE_SERIAL_MIN = 40000
DATE_SERIAL_MAX = 50000

# Spreadsheet day zero for each date system
EPOCH_1900 = date(1899, 12, 30)
EPOCH_1904 = date(1904, 1, 1)

CURRENCY_CHARS = re.compile(r"[€$£\s]")
DATE_SHAPE = re.compile(r"\d{1,2}/\d{1,2}/\d{4}")
DAY_FIRST_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
AMOUNT_SHAPE = re.compile(r"^-?\d+[.,]?\d*$")
DECIMAL_PREFIX = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)")
DIGITS_ONLY = re.compile(r"^\d+$")

# Cells that show up beside amounts but never describe a transaction
CURRENCY_CODES = frozenset({"EUR", "USD"})
MIN_DESCRIPTION_LENGTH = 3


def normalize_cell(value: Any) -> Any:
    """Return None for blank cells (None, NaN, NaT, whitespace), else the value."""
    if value is None:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def cell_text(value: Any) -> str:
    """Textual form of a cell as it would be displayed."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def serial_to_date(serial: float, date1904: bool = False) -> date:
    """Convert a spreadsheet date serial to a calendar date, ignoring the time fraction."""
    epoch = EPOCH_1904 if date1904 else EPOCH_1900
    return epoch + timedelta(days=int(math.floor(serial)))


def parse_date(value: Any, date1904: bool = False) -> Optional[date]:
    """
    Parse a statement date cell.

    Tries, in order: native date values, spreadsheet serial numbers,
    ``DD/MM/YYYY`` (day first), ``YYYY-MM-DD``, then a generic day-first
    parse. Returns None when nothing applies.
    """
    value = normalize_cell(value)
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if is_number(value):
        try:
            return serial_to_date(float(value), date1904)
        except (OverflowError, ValueError):
            return None

    text = str(value).strip()

    match = DAY_FIRST_DATE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = ISO_DATE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            parsed = pd.to_datetime(text, dayfirst=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Parse an amount cell into a signed Decimal.

    Currency symbols and whitespace are stripped and the first comma becomes
    the decimal point, so ``"-45,50 €"`` parses to ``Decimal("-45.50")``.
    Like a lenient float parse, trailing junk after a numeric prefix is ignored.
    """
    value = normalize_cell(value)
    if value is None or isinstance(value, bool):
        return None

    if is_number(value):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return Decimal(str(value))

    cleaned = CURRENCY_CHARS.sub("", str(value)).replace(",", ".", 1)
    match = DECIMAL_PREFIX.match(cleaned)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def classify_as_date(
    value: Any,
    serial_min: float = DATE_SERIAL_MIN,
    serial_max: float = DATE_SERIAL_MAX,
    date1904: bool = False,
) -> Optional[date]:
    """
    Return the date a cell carries if it looks like a statement date.

    Accepts native date cells, numbers strictly inside the serial window and
    strings containing a ``D/M/YYYY`` shape.
    """
    value = normalize_cell(value)
    if value is None:
        return None

    if isinstance(value, (datetime, date)):
        return parse_date(value)
    if is_number(value):
        if serial_min < value < serial_max:
            return parse_date(value, date1904)
        return None
    if isinstance(value, str) and DATE_SHAPE.search(value):
        return parse_date(value)
    return None


def classify_as_amount(value: Any) -> Optional[Decimal]:
    """Return the non-zero signed amount a cell carries, or None."""
    value = normalize_cell(value)
    if value is None or isinstance(value, bool):
        return None

    text = CURRENCY_CHARS.sub("", cell_text(value))
    if not AMOUNT_SHAPE.match(text):
        return None

    amount = parse_amount(text)
    if amount is None or amount == 0:
        return None
    return amount


def classify_as_description(value: Any) -> Optional[str]:
    """Return the cell text if it can serve as a transaction description."""
    text = cell_text(normalize_cell(value))
    if len(text) < MIN_DESCRIPTION_LENGTH:
        return None
    if text in CURRENCY_CODES or DIGITS_ONLY.match(text):
        return None
    return text
