# ==============================================================================
# buyer_ledger/calculator/cells.py
# ------------------------------------------------------------------------------
# Spreadsheet cell values and the per-field coercions applied to them.
# Every coercion degrades to a sentinel (NaN or '') instead of raising.
# ==============================================================================

import math
import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from numbers import Number

import pandas as pd

from .schema import (CANONICAL_DATE_FORMAT, EXCEL_EPOCH, EXCEL_MAX_SERIAL,
                     TWO_DIGIT_YEAR_CENTURY)

# --- Tagged cell values ---

@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Numeric:
    value: float


EMPTY = Empty()

_NUMBER_RE = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')
_NUMBER_NOISE = {',', '(', ')'}
_NON_ALNUM_RE = re.compile(r'[^a-z0-9]')
_YEAR_FIRST_RE = re.compile(r'^(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:[ T].*)?$')
_DAY_FIRST_RE = re.compile(r'^(\d{1,2})[-/](\d{1,2})[-/](\d{2}|\d{4})$')


def to_cell(value):
    """
    Classifies a raw cell value coming out of the spreadsheet decoder.

    Args:
        value: str, number, date/datetime, None or a pandas missing marker.

    Returns:
        Empty, Text or Numeric.
    """
    if isinstance(value, (Empty, Text, Numeric)):
        return value
    if value is None:
        return EMPTY
    if isinstance(value, str):
        return Text(value) if value.strip() else EMPTY
    if isinstance(value, (datetime, date)):
        if pd.isna(value):
            return EMPTY
        return Text(value.strftime('%Y-%m-%d'))
    if isinstance(value, bool):
        return Text(str(value))
    if isinstance(value, Number):
        number = float(value)
        return Numeric(number) if math.isfinite(number) else EMPTY
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return EMPTY
    text = str(value)
    return Text(text) if text.strip() else EMPTY


def _format_number(number):
    if number.is_integer():
        return str(int(number))
    return repr(number)


def cell_text(cell):
    """Returns the cell as a string, '' for empty cells. Whole floats lose their '.0'."""
    cell = to_cell(cell)
    if isinstance(cell, Text):
        return cell.value
    if isinstance(cell, Numeric):
        return _format_number(cell.value)
    return ''


def _quantity_or_nan(number):
    # Quantities and amounts are finite and non-negative
    if not math.isfinite(number) or number < 0:
        return math.nan
    return number


def parse_number(cell):
    """
    Parses a quantity or amount cell.

    Currency symbols, commas, parentheses and whitespace are stripped before
    parsing. Anything that is still not a plain decimal literal, overflows to
    infinity or is negative yields NaN.
    """
    cell = to_cell(cell)
    if isinstance(cell, Numeric):
        return _quantity_or_nan(cell.value)
    if isinstance(cell, Empty):
        return math.nan
    cleaned = ''.join(
        ch for ch in cell.value
        if not (ch.isspace() or ch in _NUMBER_NOISE or unicodedata.category(ch) == 'Sc')
    )
    if not _NUMBER_RE.match(cleaned):
        return math.nan
    return _quantity_or_nan(float(cleaned))


def normalize_counterparty(cell):
    """Lower-cases the name and keeps only latin letters and digits."""
    return _NON_ALNUM_RE.sub('', cell_text(cell).lower())


def _safe_date(year, month, day):
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_date(cell):
    if isinstance(cell, Numeric):
        serial = cell.value
        if 1 <= serial <= EXCEL_MAX_SERIAL:
            return date(*EXCEL_EPOCH) + timedelta(days=int(serial))
        return None

    text = cell.value.strip()
    if text.isascii() and text.isdigit():
        return _parse_date(Numeric(float(text)))

    match = _YEAR_FIRST_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _DAY_FIRST_RE.match(text)
    if match:
        day, month, year = (int(part) for part in match.groups())
        if len(match.group(3)) == 2:
            year += TWO_DIGIT_YEAR_CENTURY
        return _safe_date(year, month, day)

    try:
        parsed = pd.to_datetime(text, dayfirst=True, errors='coerce')
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return date(parsed.year, parsed.month, parsed.day)


def coerce_date(cell):
    """
    Converts a date-like cell to the canonical DD/MM/YYYY string.

    Year-first ('2024-03-05', '2024/03/05') and day-first ('5/3/2024', '5-3-24')
    forms are recognised explicitly, Excel serial numbers are converted, and
    anything else goes through pandas' day-first parser. Returns '' when the
    value cannot be read as a date.
    """
    cell = to_cell(cell)
    if isinstance(cell, Empty):
        return ''
    parsed = _parse_date(cell)
    if parsed is None:
        return ''
    return parsed.strftime(CANONICAL_DATE_FORMAT)
