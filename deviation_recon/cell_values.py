"""
Cell Value Model
Purpose: Typed spreadsheet cells and the coercion rules applied at the
ingestion boundary (serial dates, text dates, native dates)
"""

import math
import re
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

import numpy as np
import pandas as pd
from openpyxl.utils.datetime import from_excel


class CellKind(Enum):
    EMPTY = "empty"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"


@dataclass(frozen=True)
class Cell:
    """One spreadsheet cell; the kind is fixed when the cell is created"""

    kind: CellKind
    value: Any = None

    @classmethod
    def empty(cls) -> "Cell":
        return cls(CellKind.EMPTY)

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @classmethod
    def number(cls, value: float) -> "Cell":
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def date(cls, value: date) -> "Cell":
        # datetime values are kept as-is (export timestamps carry a time of day)
        return cls(CellKind.DATE, value)

    @property
    def is_blank(self) -> bool:
        return self.kind == CellKind.EMPTY

    def as_text(self) -> str:
        """Display text: numbers without a trailing .0, dates in nl-NL form"""
        if self.kind == CellKind.EMPTY:
            return ""
        if self.kind == CellKind.NUMBER:
            if math.isfinite(self.value) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        if self.kind == CellKind.DATE:
            if isinstance(self.value, datetime) and self.value.time() != time(0, 0):
                return format_timestamp(self.value)
            return format_date(self.value)
        return str(self.value)

    def to_native(self) -> Any:
        """Value as openpyxl expects it when writing a worksheet"""
        if self.kind == CellKind.EMPTY:
            return None
        return self.value


EMPTY = Cell.empty()

_ISO_DATE = re.compile(r"^\s*\d{4}-\d{1,2}-\d{1,2}")
_DATE_SEPARATOR = re.compile(r"[-/.\s]")


def coerce_cell(raw: Any) -> Cell:
    """Infer the Cell kind of a raw value produced by openpyxl or pandas"""
    if isinstance(raw, Cell):
        return raw
    if raw is None:
        return EMPTY
    if isinstance(raw, bool):
        return Cell.text("TRUE" if raw else "FALSE")
    if isinstance(raw, str):
        return Cell.text(raw) if raw.strip() else EMPTY
    if raw is pd.NaT:
        return EMPTY
    if isinstance(raw, np.datetime64):
        raw = pd.Timestamp(raw)
    if isinstance(raw, pd.Timestamp):
        if pd.isna(raw):
            return EMPTY
        raw = raw.to_pydatetime()
    if isinstance(raw, (datetime, date)):
        return Cell.date(raw)
    if isinstance(raw, (int, float, np.integer, np.floating)):
        if pd.isna(raw):
            return EMPTY
        return Cell.number(float(raw))
    if isinstance(raw, time):
        return Cell.text(raw.isoformat())
    return Cell.text(str(raw))


def _parse_date_text(text: str) -> Optional[date]:
    stripped = text.strip()
    if not stripped:
        return None
    if not _DATE_SEPARATOR.search(stripped):
        # bare digits are not a date
        return None
    try:
        parsed = pd.to_datetime(stripped, errors="coerce", dayfirst=not _ISO_DATE.match(stripped))
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def coerce_date(value: Any) -> Optional[date]:
    """
    Resolve a cell (or raw value) to a calendar date.

    Native dates pass through, numbers are spreadsheet serials, text goes
    through general date parsing. Anything unusable yields None; this never
    raises.
    """
    cell = coerce_cell(value)
    if cell.kind == CellKind.DATE:
        return cell.value.date() if isinstance(cell.value, datetime) else cell.value
    if cell.kind == CellKind.NUMBER:
        if not math.isfinite(cell.value):
            return None
        try:
            resolved = from_excel(cell.value)
        except (ValueError, OverflowError, TypeError):
            return None
        # fractions below one day are a time of day, not a date
        return resolved.date() if isinstance(resolved, datetime) else None
    if cell.kind == CellKind.TEXT:
        return _parse_date_text(cell.value)
    return None


def format_date(value: Any) -> str:
    """nl-NL short date (d-m-yyyy); empty string when there is no date"""
    d = value if isinstance(value, date) else coerce_date(value)
    if d is None:
        return ""
    return f"{d.day}-{d.month}-{d.year}"


def format_timestamp(value: datetime) -> str:
    """nl-NL date and time, e.g. 5-3-2025, 14:07:09"""
    return f"{format_date(value)}, {value.strftime('%H:%M:%S')}"


def collation_key(text: str):
    """Sort key approximating locale-aware comparison: accents and case are
    secondary to the base letters, the raw text breaks ties"""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return (base.casefold(), text)
