"""
Load Files Module

Purpose: Read tabular artifacts into typed grids and write transcribed values
back into a workbook
- Reads .xlsx/.xlsm workbooks (openpyxl) and .csv exports (pandas)
- Converts every value to a Cell exactly once
- Prefills the station label from the dashboard workbook
- Writes transcription changes into the database workbook, preserving its
  formatting and widening table ranges
"""

import zipfile
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd
from loguru import logger
from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.cell import coordinate_to_tuple, range_boundaries
from openpyxl.utils.exceptions import InvalidFileException

from deviation_recon.cell_values import EMPTY, Cell, CellKind, coerce_cell
from deviation_recon.errors import UnreadableSource

WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm")
CSV_EXTENSIONS = (".csv",)

DATE_FORMAT = "d-m-yyyy"
TIMESTAMP_FORMAT = "d-m-yyyy hh:mm:ss"


@dataclass(frozen=True)
class Extent:
    """Declared bounds of a sheet (1-based counts, like a sheet dimension)"""

    rows: int
    cols: int

    def widen(self, rows: int, cols: int) -> "Extent":
        return Extent(max(self.rows, rows), max(self.cols, cols))


@dataclass
class Sheet:
    name: str
    rows: List[List[Cell]]
    extent: Extent = None

    def __post_init__(self):
        if self.extent is None:
            width = max((len(r) for r in self.rows), default=0)
            self.extent = Extent(len(self.rows), width)

    def cell(self, row: int, col: int) -> Cell:
        """0-based access; anything outside the grid is an empty cell"""
        if col is None or row < 0 or col < 0 or row >= len(self.rows):
            return EMPTY
        values = self.rows[row]
        if col >= len(values):
            return EMPTY
        return values[col]

    def copy(self) -> "Sheet":
        return Sheet(self.name, [list(r) for r in self.rows], self.extent)


@dataclass
class SourceWorkbook:
    name: str
    sheets: Dict[str, Sheet] = field(default_factory=dict)

    @property
    def sheet_names(self) -> List[str]:
        return list(self.sheets)

    def first_sheet(self) -> Sheet:
        if not self.sheets:
            raise UnreadableSource(self.name, ValueError("workbook has no sheets"))
        return next(iter(self.sheets.values()))

    def sheet(self, name: Optional[str] = None) -> Sheet:
        """Named sheet, or the first sheet when no name is given or it is absent"""
        if name and name in self.sheets:
            return self.sheets[name]
        if name:
            logger.warning(f"⚠️ Sheet '{name}' not found in {self.name}, using first sheet")
        return self.first_sheet()


def _read_xlsx(data: bytes, name: str) -> SourceWorkbook:
    wb = load_workbook(BytesIO(data), data_only=True)
    book = SourceWorkbook(name)
    for ws in wb.worksheets:
        rows = [[coerce_cell(v) for v in row] for row in ws.iter_rows(values_only=True)]
        book.sheets[ws.title] = Sheet(ws.title, rows, Extent(ws.max_row, ws.max_column))
    wb.close()
    return book


def _csv_cell(text: str) -> Cell:
    """CSV fields arrive as text; numeric ones (date serials included) become numbers"""
    if not text.strip():
        return EMPTY
    number = pd.to_numeric(text.strip(), errors="coerce")
    if pd.isna(number):
        return Cell.text(text)
    return coerce_cell(number)


def _read_csv(data: bytes, name: str) -> SourceWorkbook:
    df = pd.read_csv(BytesIO(data), header=None, dtype=str, keep_default_na=False, low_memory=False)
    rows = [[_csv_cell(v) for v in record] for record in df.itertuples(index=False, name=None)]
    sheet_name = Path(name).stem
    return SourceWorkbook(name, {sheet_name: Sheet(sheet_name, rows, Extent(*df.shape))})


def read_workbook(source: Union[str, Path, bytes], name: Optional[str] = None) -> SourceWorkbook:
    """
    Read a path or raw bytes into a SourceWorkbook.

    The extension of `name` (or of the path) selects the reader; bytes without
    a name are treated as .xlsx.
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
        name = name or "workbook.xlsx"
    else:
        path = Path(source)
        name = name or path.name
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error(f"❌ Cannot open {path}: {e}")
            raise UnreadableSource(name, e) from e

    ext = Path(name).suffix.lower()
    try:
        if ext in CSV_EXTENSIONS:
            book = _read_csv(data, name)
        elif ext in WORKBOOK_EXTENSIONS or not ext:
            book = _read_xlsx(data, name)
        else:
            raise ValueError(f"unsupported file type '{ext}'")
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError,
            pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"❌ Unreadable source {name}: {e}")
        raise UnreadableSource(name, e) from e

    logger.info(f"✅ Loaded {name}: {len(book.sheets)} sheet(s) {book.sheet_names}")
    return book


def read_station_label(book: SourceWorkbook, sheet_name: str = "Afwijking achterstallig",
                       cell_ref: str = "B1") -> str:
    """Station label stored in a previously exported dashboard"""
    sheet = book.sheet(sheet_name)
    row, col = coordinate_to_tuple(cell_ref)
    return sheet.cell(row - 1, col - 1).as_text().strip()


def _number_format_for(cell: Cell) -> Optional[str]:
    if cell.kind != CellKind.DATE:
        return None
    return TIMESTAMP_FORMAT if isinstance(cell.value, datetime) else DATE_FORMAT


def require_workbook_database(name: str) -> None:
    """Transcribed values can only be written back into an xlsx/xlsm workbook"""
    ext = Path(name).suffix.lower()
    if ext not in WORKBOOK_EXTENSIONS:
        logger.error(f"❌ Database {name} is not an Excel workbook")
        raise UnreadableSource(name, ValueError(f"database must be .xlsx or .xlsm, got '{ext}'"))


def write_transcribed_sheet(source_bytes: bytes, sheet_name: str, changes: Dict[Tuple[int, int], Cell],
                            extent: Extent, keep_vba: bool = False) -> bytes:
    """
    Apply cell changes (0-based row/col -> Cell) to one sheet of a workbook and
    return the saved workbook bytes. Table and auto-filter ranges on the sheet
    grow to cover `extent`; they never shrink. `keep_vba` carries the macro
    part of an .xlsm workbook over into the saved bytes.
    """
    try:
        wb = load_workbook(BytesIO(source_bytes), keep_vba=keep_vba)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError) as e:
        raise UnreadableSource(sheet_name, e) from e
    ws = wb[sheet_name] if sheet_name in wb.sheetnames else wb.worksheets[0]

    for (row, col), cell in sorted(changes.items()):
        target = ws.cell(row=row + 1, column=col + 1)
        target.value = cell.to_native()
        number_format = _number_format_for(cell)
        if number_format:
            target.number_format = number_format

    for table in ws.tables.values():
        min_col, min_row, max_col, max_row = range_boundaries(table.ref)
        new_max_row = max(max_row, extent.rows)
        if new_max_row != max_row:
            table.ref = f"{get_column_letter(min_col)}{min_row}:{get_column_letter(max_col)}{new_max_row}"
            if table.autoFilter is not None:
                table.autoFilter.ref = table.ref
            logger.info(f"  Table '{table.displayName}' widened to {table.ref}")

    if ws.auto_filter.ref:
        min_col, min_row, max_col, max_row = range_boundaries(ws.auto_filter.ref)
        ws.auto_filter.ref = (
            f"{get_column_letter(min_col)}{min_row}:"
            f"{get_column_letter(max(max_col, extent.cols))}{max(max_row, extent.rows)}"
        )

    buffer = BytesIO()
    wb.save(buffer)
    logger.info(f"✅ Wrote {len(changes):,} cells to sheet '{ws.title}'")
    return buffer.getvalue()
