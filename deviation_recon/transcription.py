"""
Column-Aligned Transcription
Purpose: Copy the freshly ingested overview into the persistent database sheet,
matching columns by normalized header label instead of position

Rules:
- Columns are matched by label; order and count may differ between sheets
- Rows inside the source range get the source value (blank when the column has
  no counterpart); the export timestamp and station columns are filled in
- Rows beyond the source range are blanked in every matched and synthetic
  column, columns without a counterpart keep their old value there
- Missing source columns do not stop the copy; whatever matches is copied
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Tuple

from loguru import logger

from deviation_recon.cell_values import EMPTY, Cell
from deviation_recon.errors import EmptyInput
from deviation_recon.header_index import HeaderIndex, normalize_label
from deviation_recon.load_files import Sheet

COL_EXPORT_DATE = "Date export"
COL_STATION = "Station"

DATABASE_PASS = "database"
DEFAULT_HEADER_ROW = 2


@dataclass
class TranscriptionResult:
    sheet: Sheet
    changes: Dict[Tuple[int, int], Cell] = field(default_factory=dict)
    header_row: int = DEFAULT_HEADER_ROW
    source_rows: int = 0
    rows_written: int = 0
    matched: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)


def _source_row_count(source: Sheet) -> int:
    count = len(source.rows) - 1
    while count > 0 and all(c.is_blank for c in source.rows[count]):
        count -= 1
    return max(count, 0)


def transcribe(source: Sheet, target: Sheet, station: str, now: datetime,
               header_row: int = DEFAULT_HEADER_ROW) -> TranscriptionResult:
    """
    Return a new target sheet with the source rows copied under the target's
    header row (1-based `header_row`). The input sheets are not modified.
    """
    if not source.rows:
        raise EmptyInput("overview")
    header_idx = header_row - 1
    if header_idx < 0 or header_idx >= len(target.rows) or all(c.is_blank for c in target.rows[header_idx]):
        raise EmptyInput(f"{DATABASE_PASS} header row {header_row}")

    source_index = HeaderIndex(source.rows[0])
    target_index = HeaderIndex(target.rows[header_idx])
    width = len(target_index)

    plan = []
    matched, unmatched = [], []
    for col, label in enumerate(target_index.labels):
        key = normalize_label(label)
        if not key:
            continue
        if key == normalize_label(COL_EXPORT_DATE):
            plan.append((col, "timestamp", None))
        elif key == normalize_label(COL_STATION):
            plan.append((col, "station", None))
        else:
            src_col = source_index.lookup(label)
            plan.append((col, "copy", src_col))
            (matched if src_col is not None else unmatched).append(label)
    if unmatched:
        logger.warning(f"⚠️ Database columns without a source column: {unmatched}")

    source_rows = _source_row_count(source)
    existing_rows = max(len(target.rows), target.extent.rows) - (header_idx + 1)
    row_count = max(source_rows, existing_rows, 0)

    out = target.copy()
    first = header_idx + 1
    while len(out.rows) < first + row_count:
        out.rows.append([])
    for r in range(first, first + row_count):
        if len(out.rows[r]) < width:
            out.rows[r] = out.rows[r] + [EMPTY] * (width - len(out.rows[r]))

    timestamp = Cell.date(now)
    station_cell = Cell.text(station) if station and station.strip() else EMPTY
    changes: Dict[Tuple[int, int], Cell] = {}
    for offset in range(row_count):
        r = first + offset
        in_range = offset < source_rows
        for col, kind, src_col in plan:
            if kind == "timestamp":
                value = timestamp if in_range else EMPTY
            elif kind == "station":
                value = station_cell if in_range else EMPTY
            elif in_range:
                value = source.cell(1 + offset, src_col) if src_col is not None else EMPTY
            elif src_col is not None:
                value = EMPTY
            else:
                continue
            out.rows[r][col] = value
            changes[(r, col)] = value

    out.extent = target.extent.widen(first + row_count, width)
    logger.info(
        f"✅ Transcribed {source_rows:,} source rows into '{target.name}' "
        f"({len(matched)} matched columns, {max(existing_rows - source_rows, 0):,} stale rows cleared)"
    )
    return TranscriptionResult(
        sheet=out,
        changes=changes,
        header_row=header_row,
        source_rows=source_rows,
        rows_written=row_count,
        matched=matched,
        unmatched=unmatched,
    )
