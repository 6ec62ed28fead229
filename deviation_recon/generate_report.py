"""
Generate Report Module
Purpose: Create the multi-sheet dashboard export from the overview records

Sheets:
1. Afwijking achterstallig (overdue-track measures)
2. Afwijking concept (concept deviations)
3. Actiehouders (action holders)

Each sheet: 3 metadata rows, then an Excel table from row 4 with a styled
header, banded rows, computed column widths and a frozen header.
"""

from datetime import date, datetime
from io import BytesIO
from pathlib import Path
from typing import Any, List, Optional, Sequence

from loguru import logger
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from deviation_recon.cell_values import format_date, format_timestamp
from deviation_recon.errors import EmptyInput
from deviation_recon.ingestion import ConceptRecord, DeviationRecord, OverviewResult

SHEET_OVERDUE = "Afwijking achterstallig"
SHEET_CONCEPT = "Afwijking concept"
SHEET_HOLDERS = "Actiehouders"

HEADERS_OVERDUE = [
    "Afw. Code", "Afwijking Titel", "Maatregel Code", "Maatregel",
    "Status", "Actiehouder", "Geplande datum klaar", "Opmerking",
]
HEADERS_CONCEPT = ["Afw. Code", "Afwijking Titel", "Status", "Opsteller", "Geplande datum klaar"]
HEADERS_HOLDERS = ["Actiehouder"]

REPORT_TYPE = "Afwijkingen overzicht"
TABLE_ROW = 4
TABLE_STYLE = "TableStyleLight1"

HEADER_FILL = PatternFill("solid", fgColor="FF630D80")
HEADER_FONT = Font(bold=True, color="FFFFFFFF")
LIGHT_FILL = PatternFill("solid", fgColor="FFC1E62E")
DARK_FILL = PatternFill("solid", fgColor="FFBAFF33")
DATE_FORMAT = "d-m-yyyy"

MIN_WIDTH = 10
MAX_WIDTH = 60


def _display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return format_date(value)
    return str(value)


def _clamped(value: Any) -> int:
    return min(max(len(_display(value)) + 2, MIN_WIDTH), MAX_WIDTH)


def compute_column_widths(headers: Sequence[str], rows: Sequence[Sequence[Any]],
                          meta_rows: Sequence[Sequence[Any]]) -> List[int]:
    """clamp(longest text + 2, 10, 60) per column over header, data and metadata"""
    widths = [MIN_WIDTH] * len(headers)
    for row in [headers, *rows, *meta_rows]:
        for idx, value in enumerate(row):
            if idx >= len(widths):
                break
            widths[idx] = max(widths[idx], _clamped(value))
    return widths


def overdue_rows(records: Sequence[DeviationRecord]) -> List[list]:
    return [
        [r.code, r.title, r.measure_code, r.measure, r.status, r.action_holder, r.planned_date, r.remark.value]
        for r in records
    ]


def concept_rows(records: Sequence[ConceptRecord]) -> List[list]:
    return [[r.code, r.title, r.status, r.author, r.planned_date] for r in records]


def meta_rows(station: str, now: datetime) -> List[list]:
    return [
        ["Project", station or ""],
        ["Type", REPORT_TYPE],
        ["Datum DB", format_timestamp(now)],
    ]


def _style_meta_block(ws) -> None:
    for row_idx in range(1, TABLE_ROW):
        ws.row_dimensions[row_idx].height = 18
        ws.cell(row=row_idx, column=1).font = Font(bold=True)
        ws.cell(row=row_idx, column=1).alignment = Alignment(vertical="center")
        ws.cell(row=row_idx, column=2).alignment = Alignment(vertical="center")


def _style_table(ws, row_count: int, column_count: int) -> None:
    ws.row_dimensions[TABLE_ROW].height = 20
    for col_idx in range(1, column_count + 1):
        cell = ws.cell(row=TABLE_ROW, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(vertical="center", wrap_text=True)
    for row_idx in range(TABLE_ROW + 1, TABLE_ROW + 1 + row_count):
        fill = DARK_FILL if row_idx % 2 == 0 else LIGHT_FILL
        for col_idx in range(1, column_count + 1):
            ws.cell(row=row_idx, column=col_idx).fill = fill


def build_sheet(wb: Workbook, name: str, headers: List[str], rows: List[list],
                table_name: str, meta: List[list]) -> None:
    ws = wb.create_sheet(title=name)
    for row in meta:
        ws.append([value if value != "" else None for value in row])

    # tables need at least one data row
    table_rows = rows if rows else [[None] * len(headers)]
    ws.append(headers)
    for row in table_rows:
        ws.append([value if value != "" else None for value in row])
        for col_idx, value in enumerate(row, start=1):
            if isinstance(value, date):
                ws.cell(row=ws.max_row, column=col_idx).number_format = DATE_FORMAT

    last_row = TABLE_ROW + len(table_rows)
    table = Table(displayName=table_name, ref=f"A{TABLE_ROW}:{get_column_letter(len(headers))}{last_row}")
    table.tableStyleInfo = TableStyleInfo(
        name=TABLE_STYLE, showFirstColumn=False, showLastColumn=False,
        showRowStripes=False, showColumnStripes=False,
    )
    ws.add_table(table)

    _style_meta_block(ws)
    _style_table(ws, len(table_rows), len(headers))
    for idx, width in enumerate(compute_column_widths(headers, rows, meta), start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width
    ws.freeze_panes = f"A{TABLE_ROW + 1}"
    logger.info(f"  Wrote {len(rows):,} records to '{name}'")


class ReportGenerator:
    """Build the dashboard export workbook"""

    def __init__(self, output_folder: str = "data/output", prefix: str = "Afwijkingen_dashboard_export"):
        self.output_folder = Path(output_folder)
        self.prefix = prefix

    def build_workbook(self, overview: OverviewResult, station: str, now: datetime) -> Workbook:
        if not (overview.deviations or overview.concepts or overview.action_holders):
            raise EmptyInput("report")
        meta = meta_rows(station, now)
        wb = Workbook()
        wb.remove(wb.active)
        wb.properties.creator = "deviation-recon"
        build_sheet(wb, SHEET_OVERDUE, HEADERS_OVERDUE, overdue_rows(overview.deviations), "AchterstalligTable", meta)
        build_sheet(wb, SHEET_CONCEPT, HEADERS_CONCEPT, concept_rows(overview.concepts), "ConceptTable", meta)
        build_sheet(wb, SHEET_HOLDERS, HEADERS_HOLDERS, [[h] for h in overview.action_holders],
                    "ActiehoudersTable", meta)
        return wb

    def to_bytes(self, overview: OverviewResult, station: str, now: datetime) -> bytes:
        buffer = BytesIO()
        self.build_workbook(overview, station, now).save(buffer)
        return buffer.getvalue()

    def generate_report(self, overview: OverviewResult, station: str, now: datetime,
                        timestamp: Optional[str] = None) -> Path:
        logger.info("=" * 80)
        logger.info("GENERATING DASHBOARD EXPORT")
        logger.info("=" * 80)
        data = self.to_bytes(overview, station, now)
        self.output_folder.mkdir(parents=True, exist_ok=True)
        timestamp = timestamp or now.strftime("%Y-%m-%d_%H-%M-%S")
        filepath = self.output_folder / f"{self.prefix}_{timestamp}.xlsx"
        filepath.write_bytes(data)
        logger.info(f"✓ Report generated: {filepath}")
        return filepath
