import shutil
import tempfile
import unittest
from datetime import date, datetime
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook, load_workbook

from deviation_recon.date_rules import Remark
from deviation_recon.errors import EmptyInput
from deviation_recon.generate_report import (
    HEADERS_OVERDUE,
    SHEET_CONCEPT,
    SHEET_HOLDERS,
    SHEET_OVERDUE,
    ReportGenerator,
    build_sheet,
    compute_column_widths,
    meta_rows,
)
from deviation_recon.ingestion import DeviationRecord, OverviewResult

NOW = datetime(2025, 3, 5, 14, 7, 9)


def deviation(code: str, holder: str = "Jan") -> DeviationRecord:
    return DeviationRecord(
        code=code, title="Lekkage", measure_code="M1", measure="Afdichten", status="Vigerend",
        action_holder=holder, planned_date=date(2025, 3, 1), remark=Remark.OVERDUE,
    )


class TestColumnWidths(unittest.TestCase):
    def test_clamped(self) -> None:
        widths = compute_column_widths(["A", "B", "C"], [["x" * 20, "y" * 100, ""]], [])
        self.assertEqual(widths, [22, 60, 10])

    def test_metadata_counts(self) -> None:
        widths = compute_column_widths(["Actiehouder"], [], [["Datum DB", "5-3-2025, 14:07:09"]])
        self.assertEqual(widths, [13])

    def test_dates_measured_as_displayed(self) -> None:
        widths = compute_column_widths(["D"], [[date(2025, 12, 31)]], [])
        self.assertEqual(widths, [12])


class TestReportWorkbook(unittest.TestCase):
    def setUp(self) -> None:
        self.overview = OverviewResult(
            deviations=[deviation("A1"), deviation("A2", "Kees")],
            concepts=[],
            action_holders=["Jan", "Kees"],
        )
        self.wb = ReportGenerator().build_workbook(self.overview, "Station Noord", NOW)

    def test_sheets_in_order(self) -> None:
        self.assertEqual(self.wb.sheetnames, [SHEET_OVERDUE, SHEET_CONCEPT, SHEET_HOLDERS])

    def test_metadata_block(self) -> None:
        ws = self.wb[SHEET_OVERDUE]
        self.assertEqual(ws["A1"].value, "Project")
        self.assertEqual(ws["B1"].value, "Station Noord")
        self.assertEqual(ws["A2"].value, "Type")
        self.assertEqual(ws["B3"].value, "5-3-2025, 14:07:09")

    def test_table_and_styling(self) -> None:
        ws = self.wb[SHEET_OVERDUE]
        self.assertEqual([c.value for c in ws[4]], HEADERS_OVERDUE)
        table = ws.tables["AchterstalligTable"]
        self.assertEqual(table.ref, "A4:H6")
        self.assertEqual(table.tableStyleInfo.name, "TableStyleLight1")
        self.assertFalse(table.tableStyleInfo.showRowStripes)
        self.assertEqual(ws["A4"].fill.fgColor.rgb, "FF630D80")
        self.assertTrue(ws["A4"].font.bold)
        self.assertEqual(ws["A5"].fill.fgColor.rgb, "FFC1E62E")
        self.assertEqual(ws["A6"].fill.fgColor.rgb, "FFBAFF33")
        self.assertEqual(ws.freeze_panes, "A5")

    def test_record_values(self) -> None:
        ws = self.wb[SHEET_OVERDUE]
        self.assertEqual(ws["A5"].value, "A1")
        self.assertEqual(ws["F6"].value, "Kees")
        self.assertEqual(ws["G5"].value, date(2025, 3, 1))
        self.assertEqual(ws["G5"].number_format, "d-m-yyyy")
        self.assertEqual(ws["H5"].value, "Deadline verlopen")

    def test_empty_sheet_keeps_a_placeholder_row(self) -> None:
        ws = self.wb[SHEET_CONCEPT]
        self.assertEqual(ws.tables["ConceptTable"].ref, "A4:E5")
        self.assertIsNone(ws["A5"].value)

    def test_holders_sheet(self) -> None:
        ws = self.wb[SHEET_HOLDERS]
        self.assertEqual([ws["A5"].value, ws["A6"].value], ["Jan", "Kees"])

    def test_nothing_to_export(self) -> None:
        with self.assertRaises(EmptyInput):
            ReportGenerator().build_workbook(OverviewResult(), "S", NOW)

    def test_build_sheet_writes_blank_strings_as_empty(self) -> None:
        wb = Workbook()
        build_sheet(wb, "X", ["A", "B"], [["a", ""]], "XTable", meta_rows("", NOW))
        self.assertEqual(wb["X"]["A5"].value, "a")
        self.assertIsNone(wb["X"]["B5"].value)
        self.assertIsNone(wb["X"]["B1"].value)


class TestGenerateReport(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.mkdtemp()

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_file_written_with_timestamp(self) -> None:
        overview = OverviewResult(deviations=[deviation("A1")], action_holders=["Jan"])
        path = ReportGenerator(self.tmp).generate_report(overview, "S", NOW)
        self.assertEqual(path, Path(self.tmp) / "Afwijkingen_dashboard_export_2025-03-05_14-07-09.xlsx")
        wb = load_workbook(path)
        self.assertEqual(wb[SHEET_OVERDUE]["A5"].value, "A1")

    def test_to_bytes_opens_as_workbook(self) -> None:
        overview = OverviewResult(action_holders=["Jan"])
        data = ReportGenerator().to_bytes(overview, "", NOW)
        wb = load_workbook(BytesIO(data))
        self.assertIsNone(wb[SHEET_OVERDUE]["B1"].value)


if __name__ == "__main__":
    unittest.main()
