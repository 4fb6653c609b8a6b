"""
Tests for core/report_builder.py — PDF/Excel generation completes without errors.
"""

import os
import sys
import tempfile

import pytest
from openpyxl import load_workbook

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.aggregator import get_boundary_analysis, get_chart_data, get_grade_analysis
from core.report_builder import generate_boundary_report_pdf, generate_excel_export

APP_NAME = "Test Boundaries"
SELECTION = {"grades": ["A*", "A"], "years": [2022, 2023], "sessions": ["jan", "june", "oct"], "mode": "separate"}
CALCULATIONS = [
    {"id": "abc123", "year": 2023, "session": "june", "raw_mark": 70, "grade": "A", "ums": 98,
     "timestamp": "2024-01-01T00:00:00+00:00"},
    {"id": "def456", "year": 2022, "session": "oct", "raw_mark": 20, "grade": "U", "ums": 29,
     "timestamp": "2024-01-02T00:00:00+00:00"},
]


@pytest.fixture
def report_inputs(trend_table):
    """Pre-compute the analytics a boundary report needs."""
    return {
        "selection": SELECTION,
        "analysis": get_boundary_analysis(trend_table, **SELECTION),
        "grade_cards": get_grade_analysis(trend_table, **SELECTION),
        "chart_rows": get_chart_data(trend_table, **SELECTION),
    }


class TestGenerateBoundaryReportPdf:
    """Boundary analysis PDF."""

    def test_creates_valid_pdf(self, report_inputs):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "boundary_report.pdf")
            generate_boundary_report_pdf(output_path=path, app_name=APP_NAME, **report_inputs)
            assert os.path.getsize(path) > 0
            with open(path, "rb") as f:
                assert f.read(5) == b"%PDF-"

    def test_empty_selection_still_renders(self, trend_table):
        selection = dict(SELECTION, years=[2030])
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "empty.pdf")
            generate_boundary_report_pdf(
                output_path=path,
                app_name=APP_NAME,
                selection=selection,
                analysis=get_boundary_analysis(trend_table, **selection),
                grade_cards=get_grade_analysis(trend_table, **selection),
                chart_rows=get_chart_data(trend_table, **selection),
            )
            with open(path, "rb") as f:
                assert f.read(5) == b"%PDF-"


class TestGenerateExcelExport:
    """Saved calculations workbook."""

    def test_calculations_sheet(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "export.xlsx")
            generate_excel_export(output_path=path, app_name=APP_NAME, calculations=CALCULATIONS)
            wb = load_workbook(path)
            assert wb.sheetnames == ["Saved Calculations"]
            ws = wb["Saved Calculations"]
            assert ws.max_row == 3
            assert ws["D2"].value == "A"
            assert ws["E2"].value == 98

    def test_boundaries_sheet_added(self, report_inputs):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "export.xlsx")
            generate_excel_export(
                output_path=path,
                app_name=APP_NAME,
                calculations=[],
                chart_rows=report_inputs["chart_rows"],
            )
            wb = load_workbook(path)
            assert wb.sheetnames == ["Saved Calculations", "Boundaries"]
            ws = wb["Boundaries"]
            assert [c.value for c in ws[1]] == ["Year", "Session", "Grade A*", "Grade A"]
            assert ws.max_row == 1 + len(report_inputs["chart_rows"])
