"""
Report routes — PDF and Excel export endpoints.
"""

import uuid
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from core.aggregator import get_boundary_analysis, get_chart_data, get_grade_analysis
from core.boundaries import BoundaryTable
from core.calculations import CalculationStore
from core.config import app_name, get_boundary_table, get_calculation_store, reports_dir
from core.report_builder import generate_boundary_report_pdf, generate_excel_export
from routes.analyze import selection_from_payload

router = APIRouter()


def _safe_unlink(path: str):
    """Remove a generated report once the response has been sent."""
    Path(path).unlink(missing_ok=True)


def _output_path(prefix: str, ext: str):
    out_dir = reports_dir()
    out_dir.mkdir(parents=True, exist_ok=True)
    report_id = str(uuid.uuid4())[:8]
    return report_id, out_dir / f"{prefix}_{report_id}.{ext}"


@router.post("/pdf")
async def boundary_report_pdf(payload: dict, table: BoundaryTable = Depends(get_boundary_table)):
    """Generate a grade boundary analysis PDF for a selection."""
    selection = selection_from_payload(payload)
    report_id, output_path = _output_path("boundary_report", "pdf")

    generate_boundary_report_pdf(
        output_path=str(output_path),
        app_name=app_name(),
        selection=selection,
        analysis=get_boundary_analysis(table, **selection),
        grade_cards=get_grade_analysis(table, **selection),
        chart_rows=get_chart_data(table, **selection),
    )

    return FileResponse(
        str(output_path),
        media_type="application/pdf",
        filename=f"Grade_Boundary_Report_{report_id}.pdf",
        background=BackgroundTask(_safe_unlink, str(output_path)),
    )


@router.post("/excel")
async def excel_export(
    payload: dict,
    table: BoundaryTable = Depends(get_boundary_table),
    store: CalculationStore = Depends(get_calculation_store),
):
    """
    Export saved calculations as an Excel workbook.
    If the payload carries a selection, a boundary data sheet is added.
    """
    chart_rows = None
    if payload.get("grades") or payload.get("years") or payload.get("sessions"):
        selection = selection_from_payload(payload)
        chart_rows = get_chart_data(table, **selection)

    report_id, output_path = _output_path("boundary_export", "xlsx")
    generate_excel_export(
        output_path=str(output_path),
        app_name=app_name(),
        calculations=store.list(),
        chart_rows=chart_rows,
    )

    return FileResponse(
        str(output_path),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=f"Grade_Boundary_Export_{report_id}.xlsx",
        background=BackgroundTask(_safe_unlink, str(output_path)),
    )
