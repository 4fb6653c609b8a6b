"""
Analyze routes — boundary statistics and chart data for a selection.
"""

from fastapi import APIRouter, Depends, HTTPException

from core.aggregator import (
    get_boundary_analysis,
    get_chart_data,
    get_grade_analysis,
    parse_selection,
)
from core.boundaries import BoundaryTable
from core.config import get_boundary_table
from core.errors import InvalidSelectionError

router = APIRouter()


def selection_from_payload(payload: dict) -> dict:
    """
    Extract and validate a selection from a request payload.
    Expects: { "grades": [...], "years": [...], "sessions": [...], "mode": "separate" }
    """
    grades = payload.get("grades")
    years = payload.get("years")
    sessions = payload.get("sessions")
    # Empty lists are a valid selection and produce the empty analysis.
    if grades is None or years is None or sessions is None:
        raise HTTPException(400, "Provide 'grades', 'years' and 'sessions'.")
    mode = payload.get("mode", payload.get("aggregation_mode", "separate"))
    try:
        grades, years, sessions, mode = parse_selection(grades, years, sessions, mode)
    except InvalidSelectionError as exc:
        raise HTTPException(400, str(exc))
    return {"grades": grades, "years": years, "sessions": sessions, "mode": mode}


@router.post("/boundaries")
async def boundary_analysis(payload: dict, table: BoundaryTable = Depends(get_boundary_table)):
    """Min, max, average, mode, trend and safety margin across the selected grades."""
    selection = selection_from_payload(payload)
    analysis = get_boundary_analysis(table, **selection)
    return {"selection": selection, "analysis": analysis}


@router.post("/grades")
async def grade_analysis(payload: dict, table: BoundaryTable = Depends(get_boundary_table)):
    """The same analysis repeated for each selected grade."""
    selection = selection_from_payload(payload)
    return {"selection": selection, "grades": get_grade_analysis(table, **selection)}


@router.post("/chart")
async def chart_data(payload: dict, table: BoundaryTable = Depends(get_boundary_table)):
    """Chronological rows of per-grade thresholds for plotting."""
    selection = selection_from_payload(payload)
    return {"selection": selection, "rows": get_chart_data(table, **selection)}
