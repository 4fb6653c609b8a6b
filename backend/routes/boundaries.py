"""
Boundary routes — read-only access to the grade boundary reference table.
"""

from fastapi import APIRouter, Depends, HTTPException

from core.boundaries import BoundaryTable
from core.config import get_boundary_table
from core.errors import NotFoundError
from core.grading import get_grade_scale, session_label

router = APIRouter()


@router.get("/years")
async def available_years(table: BoundaryTable = Depends(get_boundary_table)):
    """Years with published boundaries, newest first."""
    return {"years": table.get_available_years()}


@router.get("/years/{year}/sessions")
async def available_sessions(year: int, table: BoundaryTable = Depends(get_boundary_table)):
    """Sessions with published boundaries for one year, in calendar order."""
    sessions = table.get_available_sessions(year)
    return {
        "year": year,
        "sessions": [{"value": s, "label": session_label(s)} for s in sessions],
    }


@router.get("/grades")
async def grade_scale(table: BoundaryTable = Depends(get_boundary_table)):
    """Grade labels (highest first) with the UMS awarded at each threshold."""
    return {"grades": table.get_available_grades(), "scale": get_grade_scale()}


@router.get("/{year}/{session}")
async def thresholds(year: int, session: str, table: BoundaryTable = Depends(get_boundary_table)):
    """Raw-mark thresholds for a single paper."""
    try:
        entry = table.get_thresholds(year, session)
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    return entry.to_dict()
