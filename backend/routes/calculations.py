"""
Calculation routes — the saved-calculation log.
"""

from fastapi import APIRouter, Depends, HTTPException

from core.boundaries import BoundaryTable
from core.calculations import CalculationStore
from core.config import get_boundary_table, get_calculation_store
from routes.calculator import paper_from_payload, resolve_or_raise

router = APIRouter()


@router.get("")
async def list_calculations(store: CalculationStore = Depends(get_calculation_store)):
    """All saved calculations, oldest first."""
    calculations = store.list()
    return {"calculations": calculations, "count": len(calculations)}


@router.post("")
async def save_calculation(
    payload: dict,
    table: BoundaryTable = Depends(get_boundary_table),
    store: CalculationStore = Depends(get_calculation_store),
):
    """
    Save a calculation.
    Expects: { "year", "session", "raw_mark" } and optionally "grade" + "ums".
    When grade/ums are missing the mark is resolved first.
    """
    year, session, raw_mark = paper_from_payload(payload)
    grade = payload.get("grade")
    ums = payload.get("ums")
    if grade is None or ums is None:
        result = resolve_or_raise(table, year, session, raw_mark)
        grade, ums = result["grade"], result["ums"]

    try:
        calc_id = store.save({
            "year": year,
            "session": session,
            "raw_mark": raw_mark,
            "grade": grade,
            "ums": ums,
        })
    except ValueError as exc:
        raise HTTPException(400, str(exc))
    return {"id": calc_id, "calculation": store.get(calc_id)}


@router.delete("/{calculation_id}")
async def delete_calculation(
    calculation_id: str,
    store: CalculationStore = Depends(get_calculation_store),
):
    """Remove a saved calculation. Unknown ids succeed with removed=false."""
    removed = store.remove(calculation_id)
    return {"id": calculation_id, "removed": removed}
