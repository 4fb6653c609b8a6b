"""
Calculator routes — raw mark to grade and UMS.
"""

from fastapi import APIRouter, Depends, HTTPException

from core.boundaries import BoundaryTable
from core.config import get_boundary_table
from core.errors import InvalidMarkError, NotFoundError
from core.narrative import grade_feedback, narrate_calculation
from core.resolver import resolve

router = APIRouter()


def paper_from_payload(payload: dict):
    """Extract (year, session, raw_mark) from a request payload."""
    year = payload.get("year")
    session = payload.get("session")
    raw_mark = payload.get("raw_mark", payload.get("rawMark"))
    if year is None or session is None or raw_mark is None:
        raise HTTPException(400, "Provide 'year', 'session' and 'raw_mark'.")
    return year, session, raw_mark


def resolve_or_raise(table: BoundaryTable, year, session, raw_mark) -> dict:
    """Run the resolver, translating domain errors into HTTP errors."""
    try:
        return resolve(table, year, session, raw_mark)
    except NotFoundError as exc:
        raise HTTPException(404, f"{exc}. This paper is not supported yet.")
    except InvalidMarkError as exc:
        raise HTTPException(400, str(exc))


@router.post("/resolve")
async def resolve_mark(payload: dict, table: BoundaryTable = Depends(get_boundary_table)):
    """
    Convert a raw mark into a grade and UMS score.
    Expects: { "year": 2023, "session": "june", "raw_mark": 70 }
    """
    year, session, raw_mark = paper_from_payload(payload)
    result = resolve_or_raise(table, year, session, raw_mark)
    entry = table.get_thresholds(year, session)
    return {
        "year": entry.year,
        "session": entry.session,
        "raw_mark": raw_mark,
        "max_mark": entry.max_mark,
        "grade": result["grade"],
        "ums": result["ums"],
        "feedback": grade_feedback(result["grade"]),
        "message": narrate_calculation(result["grade"], result["ums"], entry.year, entry.session),
    }
