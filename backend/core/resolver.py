"""
resolver.py — Raw mark → grade → UMS conversion.

The grade is the highest-ranked grade whose threshold the raw mark meets.
UMS is interpolated linearly between the resolved grade's threshold and the
next higher grade's threshold, so it is continuous across boundaries while
the grade steps discretely. A* is a plateau capped at 100.
"""

import math
from numbers import Integral, Real
from typing import Any, Dict

from core.boundaries import BoundaryEntry, BoundaryTable
from core.errors import InvalidMarkError
from core.grading import GRADE_ORDER, MAX_UMS, TOP_GRADE, UMS_SCALE, next_higher_grade

# UMS added per raw mark above the A* threshold. A* already sits at the
# 100 cap, so this only matters if the UMS scale is ever lowered.
A_STAR_BONUS_PER_MARK = 1


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def _check_mark(raw_mark: Any, entry: BoundaryEntry) -> int:
    if isinstance(raw_mark, bool) or not isinstance(raw_mark, Real):
        raise InvalidMarkError(raw_mark, entry.max_mark, entry.year, entry.session)
    if not isinstance(raw_mark, Integral):
        if not float(raw_mark).is_integer():
            raise InvalidMarkError(raw_mark, entry.max_mark, entry.year, entry.session)
    mark = int(raw_mark)
    if mark < 0 or mark > entry.max_mark:
        raise InvalidMarkError(raw_mark, entry.max_mark, entry.year, entry.session)
    return mark


def grade_for_mark(entry: BoundaryEntry, raw_mark: int) -> str:
    """Walk A* → U and return the first grade whose threshold raw_mark meets."""
    for grade in GRADE_ORDER:
        if raw_mark >= entry.threshold(grade):
            return grade
    return GRADE_ORDER[-1]


def ums_for_mark(entry: BoundaryEntry, grade: str, raw_mark: int) -> int:
    t_grade = entry.threshold(grade)
    u_grade = UMS_SCALE[grade]

    if grade == TOP_GRADE:
        return min(MAX_UMS, u_grade + A_STAR_BONUS_PER_MARK * (raw_mark - t_grade))

    higher = next_higher_grade(grade)
    t_next = entry.threshold(higher)
    u_next = UMS_SCALE[higher]
    if t_next == t_grade:
        return u_grade

    ums = u_grade + (raw_mark - t_grade) / (t_next - t_grade) * (u_next - u_grade)
    return round_half_up(ums)


def resolve_entry(entry: BoundaryEntry, raw_mark: Any) -> Dict[str, Any]:
    mark = _check_mark(raw_mark, entry)
    grade = grade_for_mark(entry, mark)
    return {"grade": grade, "ums": ums_for_mark(entry, grade, mark)}


def resolve(table: BoundaryTable, year: Any, session: Any, raw_mark: Any) -> Dict[str, Any]:
    """
    Classify `raw_mark` for the (year, session) paper.

    Returns {"grade": str, "ums": int}. Raises NotFoundError when the table
    has no entry for the pair and InvalidMarkError when the mark is not a
    whole number within [0, max_mark].
    """
    return resolve_entry(table.get_thresholds(year, session), raw_mark)
