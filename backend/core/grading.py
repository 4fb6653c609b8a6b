"""
grading.py — A-level grade scale, UMS scale and exam session helpers.

Grades are ranked highest to lowest:
  A*, A, B, C, D, E, U

The order is declared once in GRADE_BANDS and everything else derives from
it, so "the next higher grade" never depends on dict iteration order.
"""

import re
from typing import Any, Dict, List, Optional


# Grade bands (label, UMS awarded at the threshold, description)
# Ordered high to low.
GRADE_BANDS = [
    ("A*", 100, "Exceptional"),
    ("A", 90, "Excellent"),
    ("B", 80, "Very Good"),
    ("C", 70, "Good"),
    ("D", 60, "Satisfactory"),
    ("E", 50, "Pass"),
    ("U", 0, "Unclassified"),
]

GRADE_ORDER: List[str] = [label for label, _, _ in GRADE_BANDS]
UMS_SCALE: Dict[str, int] = {label: ums for label, ums, _ in GRADE_BANDS}
GRADE_RANK: Dict[str, int] = {label: idx for idx, label in enumerate(GRADE_ORDER)}

# U has an implicit threshold of 0, every other grade needs one in the table.
THRESHOLD_GRADES: List[str] = GRADE_ORDER[:-1]
FLOOR_GRADE = "U"
TOP_GRADE = "A*"

MAX_UMS = 100
DEFAULT_MAX_MARK = 90


def next_higher_grade(grade: str) -> Optional[str]:
    """Return the grade ranked immediately above `grade`, or None for A*."""
    rank = GRADE_RANK[grade]
    return GRADE_ORDER[rank - 1] if rank > 0 else None


def normalize_grade(value: Any) -> Optional[str]:
    """Map user input like ' a* ' or 'a' to a grade label, or None."""
    if value is None:
        return None
    label = str(value).strip().upper().replace(" ", "")
    if label in ("ASTAR", "A+"):
        label = "A*"
    return label if label in GRADE_RANK else None


def sort_grades(grades) -> List[str]:
    """Sort grade labels highest first, dropping duplicates."""
    return sorted(set(grades), key=lambda g: GRADE_RANK[g])


def get_grade_scale() -> List[Dict[str, Any]]:
    """Return the full grade/UMS scale for legend/reference."""
    scale = []
    for idx, (label, ums, desc) in enumerate(GRADE_BANDS):
        ums_max = MAX_UMS if idx == 0 else GRADE_BANDS[idx - 1][1] - 1
        scale.append(
            {
                "label": label,
                "ums_min": ums,
                "ums_max": ums_max,
                "description": desc,
            }
        )
    return scale


# Exam session ordering helpers. "avg" is the synthetic label produced by
# averaging a year's sessions and sorts ahead of the real ones.
AVERAGE_SESSION = "avg"
SESSION_ORDER = ["jan", "june", "oct"]
SESSION_META = {
    "avg": {"order": 0, "label": "Average"},
    "jan": {"order": 1, "label": "January"},
    "june": {"order": 2, "label": "June"},
    "oct": {"order": 3, "label": "October/November"},
}

SESSION_ALIASES = {
    "jan": ["jan", "january", "winter", "w"],
    "june": ["june", "jun", "may", "may/june", "summer", "s"],
    "oct": ["oct", "october", "nov", "november", "oct/nov", "autumn"],
}


def normalize_session(value: Any) -> Optional[str]:
    """
    Map a session label to its canonical lowercase token.

    Examples: "June" -> "june", "Oct/Nov" -> "oct", "JANUARY" -> "jan".
    Returns None for anything unrecognised.
    """
    if value is None:
        return None
    raw = re.sub(r"\s+", "", str(value).strip().lower())
    if raw == AVERAGE_SESSION:
        return AVERAGE_SESSION
    for token, aliases in SESSION_ALIASES.items():
        if raw in aliases:
            return token
    return None


def session_sort_key(session: str) -> int:
    meta = SESSION_META.get(session)
    return meta["order"] if meta else 99


def sort_sessions(session_list) -> List[str]:
    """Sort session tokens in calendar order (avg, jan, june, oct)."""
    return sorted(session_list, key=session_sort_key)


def session_label(session: str) -> str:
    meta = SESSION_META.get(session)
    return meta["label"] if meta else str(session)
