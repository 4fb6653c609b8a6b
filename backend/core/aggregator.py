"""
aggregator.py — Boundary statistics over a selection of grades, years and sessions.

Computes:
- Observations: one threshold per (grade, year, session) with a table entry
- Aggregation: 'separate' keeps every session, 'average' merges a year's
  sessions into one 'avg' observation per grade
- Summary statistics (min, max, average, mode) plus trend and safety margin
- Per-grade analysis cards
- Chart rows ordered chronologically for plotting

Sparse selections are normal input: a selection with no coverage returns an
empty analysis instead of raising.
"""

import logging
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from core.boundaries import BoundaryTable, coerce_year
from core.errors import InvalidSelectionError
from core.grading import (
    AVERAGE_SESSION,
    GRADE_RANK,
    SESSION_ORDER,
    normalize_grade,
    normalize_session,
    session_sort_key,
    sort_grades,
    sort_sessions,
)
from core.resolver import round_half_up
from core.trend import analyze_trend

logger = logging.getLogger(__name__)

AGGREGATION_MODES = ("separate", "average")
OBSERVATION_COLUMNS = ["grade", "year", "session", "value"]


# ── Helpers ─────────────────────────────────────────────────────────

def _clean_number(val) -> Any:
    """Coerce numpy scalars to int when whole, otherwise a 2dp float."""
    v = float(val)
    return int(v) if v.is_integer() else round(v, 2)


def _as_list(values) -> List[Any]:
    if values is None:
        return []
    if isinstance(values, (str, int)):
        return [values]
    return list(values)


def parse_selection(
    grades: Iterable[Any],
    years: Iterable[Any],
    sessions: Iterable[Any],
    mode: str = "separate",
) -> Tuple[List[str], List[int], List[str], str]:
    """
    Validate and normalise a selection.

    Returns (grades highest first, years ascending, sessions in calendar
    order, mode). Raises InvalidSelectionError for unknown tokens.
    """
    mode_token = str(mode).strip().lower() if mode is not None else ""
    if mode_token not in AGGREGATION_MODES:
        raise InvalidSelectionError(
            f"Unknown aggregation mode {mode!r}. Use one of: {', '.join(AGGREGATION_MODES)}"
        )

    clean_grades = []
    for g in _as_list(grades):
        grade = normalize_grade(g)
        if grade is None:
            raise InvalidSelectionError(f"Unknown grade: {g!r}")
        clean_grades.append(grade)

    clean_years = []
    for y in _as_list(years):
        year = coerce_year(y)
        if year is None:
            raise InvalidSelectionError(f"Invalid year: {y!r}")
        clean_years.append(year)

    clean_sessions = []
    for s in _as_list(sessions):
        session = normalize_session(s)
        if session not in SESSION_ORDER:
            raise InvalidSelectionError(f"Unknown session: {s!r}")
        clean_sessions.append(session)

    return (
        sort_grades(clean_grades),
        sorted(set(clean_years)),
        sort_sessions(set(clean_sessions)),
        mode_token,
    )


def _sort_chronological(df: pd.DataFrame) -> pd.DataFrame:
    """Year ascending, then session calendar order, then grade rank."""
    if df.empty:
        return df.reset_index(drop=True)
    return (
        df.assign(
            _session_order=df["session"].map(session_sort_key),
            _grade_rank=df["grade"].map(GRADE_RANK),
        )
        .sort_values(["year", "_session_order", "_grade_rank"], kind="mergesort")
        .drop(columns=["_session_order", "_grade_rank"])
        .reset_index(drop=True)
    )


def _merge_sessions(df: pd.DataFrame) -> pd.DataFrame:
    """
    Average a year's sessions into one 'avg' observation per grade.

    Years that only contribute a single session keep their real label.
    """
    session_counts = df.groupby("year")["session"].nunique()
    multi_session_years = session_counts[session_counts > 1].index
    to_merge = df[df["year"].isin(multi_session_years)]
    untouched = df[~df["year"].isin(multi_session_years)]

    merged = to_merge.groupby(["grade", "year"], as_index=False, sort=False)["value"].mean()
    merged["session"] = AVERAGE_SESSION

    frames = [f[OBSERVATION_COLUMNS] for f in (untouched, merged) if not f.empty]
    return pd.concat(frames, ignore_index=True)


# ── Observations ────────────────────────────────────────────────────

def extract_observations(
    table: BoundaryTable,
    grades: Iterable[Any],
    years: Iterable[Any],
    sessions: Iterable[Any],
    mode: str = "separate",
) -> pd.DataFrame:
    """
    Look up every selected grade threshold and apply the aggregation mode.

    Returns a DataFrame with columns grade, year, session, value in
    chronological order. (year, session) pairs without a table are skipped.
    """
    grades, years, sessions, mode = parse_selection(grades, years, sessions, mode)

    rows = []
    for year in years:
        for session in sessions:
            if not table.has_entry(year, session):
                logger.debug("No boundary table for %s %s, skipping", year, session)
                continue
            entry = table.get_thresholds(year, session)
            for grade in grades:
                rows.append({
                    "grade": grade,
                    "year": year,
                    "session": session,
                    "value": float(entry.threshold(grade)),
                })

    df = pd.DataFrame(rows, columns=OBSERVATION_COLUMNS)
    if mode == "average" and not df.empty:
        df = _merge_sessions(df)

    logger.debug("Selection produced %d observations (%s mode)", len(df), mode)
    return _sort_chronological(df)


# ── Statistics ──────────────────────────────────────────────────────

def _extreme(df: pd.DataFrame, largest: bool) -> Dict[str, Any]:
    """Smallest/largest observation; ties go to the earliest year, then lexical session."""
    target = df["value"].max() if largest else df["value"].min()
    candidates = df[df["value"] == target].sort_values(["year", "session"], kind="mergesort")
    row = candidates.iloc[0]
    return {
        "value": _clean_number(row["value"]),
        "year": int(row["year"]),
        "session": str(row["session"]),
    }


def _chronological_series(df: pd.DataFrame) -> List[float]:
    """One point per (year, session): the mean across the selected grades."""
    points = df.groupby(["year", "session"], sort=False)["value"].mean()
    return [float(v) for v in points.tolist()]


def empty_analysis() -> Dict[str, Any]:
    result = {
        "min": {"value": 0, "year": None, "session": None},
        "max": {"value": 0, "year": None, "session": None},
        "average": 0,
        "mode": 0,
        "observation_count": 0,
    }
    result.update(analyze_trend([], 0))
    return result


def summarize_observations(df: pd.DataFrame) -> Dict[str, Any]:
    """Reduce an observation frame to an analysis result."""
    if df.empty:
        return empty_analysis()

    rounded = df["value"].map(round_half_up)
    # Series.mode() is sorted ascending, so ties resolve to the smaller value.
    mode_value = int(rounded.mode().iloc[0])

    maximum = _extreme(df, largest=True)
    result: Dict[str, Any] = {
        "min": _extreme(df, largest=False),
        "max": maximum,
        "average": _clean_number(df["value"].mean()),
        "mode": mode_value,
        "observation_count": int(len(df)),
    }
    result.update(analyze_trend(_chronological_series(df), float(maximum["value"])))
    return result


def get_boundary_analysis(
    table: BoundaryTable,
    grades: Iterable[Any],
    years: Iterable[Any],
    sessions: Iterable[Any],
    mode: str = "separate",
) -> Dict[str, Any]:
    """Combined analysis over every selected grade."""
    df = extract_observations(table, grades, years, sessions, mode)
    return summarize_observations(df)


def get_grade_analysis(
    table: BoundaryTable,
    grades: Iterable[Any],
    years: Iterable[Any],
    sessions: Iterable[Any],
    mode: str = "separate",
) -> List[Dict[str, Any]]:
    """One analysis per selected grade, highest grade first."""
    grade_list, _, _, _ = parse_selection(grades, years, sessions, mode)
    cards = []
    for grade in grade_list:
        analysis = get_boundary_analysis(table, [grade], years, sessions, mode)
        cards.append({"grade": grade, **analysis})
    return cards


# ── Chart Data ──────────────────────────────────────────────────────

def get_chart_data(
    table: BoundaryTable,
    grades: Iterable[Any],
    years: Iterable[Any],
    sessions: Iterable[Any],
    mode: str = "separate",
) -> List[Dict[str, Any]]:
    """
    Rows of {year, session, values: {grade: threshold}} for plotting.

    Ordered year ascending, then avg < jan < june < oct. Averaged values are
    rounded to one decimal place.
    """
    df = extract_observations(table, grades, years, sessions, mode)

    rows = []
    for (year, session), group in df.groupby(["year", "session"], sort=False):
        values = {}
        for grade, value in zip(group["grade"], group["value"]):
            if session == AVERAGE_SESSION:
                value = round(float(value), 1)
            values[str(grade)] = _clean_number(value)
        rows.append({"year": int(year), "session": str(session), "values": values})
    return rows
