"""
boundaries.py — Grade boundary reference table and its file loader.

Supports:
- CSV and Excel (.xlsx) boundary files
- Wide layout: one row per (year, session), one column per grade
- Long layout: one row per (year, session, grade) with a threshold column
- Case-insensitive column aliases and session label normalisation

The table is read-only after construction. Build one per process and pass
it to the resolver/aggregator rather than importing a global.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from core.errors import BoundaryTableError, NotFoundError
from core.grading import (
    DEFAULT_MAX_MARK,
    FLOOR_GRADE,
    GRADE_ORDER,
    SESSION_ORDER,
    THRESHOLD_GRADES,
    normalize_grade,
    normalize_session,
    session_sort_key,
    sort_sessions,
)

logger = logging.getLogger(__name__)

SAMPLE_DATA_DIR = Path(__file__).parent.parent / "sample_data"
DEFAULT_BOUNDARY_FILE = SAMPLE_DATA_DIR / "grade_boundaries.csv"

COLUMN_ALIASES = {
    "year": ["year", "exam_year", "exam year"],
    "session": ["session", "series", "sitting", "exam_session", "exam session"],
    "max_mark": ["max_mark", "max mark", "max_marks", "max", "out_of", "out of", "total_marks"],
    "grade": ["grade", "grade_label", "grade label"],
    "threshold": ["threshold", "boundary", "min_mark", "min mark", "raw_mark", "raw mark"],
}


@dataclass(frozen=True)
class BoundaryEntry:
    """Thresholds for one (year, session) paper. `thresholds` includes U: 0."""

    year: int
    session: str
    thresholds: Dict[str, int]
    max_mark: int = DEFAULT_MAX_MARK

    def threshold(self, grade: str) -> int:
        return self.thresholds[grade]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "session": self.session,
            "max_mark": self.max_mark,
            "thresholds": {g: self.thresholds[g] for g in GRADE_ORDER},
        }


# ── Helpers ─────────────────────────────────────────────────────────

def coerce_year(value: Any) -> Optional[int]:
    """Convert '2023', 2023 or 2023.0 to int, or return None."""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if number != number or not number.is_integer():
        return None
    return int(number)


def _coerce_mark(value: Any, what: str) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise BoundaryTableError(f"{what} is not a number: {value!r}")
    if number != number or not number.is_integer():
        raise BoundaryTableError(f"{what} must be a whole number of marks, got {value!r}")
    return int(number)


def _find_col(df: pd.DataFrame, aliases: List[str]) -> Optional[str]:
    """Find the first column matching any alias (case-insensitive)."""
    cols_lower = {str(c).lower().strip(): c for c in df.columns}
    for a in aliases:
        if a.lower() in cols_lower:
            return cols_lower[a.lower()]
    return None


def build_entry(
    year: Any,
    session: Any,
    thresholds: Dict[str, Any],
    max_mark: Any = None,
    strict: bool = True,
) -> BoundaryEntry:
    """
    Validate raw threshold values and build a BoundaryEntry.

    Thresholds must decrease with grade rank down to U (always 0). With
    strict=False equal neighbouring thresholds are tolerated (some published
    tables collapse grades), increasing ones never are.
    """
    year_num = coerce_year(year)
    if year_num is None:
        raise BoundaryTableError(f"Invalid year: {year!r}")
    session_token = normalize_session(session)
    if session_token not in SESSION_ORDER:
        raise BoundaryTableError(f"Invalid session for {year_num}: {session!r}")

    paper = f"{year_num} {session_token}"
    max_num = DEFAULT_MAX_MARK if max_mark is None or pd.isna(max_mark) else _coerce_mark(
        max_mark, f"max_mark for {paper}"
    )
    if max_num <= 0:
        raise BoundaryTableError(f"max_mark for {paper} must be positive, got {max_num}")

    clean: Dict[str, int] = {}
    for grade in THRESHOLD_GRADES:
        if grade not in thresholds or thresholds[grade] is None or pd.isna(thresholds[grade]):
            raise BoundaryTableError(f"Missing {grade} threshold for {paper}")
        clean[grade] = _coerce_mark(thresholds[grade], f"{grade} threshold for {paper}")
    clean[FLOOR_GRADE] = 0

    if clean["A*"] > max_num:
        raise BoundaryTableError(
            f"A* threshold {clean['A*']} exceeds max_mark {max_num} for {paper}"
        )

    for higher, lower in zip(GRADE_ORDER, GRADE_ORDER[1:]):
        t_high, t_low = clean[higher], clean[lower]
        if t_high < t_low or (strict and t_high == t_low):
            raise BoundaryTableError(
                f"Thresholds for {paper} must decrease with grade: "
                f"{higher}={t_high}, {lower}={t_low}"
            )
        if t_high == t_low:
            logger.warning("Duplicate %s/%s threshold %d in %s", higher, lower, t_high, paper)

    return BoundaryEntry(year=year_num, session=session_token, thresholds=clean, max_mark=max_num)


# ── Boundary Table ──────────────────────────────────────────────────

class BoundaryTable:
    """Read-only lookup of BoundaryEntry objects keyed by (year, session)."""

    def __init__(self, entries: Iterable[BoundaryEntry]):
        self._entries: Dict[Tuple[int, str], BoundaryEntry] = {}
        for entry in entries:
            key = (entry.year, entry.session)
            if key in self._entries:
                raise BoundaryTableError(f"Duplicate boundary entry for {entry.year} {entry.session}")
            self._entries[key] = entry

    @classmethod
    def from_records(
        cls,
        records: Iterable[Dict[str, Any]],
        default_max_mark: int = DEFAULT_MAX_MARK,
        strict: bool = True,
    ) -> "BoundaryTable":
        """
        Build a table from dicts shaped like
        {"year": 2023, "session": "june", "max_mark": 90, "A*": 72, "A": 64, ...}
        or {"year": ..., "session": ..., "thresholds": {"A*": 72, ...}}.
        """
        entries = []
        for rec in records:
            thresholds = rec.get("thresholds")
            if thresholds is None:
                thresholds = {}
                for key, value in rec.items():
                    grade = normalize_grade(key)
                    if grade is not None:
                        thresholds[grade] = value
            else:
                thresholds = {normalize_grade(k) or k: v for k, v in thresholds.items()}
            max_mark = rec.get("max_mark")
            if max_mark is None or pd.isna(max_mark):
                max_mark = default_max_mark
            entries.append(
                build_entry(
                    rec.get("year"),
                    rec.get("session"),
                    thresholds,
                    max_mark,
                    strict=strict,
                )
            )
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> List[BoundaryEntry]:
        """All entries, year ascending then canonical session order."""
        keys = sorted(self._entries, key=lambda k: (k[0], session_sort_key(k[1])))
        return [self._entries[k] for k in keys]

    def _key(self, year: Any, session: Any) -> Optional[Tuple[int, str]]:
        year_num = coerce_year(year)
        session_token = normalize_session(session)
        if year_num is None or session_token is None:
            return None
        return (year_num, session_token)

    def has_entry(self, year: Any, session: Any) -> bool:
        key = self._key(year, session)
        return key is not None and key in self._entries

    def get_thresholds(self, year: Any, session: Any) -> BoundaryEntry:
        """Return the entry for (year, session) or raise NotFoundError."""
        key = self._key(year, session)
        if key is None or key not in self._entries:
            raise NotFoundError(year, session)
        return self._entries[key]

    def max_mark(self, year: Any, session: Any) -> int:
        return self.get_thresholds(year, session).max_mark

    def get_available_years(self) -> List[int]:
        """Distinct years with at least one entry, newest first."""
        return sorted({year for year, _ in self._entries}, reverse=True)

    def get_available_sessions(self, year: Any) -> List[str]:
        """Session tokens with an entry for `year`, in calendar order."""
        year_num = coerce_year(year)
        return sort_sessions([s for y, s in self._entries if y == year_num])

    def get_available_grades(self) -> List[str]:
        return list(GRADE_ORDER)


# ── File loading ────────────────────────────────────────────────────

def _read_frame(path: Path) -> pd.DataFrame:
    ext = path.suffix.lower()
    if ext == ".csv":
        return pd.read_csv(path, dtype=str)
    if ext == ".xlsx":
        return pd.read_excel(path, sheet_name=0, dtype=str, engine="openpyxl")
    raise BoundaryTableError(f"Unsupported boundary file type: {ext}")


def detect_layout(df: pd.DataFrame) -> str:
    """'long' if the frame has grade + threshold columns, otherwise 'wide'."""
    if _find_col(df, COLUMN_ALIASES["grade"]) and _find_col(df, COLUMN_ALIASES["threshold"]):
        return "long"
    return "wide"


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Turn a wide or long boundary frame into from_records() input."""
    df = df.dropna(how="all")
    year_col = _find_col(df, COLUMN_ALIASES["year"])
    session_col = _find_col(df, COLUMN_ALIASES["session"])
    max_col = _find_col(df, COLUMN_ALIASES["max_mark"])
    if not year_col or not session_col:
        raise BoundaryTableError("Boundary file needs 'year' and 'session' columns.")

    if detect_layout(df) == "long":
        grade_col = _find_col(df, COLUMN_ALIASES["grade"])
        threshold_col = _find_col(df, COLUMN_ALIASES["threshold"])
        df = df.assign(_grade=df[grade_col].map(normalize_grade))
        unknown = df[df["_grade"].isna()][grade_col].unique().tolist()
        if unknown:
            raise BoundaryTableError(f"Unknown grade labels in boundary file: {unknown}")
        records = []
        for (year, session), group in df.groupby([year_col, session_col], sort=False):
            rec: Dict[str, Any] = {"year": year, "session": session}
            if max_col:
                maxes = group[max_col].dropna().unique().tolist()
                if len(maxes) > 1:
                    raise BoundaryTableError(f"Conflicting max_mark values for {year} {session}: {maxes}")
                rec["max_mark"] = maxes[0] if maxes else None
            for _, row in group.iterrows():
                if row["_grade"] != FLOOR_GRADE:
                    rec[row["_grade"]] = row[threshold_col]
            records.append(rec)
        return records

    records = []
    for _, row in df.iterrows():
        rec = {"year": row[year_col], "session": row[session_col]}
        if max_col:
            rec["max_mark"] = row[max_col]
        for col in df.columns:
            grade = normalize_grade(col)
            if grade is not None and grade != FLOOR_GRADE:
                rec[grade] = row[col]
        records.append(rec)
    return records


def load_boundary_table(
    file_path: Any = DEFAULT_BOUNDARY_FILE,
    default_max_mark: int = DEFAULT_MAX_MARK,
    strict: bool = True,
) -> BoundaryTable:
    """Parse a CSV/Excel boundary file into a BoundaryTable."""
    path = Path(file_path)
    if not path.is_file():
        raise BoundaryTableError(f"Boundary file not found: {path}")
    try:
        records = frame_to_records(_read_frame(path))
        table = BoundaryTable.from_records(records, default_max_mark=default_max_mark, strict=strict)
    except BoundaryTableError:
        logger.error("Failed to load boundary table from %s", path)
        raise
    logger.info(
        "Loaded %d boundary entries (%d years) from %s",
        len(table), len(table.get_available_years()), path,
    )
    return table
