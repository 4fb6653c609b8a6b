"""
calculations.py — Append-only log of calculations a user chose to keep.

Records are plain dicts:
  {id, year, session, raw_mark, grade, ums, timestamp}

The log lives in memory and, when a path is given, is mirrored to a JSON
file that is rewritten on every change. Grade/UMS values are stored as given;
they have already been through the resolver by the time they arrive here.
"""

import json
import logging
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.boundaries import coerce_year
from core.grading import normalize_session

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso_timestamp(value: Any) -> str:
    """Accept ISO strings or epoch milliseconds (older exports) and return ISO-8601."""
    if value is None or value == "":
        return _now_iso()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).isoformat()
    text = str(value).strip()
    # fromisoformat only takes a trailing "Z" from Python 3.11 on
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text).isoformat()


def _whole_number(value: Any, name: str) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Calculation field '{name}' must be a number, got {value!r}")
    if not number.is_integer():
        raise ValueError(f"Calculation field '{name}' must be a whole number, got {value!r}")
    return int(number)


def normalize_record(calculation: Dict[str, Any], keep_identity: bool = False) -> Dict[str, Any]:
    """
    Coerce a calculation dict to the stored shape.

    New saves get a fresh id and timestamp; records loaded from disk keep
    theirs (keep_identity=True). Accepts camelCase 'rawMark' as well.
    """
    year = coerce_year(calculation.get("year"))
    if year is None:
        raise ValueError(f"Calculation field 'year' is invalid: {calculation.get('year')!r}")

    raw_session = calculation.get("session")
    if raw_session is None or str(raw_session).strip() == "":
        raise ValueError("Calculation field 'session' is required.")
    session = normalize_session(raw_session) or str(raw_session).strip().lower()

    raw_mark = calculation.get("raw_mark", calculation.get("rawMark"))
    grade = calculation.get("grade")
    if grade is None or str(grade).strip() == "":
        raise ValueError("Calculation field 'grade' is required.")

    record = {
        "id": str(calculation["id"]) if keep_identity and calculation.get("id") else uuid.uuid4().hex,
        "year": year,
        "session": session,
        "raw_mark": _whole_number(raw_mark, "raw_mark"),
        "grade": str(grade).strip(),
        "ums": _whole_number(calculation.get("ums"), "ums"),
        "timestamp": _iso_timestamp(calculation.get("timestamp")) if keep_identity else _now_iso(),
    }
    return record


class CalculationStore:
    """
    Ordered log of saved calculations.

    save/remove are serialised by a lock so the store can sit behind a
    multi-threaded server.
    """

    def __init__(self, path: Optional[Any] = None):
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._records: List[Dict[str, Any]] = self._load()

    def _load(self) -> List[Dict[str, Any]]:
        if self._path is None or not self._path.exists():
            return []
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.error("Calculation log %s is not valid JSON", self._path)
            raise

        if isinstance(data, dict):
            data = data.get("calculations", [])
        records = []
        for item in data:
            try:
                records.append(normalize_record(item, keep_identity=True))
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping malformed saved calculation %r: %s", item, exc)
        logger.info("Loaded %d saved calculations from %s", len(records), self._path)
        return records

    def _flush(self):
        """Write the log atomically: temp file in the same directory, then replace."""
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"calculations": self._records}, f, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save(self, calculation: Dict[str, Any]) -> str:
        """Append a calculation and return its generated id."""
        record = normalize_record(calculation)
        with self._lock:
            self._records.append(record)
            self._flush()
        logger.debug("Saved calculation %s (%s %s, %s)", record["id"], record["year"],
                     record["session"], record["grade"])
        return record["id"]

    def list(self) -> List[Dict[str, Any]]:
        """All saved calculations in insertion order (copies)."""
        return [dict(r) for r in self._records]

    def get(self, calculation_id: str) -> Optional[Dict[str, Any]]:
        for r in self._records:
            if r["id"] == calculation_id:
                return dict(r)
        return None

    def remove(self, calculation_id: str) -> bool:
        """Delete by id. Unknown ids are a no-op; returns whether anything was removed."""
        with self._lock:
            remaining = [r for r in self._records if r["id"] != calculation_id]
            removed = len(remaining) != len(self._records)
            if removed:
                self._records = remaining
                self._flush()
        if removed:
            logger.debug("Removed calculation %s", calculation_id)
        return removed

    def clear(self):
        """Drop every saved calculation, including the file copy."""
        with self._lock:
            count = len(self._records)
            self._records = []
            self._flush()
        logger.debug("Cleared %d saved calculations", count)

    def __len__(self) -> int:
        return len(self._records)
