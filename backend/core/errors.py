"""
errors.py — Domain exceptions for the boundary engine.

Routes translate these into HTTP errors; core modules raise them directly.
"""

from numbers import Real
from typing import Any


class BoundaryError(Exception):
    """Base class for all grade boundary engine errors."""


class NotFoundError(BoundaryError, LookupError):
    """No boundary table exists for the requested (year, session) pair."""

    def __init__(self, year: Any, session: Any):
        self.year = year
        self.session = session
        super().__init__(f"No grade boundaries for {year} {session}")


class InvalidMarkError(BoundaryError, ValueError):
    """Raw mark is not an integer within [0, max_mark] for the paper."""

    def __init__(self, raw_mark: Any, max_mark: int, year: Any = None, session: Any = None):
        self.raw_mark = raw_mark
        self.max_mark = max_mark
        paper = f" for {year} {session}" if year is not None else ""
        if isinstance(raw_mark, bool) or not isinstance(raw_mark, Real) or not float(raw_mark).is_integer():
            message = f"Raw mark {raw_mark!r} must be a whole number of marks{paper}"
        else:
            message = f"Raw mark {raw_mark!r} is outside 0-{max_mark}{paper}"
        super().__init__(message)


class InvalidSelectionError(BoundaryError, ValueError):
    """Selection has an unknown grade, session token or aggregation mode."""


class BoundaryTableError(BoundaryError, ValueError):
    """Boundary reference data is malformed."""
