"""
Shared fixtures: small in-memory boundary tables with known thresholds.
"""

import os
import sys

import pytest

# Ensure backend/ is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.boundaries import BoundaryTable

GRADES = ["A*", "A", "B", "C", "D", "E"]


def _row(year, session, a_star, step=8, max_mark=90):
    """Thresholds spaced `step` marks apart below the A* value."""
    rec = {"year": year, "session": session, "max_mark": max_mark}
    for i, grade in enumerate(GRADES):
        rec[grade] = a_star - i * step
    return rec


JUNE_2023 = {"year": 2023, "session": "june", "max_mark": 90,
             "A*": 72, "A": 64, "B": 56, "C": 48, "D": 40, "E": 32}

TREND_RECORDS = [
    _row(2021, "june", 68),
    _row(2022, "jan", 70),
    _row(2022, "june", 72),
    _row(2022, "oct", 74),
    _row(2023, "jan", 71),
    _row(2023, "june", 73),
    _row(2023, "oct", 75),
    _row(2024, "jan", 70),
    _row(2024, "june", 73),
    _row(2024, "oct", 74),
]


@pytest.fixture
def june_table():
    return BoundaryTable.from_records([JUNE_2023])


@pytest.fixture
def trend_table():
    return BoundaryTable.from_records(TREND_RECORDS)
