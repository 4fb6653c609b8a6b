"""
Tests for core/resolver.py — raw mark to grade and UMS.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.boundaries import BoundaryTable
from core.errors import InvalidMarkError, NotFoundError
from core.grading import GRADE_ORDER, UMS_SCALE
from core.resolver import resolve, round_half_up


class TestResolveExamples:
    """Known conversions for the 2023 June paper (A*=72, A=64 ... E=32)."""

    def test_interpolated_a(self, june_table):
        assert resolve(june_table, 2023, "june", 70) == {"grade": "A", "ums": 98}

    def test_exact_a_threshold(self, june_table):
        assert resolve(june_table, 2023, "june", 64) == {"grade": "A", "ums": 90}

    def test_a_star_plateau(self, june_table):
        assert resolve(june_table, 2023, "june", 72) == {"grade": "A*", "ums": 100}
        assert resolve(june_table, 2023, "june", 90) == {"grade": "A*", "ums": 100}

    def test_e_band(self, june_table):
        assert resolve(june_table, 2023, "june", 32) == {"grade": "E", "ums": 50}
        assert resolve(june_table, 2023, "june", 36) == {"grade": "E", "ums": 55}

    def test_u_band(self, june_table):
        assert resolve(june_table, 2023, "june", 0) == {"grade": "U", "ums": 0}
        assert resolve(june_table, 2023, "june", 16) == {"grade": "U", "ums": 25}
        assert resolve(june_table, 2023, "june", 31) == {"grade": "U", "ums": 48}

    def test_loose_paper_keys(self, june_table):
        assert resolve(june_table, "2023", "June", 64)["grade"] == "A"


class TestResolveErrors:
    """Invalid marks and unknown papers."""

    @pytest.mark.parametrize("mark", [-1, 91, 50.5, "50", None, True])
    def test_invalid_marks(self, june_table, mark):
        with pytest.raises(InvalidMarkError):
            resolve(june_table, 2023, "june", mark)

    @pytest.mark.parametrize("mark", [50.5, "50", None, True])
    def test_non_whole_mark_message(self, june_table, mark):
        with pytest.raises(InvalidMarkError, match="must be a whole number"):
            resolve(june_table, 2023, "june", mark)

    def test_out_of_range_message(self, june_table):
        with pytest.raises(InvalidMarkError, match="outside 0-90 for 2023 june"):
            resolve(june_table, 2023, "june", 91)

    def test_whole_float_accepted(self, june_table):
        assert resolve(june_table, 2023, "june", 64.0)["ums"] == 90

    def test_unknown_paper(self, june_table):
        with pytest.raises(NotFoundError):
            resolve(june_table, 2019, "june", 50)

    def test_unknown_paper_checked_before_mark(self, june_table):
        with pytest.raises(NotFoundError):
            resolve(june_table, 2019, "june", -5)


class TestResolveProperties:
    """Behaviour across every mark on the paper."""

    def test_grade_is_highest_met_threshold(self, june_table):
        entry = june_table.get_thresholds(2023, "june")
        for mark in range(0, entry.max_mark + 1):
            grade = resolve(june_table, 2023, "june", mark)["grade"]
            rank = GRADE_ORDER.index(grade)
            assert mark >= entry.threshold(grade)
            if rank > 0:
                assert mark < entry.threshold(GRADE_ORDER[rank - 1])

    def test_ums_non_decreasing_and_bounded(self, june_table):
        previous = -1
        for mark in range(0, 91):
            ums = resolve(june_table, 2023, "june", mark)["ums"]
            assert 0 <= ums <= 100
            assert ums >= previous
            previous = ums

    def test_ums_at_each_threshold(self, june_table):
        entry = june_table.get_thresholds(2023, "june")
        for grade in GRADE_ORDER:
            result = resolve(june_table, 2023, "june", entry.threshold(grade))
            assert result == {"grade": grade, "ums": UMS_SCALE[grade]}

    def test_collapsed_thresholds(self):
        table = BoundaryTable.from_records(
            [{"year": 2022, "session": "oct", "A*": 70, "A": 60, "B": 50, "C": 50, "D": 40, "E": 30}],
            strict=False,
        )
        # B and C share a threshold: the mark lands on B
        assert resolve(table, 2022, "oct", 50) == {"grade": "B", "ums": 80}
        assert resolve(table, 2022, "oct", 45) == {"grade": "D", "ums": 65}

    def test_custom_max_mark(self):
        table = BoundaryTable.from_records(
            [{"year": 2024, "session": "jan", "max_mark": 60,
              "A*": 50, "A": 44, "B": 38, "C": 32, "D": 26, "E": 20}]
        )
        assert resolve(table, 2024, "jan", 60) == {"grade": "A*", "ums": 100}
        with pytest.raises(InvalidMarkError):
            resolve(table, 2024, "jan", 61)


class TestRoundHalfUp:
    """Tests for round_half_up."""

    def test_halves_round_up(self):
        assert round_half_up(97.5) == 98
        assert round_half_up(2.5) == 3

    def test_below_half(self):
        assert round_half_up(48.4375) == 48
