"""
Tests for core/calculations.py — the saved-calculation log.
"""

import json
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.calculations import CalculationStore, normalize_record

CALC = {"year": 2023, "session": "june", "raw_mark": 70, "grade": "A", "ums": 98}


class TestNormalizeRecord:
    """Coercion to the stored shape."""

    def test_fresh_identity(self):
        record = normalize_record(CALC)
        assert len(record["id"]) == 32
        assert record["timestamp"].endswith("+00:00")
        assert record["raw_mark"] == 70

    def test_camel_case_raw_mark(self):
        record = normalize_record({"year": "2023", "session": "June", "rawMark": "64", "grade": "A", "ums": 90})
        assert record["year"] == 2023
        assert record["session"] == "june"
        assert record["raw_mark"] == 64

    def test_keeps_identity_when_loading(self):
        record = normalize_record(dict(CALC, id="keep-me", timestamp=1700000000000), keep_identity=True)
        assert record["id"] == "keep-me"
        assert record["timestamp"].startswith("2023-11-14")

    def test_utc_z_suffix_timestamp(self):
        record = normalize_record(dict(CALC, id="z", timestamp="2024-03-01T09:00:00Z"), keep_identity=True)
        assert record["timestamp"] == "2024-03-01T09:00:00+00:00"

    @pytest.mark.parametrize("field,value", [("year", "soon"), ("raw_mark", "x"), ("ums", 97.5), ("grade", "")])
    def test_bad_fields(self, field, value):
        with pytest.raises(ValueError):
            normalize_record(dict(CALC, **{field: value}))


class TestCalculationStore:
    """In-memory and file-backed behaviour."""

    def test_save_and_list_in_order(self):
        store = CalculationStore()
        first = store.save(CALC)
        second = store.save(dict(CALC, raw_mark=64, ums=90))
        assert [c["id"] for c in store.list()] == [first, second]
        assert len(store) == 2

    def test_ids_are_unique(self):
        store = CalculationStore()
        ids = {store.save(CALC) for _ in range(20)}
        assert len(ids) == 20

    def test_list_returns_copies(self):
        store = CalculationStore()
        store.save(CALC)
        store.list()[0]["grade"] = "U"
        assert store.list()[0]["grade"] == "A"

    def test_remove_is_idempotent(self):
        store = CalculationStore()
        calc_id = store.save(CALC)
        assert store.remove(calc_id) is True
        assert store.remove(calc_id) is False
        assert store.remove("never-existed") is False
        assert store.list() == []

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "calcs.json"
        store = CalculationStore(path)
        calc_id = store.save(CALC)

        reloaded = CalculationStore(path)
        assert reloaded.get(calc_id) == store.get(calc_id)

        reloaded.remove(calc_id)
        assert CalculationStore(path).list() == []

    def test_loads_plain_list_and_skips_bad_rows(self, tmp_path):
        path = tmp_path / "calcs.json"
        path.write_text(json.dumps([
            dict(CALC, id="ok", timestamp="2024-03-01T09:00:00+00:00"),
            {"year": 2023, "session": "june"},
        ]))
        store = CalculationStore(path)
        assert [c["id"] for c in store.list()] == ["ok"]

    def test_clear_empties_log_and_file(self, tmp_path):
        path = tmp_path / "calcs.json"
        store = CalculationStore(path)
        store.save(CALC)
        store.save(dict(CALC, raw_mark=64, ums=90))

        store.clear()
        assert store.list() == []
        assert len(store) == 0
        assert CalculationStore(path).list() == []

    def test_loads_z_suffix_timestamps(self, tmp_path):
        path = tmp_path / "calcs.json"
        path.write_text(json.dumps([dict(CALC, id="z", timestamp="2024-03-01T09:00:00Z")]))
        assert [c["id"] for c in CalculationStore(path).list()] == ["z"]

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "calcs.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            CalculationStore(path)
