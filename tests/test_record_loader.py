"""Tests for loading the record sample."""

from __future__ import annotations

import json

import pandas as pd
import pytest

from discharge_analysis.core.record_loader import RecordLoader, with_record_limit


def test_with_record_limit_sets_soda_parameter():
    url = "https://health.data.ny.gov/resource/2yck-xisk.json"

    assert with_record_limit(url, 1000) == url + "?$limit=1000"
    assert with_record_limit(url + "?$limit=5&county=Kings", 50) == url + "?county=Kings&$limit=50"


def test_default_location_is_limited_soda_url():
    loader = RecordLoader()

    assert loader.resolve_location().endswith("2yck-xisk.json?$limit=1000")


def test_loads_json_records_and_applies_limit(tmp_path):
    rows = [{"major_diagnostic_category": f"C{i % 3}", "length_of_stay": str(i)} for i in range(10)]
    source = tmp_path / "discharges.json"
    source.write_text(json.dumps(rows), encoding="utf-8")
    loader = RecordLoader(config_override={"source": {"path": str(source), "limit": 4}})

    records = loader.load_records()

    assert len(records) == 4
    assert [r["major_diagnostic_category"] for r in records] == ["C0", "C1", "C2", "C0"]


def test_null_indicators_become_missing(tmp_path):
    source = tmp_path / "discharges.csv"
    source.write_text("major_diagnostic_category,county\nNewborns,Kings\nN/A,Queens\nNULL,Bronx\n", encoding="utf-8")
    loader = RecordLoader(config_override={"source": {"path": str(source)}})

    records = loader.load_records()

    assert records[0]["major_diagnostic_category"] == "Newborns"
    assert pd.isna(records[1]["major_diagnostic_category"])
    assert pd.isna(records[2]["major_diagnostic_category"])


def test_relative_path_resolves_beside_config(tmp_path):
    (tmp_path / "rows.json").write_text(json.dumps([{"major_diagnostic_category": "A"}]), encoding="utf-8")
    config = tmp_path / "local.yaml"
    config.write_text("source:\n  path: rows.json\n", encoding="utf-8")

    records = RecordLoader(str(config)).load_records()

    assert records == [{"major_diagnostic_category": "A"}]


def test_missing_source_file(tmp_path):
    loader = RecordLoader(config_override={"source": {"path": str(tmp_path / "absent.json")}})

    with pytest.raises(FileNotFoundError):
        loader.load_records()


def test_rejects_non_positive_limit():
    loader = RecordLoader(config_override={"source": {"limit": 0}})

    with pytest.raises(ValueError, match="limit"):
        loader.resolve_location()


def test_rejects_unknown_format(tmp_path):
    source = tmp_path / "rows.xml"
    source.write_text("<rows/>", encoding="utf-8")
    loader = RecordLoader(config_override={"source": {"path": str(source), "format": "xml"}})

    with pytest.raises(ValueError, match="Unsupported source format"):
        loader.load_records()


class _Response:
    def __init__(self, payload: bytes):
        self.payload = payload

    def read(self):
        return self.payload

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_url_download_uses_socket_timeout(monkeypatch):
    calls = []

    def fake_urlopen(url, timeout):
        calls.append((url, timeout))
        return _Response(json.dumps([{"major_diagnostic_category": "Newborns"}]).encode("utf-8"))

    monkeypatch.setattr("discharge_analysis.core.record_loader.urlopen", fake_urlopen)
    loader = RecordLoader(config_override={"source": {"timeout_seconds": 7, "limit": 10}})

    records = loader.load_records()

    assert records == [{"major_diagnostic_category": "Newborns"}]
    assert calls == [("https://health.data.ny.gov/resource/2yck-xisk.json?$limit=10", 7)]
