"""Tests for report exporters."""

import csv
import json

import pytest

from annbench.core.types import QueryRunReport, RunMode
from annbench.metrics.statistics import summarize
from annbench.reporting import CSVExporter, JSONExporter


@pytest.fixture
def report():
    latencies = [0.001, 0.002, 0.003]
    recalls = [90.0, 100.0, 80.0]
    return QueryRunReport(
        k=10,
        nprobe=4,
        mode=RunMode.CONCURRENT,
        num_queries=3,
        seconds=summarize(latencies),
        flat_seconds=summarize([0.01, 0.01, 0.01]),
        recalls=summarize(recalls),
        concurrency=2,
        wall_time_sec=0.5,
        latency_samples=latencies,
        recall_samples=recalls,
    )


class TestJSONExporter:
    def test_stats_keys(self, report, tmp_path):
        path = JSONExporter().export(report, tmp_path / "out" / "stats.json", extra={"hardware": {"cpu": "x"}})
        with open(path) as f:
            data = json.load(f)

        for key in ("k", "nprobe", "num_queries", "seconds", "flat_seconds", "recalls"):
            assert key in data
        assert data["mode"] == "concurrent"
        assert data["recalls"]["mean"] == pytest.approx(90.0)
        assert data["qps"] == pytest.approx(6.0)
        assert data["hardware"] == {"cpu": "x"}
        assert "samples" not in data

    def test_include_samples(self, report):
        data = JSONExporter(include_samples=True).to_dict(report)
        assert data["samples"]["recalls"] == [90.0, 100.0, 80.0]


class TestCSVExporter:
    def test_rows(self, report, tmp_path):
        path = CSVExporter().export(report, tmp_path / "stats.csv")
        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))

        assert [row["metric"] for row in rows] == ["seconds", "flat_seconds", "recalls"]
        assert float(rows[2]["median"]) == pytest.approx(90.0)
        assert rows[0]["mode"] == "concurrent"
        assert int(rows[0]["count"]) == 3
