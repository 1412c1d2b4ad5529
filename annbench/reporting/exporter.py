"""
Exporters for query run reports.
"""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from annbench.core.types import QueryRunReport

logger = logging.getLogger(__name__)

SUMMARY_FIELDS = ("count", "mean", "std", "median", "q1", "q3", "min", "max")


class JSONExporter:
    """Writes a report as pretty-printed JSON."""

    def __init__(self, include_samples: bool = False):
        self.include_samples = include_samples

    def to_dict(self, report: QueryRunReport, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = report.to_dict()
        data["generated_at"] = datetime.now().isoformat()
        if self.include_samples:
            data["samples"] = {
                "seconds": list(report.latency_samples),
                "recalls": list(report.recall_samples),
            }
        if extra:
            data.update(extra)
        return data

    def export(
        self,
        report: QueryRunReport,
        path: Union[str, Path],
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(report, extra), f, indent=2, default=str)
        logger.info("Saved stats to %s", path)
        return str(path)


class CSVExporter:
    """Writes one row per summary (seconds, flat_seconds, recalls)."""

    def export(self, report: QueryRunReport, path: Union[str, Path]) -> str:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = {
            "seconds": report.seconds,
            "flat_seconds": report.flat_seconds,
            "recalls": report.recalls,
        }
        with open(path, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(["metric", "k", "nprobe", "mode", *SUMMARY_FIELDS])
            for metric, summary in rows.items():
                values = summary.to_dict()
                writer.writerow(
                    [metric, report.k, report.nprobe, report.mode.value, *(values[name] for name in SUMMARY_FIELDS)]
                )
        logger.info("Saved CSV to %s", path)
        return str(path)
