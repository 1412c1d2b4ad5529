"""
Visualization utilities for query run reports.
"""

from pathlib import Path
from typing import List, Union

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from annbench.core.types import QueryRunReport


class BenchmarkVisualizer:
    def __init__(self, style: str = "seaborn-v0_8-whitegrid", figsize: tuple = (10, 6), dpi: int = 150):
        try:
            plt.style.use(style)
        except OSError:
            plt.style.use("ggplot")
        self.figsize = figsize
        self.dpi = dpi

    def to_frame(self, report: QueryRunReport) -> pd.DataFrame:
        """Per-query samples as a DataFrame (latency in ms, recall in %)."""
        return pd.DataFrame(
            {
                "Latency (ms)": [s * 1000.0 for s in report.latency_samples],
                "Recall (%)": list(report.recall_samples),
            }
        )

    def generate_all_plots(self, report: QueryRunReport, output_dir: Union[str, Path]) -> List[str]:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        df = self.to_frame(report)
        if df.empty:
            return []

        prefix = f"k{report.k}_nprobe{report.nprobe}_{report.mode.value}"
        return [
            self._create_hist_plot(
                df, "Latency (ms)", f"Query latency - {prefix}", output_dir / f"{prefix}_latency.png", "rocket"),
            self._create_hist_plot(
                df, "Recall (%)", f"Recall - {prefix}", output_dir / f"{prefix}_recall.png", "crest"),
            self._create_scatter_plot(
                df, "Latency (ms)", "Recall (%)", f"Recall vs latency - {prefix}", output_dir / f"{prefix}_tradeoff.png"),
        ]

    def _create_hist_plot(self, df, x, title, filename, palette):
        plt.figure(figsize=self.figsize)
        sns.histplot(data=df, x=x, bins=50, color=sns.color_palette(palette)[2])
        plt.title(title, fontsize=14)
        plt.xlabel(x, fontsize=12)
        plt.ylabel("Queries", fontsize=12)
        plt.tight_layout()
        plt.savefig(filename, dpi=self.dpi, bbox_inches="tight")
        plt.close()
        return str(filename)

    def _create_scatter_plot(self, df, x, y, title, filename):
        plt.figure(figsize=self.figsize)
        sns.scatterplot(data=df, x=x, y=y, alpha=0.5, s=12)
        plt.title(title, fontsize=14)
        plt.xlabel(x, fontsize=12)
        plt.ylabel(y, fontsize=12)
        plt.tight_layout()
        plt.savefig(filename, dpi=self.dpi, bbox_inches="tight")
        plt.close()
        return str(filename)
