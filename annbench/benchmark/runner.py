"""
Benchmark orchestration behind the CLI commands.

Design Principles:
- Build once, save, and query the saved index many times (Efficiency)
- Ground truth is recomputed by exact flat search for every query (Validity)
- Failed queries abort the run unless explicitly skipped and counted (Integrity)
- Reproducible random seeds (Rigor)
"""

import logging
import time
from pathlib import Path
from typing import Optional

import numpy as np
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from annbench.benchmark.query_executor import QueryExecutor, QueryOutcome
from annbench.core.config import TIME_UNITS, Config, detect_hardware, get_default_config
from annbench.core.errors import BenchmarkError
from annbench.core.types import BuildReport, IndexConfig, QueryRunReport, RunMode
from annbench.databases import build_database, load_database
from annbench.datasets.base import VectorSet, load_vector_set
from annbench.metrics.quality import count_hits
from annbench.metrics.resource import ResourceMonitor, measure_disk_usage

logger = logging.getLogger(__name__)
console = Console()


class BenchmarkRunner:
    """
    Main benchmark orchestrator.
    """

    def __init__(self, config: Optional[Config] = None, output_console: Optional[Console] = None):
        self.config = config or get_default_config()
        self.console = output_console or console

    # =========================================================================
    # Loading
    # =========================================================================

    def load_vectors(self, path: str, label: str) -> VectorSet:
        self.console.print(f"loading {label}: {path}")
        start = time.perf_counter()
        vectors = load_vector_set(path, self.config.dataset.dimensions)
        self.console.print(f"loaded {label} in {time.perf_counter() - start:.3f} s")
        logger.debug("%s: %r", label, vectors)
        return vectors

    def load_database(self, path: str):
        self.console.print(f"loading database: {path}")
        start = time.perf_counter()
        db = load_database(self.config.build.database, path)
        self.console.print(f"loaded database in {time.perf_counter() - start:.3f} s")
        return db

    # =========================================================================
    # Commands
    # =========================================================================

    def build(
        self,
        dataset_path: str,
        output_path: str,
        index_config: Optional[IndexConfig] = None,
    ) -> BuildReport:
        """Build an index over the dataset and save it to `output_path`."""
        build_cfg = self.config.build
        index_config = index_config or IndexConfig(
            num_partitions=build_cfg.num_partitions,
            num_divisions=build_cfg.num_divisions,
            num_codes=build_cfg.num_codes,
        )

        corpus = self.load_vectors(dataset_path, "dataset")
        self.console.print(f"vector size: {corpus.dimension}")
        self.console.print(f"number of vectors: {len(corpus)}")
        self.console.print(f"number of partitions: {index_config.num_partitions}")
        self.console.print(f"number of divisions: {index_config.num_divisions}")
        self.console.print(f"number of codes: {index_config.num_codes}")

        with ResourceMonitor() as build_monitor:
            db = build_database(build_cfg.database, corpus, index_config)
        self.console.print(f"built database in {build_monitor.elapsed_sec:.3f} s")

        self.console.print(f"saving database: {output_path}")
        start = time.perf_counter()
        db.save(output_path)
        save_time = time.perf_counter() - start
        self.console.print(f"saved database in {save_time:.3f} s")

        report = BuildReport(
            database=build_cfg.database,
            num_vectors=len(corpus),
            dimensions=corpus.dimension,
            index_config=index_config,
            build_time_sec=build_monitor.elapsed_sec,
            save_time_sec=save_time,
            disk_bytes=measure_disk_usage(output_path)["size"],
            ram_bytes_peak=build_monitor.peak_memory_bytes,
            ram_bytes_delta=build_monitor.memory_delta_bytes,
            cpu_time_sec=build_monitor.cpu_time_sec,
            output_path=str(output_path),
        )
        self._print_build_summary(report)
        return report

    def query(
        self,
        dataset_path: str,
        database_path: str,
        queries_path: str,
        query_index: Optional[int] = None,
        k: Optional[int] = None,
        nprobe: Optional[int] = None,
    ) -> QueryOutcome:
        """Run a single query and print its neighbors, timings and recall."""
        k = self.config.query.k if k is None else k
        nprobe = self.config.query.nprobe if nprobe is None else nprobe

        corpus = self.load_vectors(dataset_path, "dataset")
        db = self.load_database(database_path)
        queries = self.load_vectors(queries_path, "query vectors")

        if query_index is None:
            rng = np.random.default_rng(self.config.experiment.seed)
            query_index = int(rng.integers(len(queries)))
        self.console.print(f"query vector index: {query_index}")
        if not 0 <= query_index < len(queries):
            raise BenchmarkError(f"query index out of bounds: {query_index} >= {len(queries)}")
        self.console.print(f"k: {k}")
        self.console.print(f"nprobe: {nprobe}")

        executor = QueryExecutor(db, corpus, block_size=self.config.batch.flat_block_size)
        executor.check_dimensions(queries)
        outcome = executor.execute_query(queries, query_index, k, nprobe)

        hits = count_hits(outcome.result, outcome.reference)
        self.console.print(f"queried k-NN in {outcome.latency_sec:.6f} s")
        self.console.print(f"selected datum IDs: {outcome.result.indices}")
        self.console.print(f"flat-queried k-NN in {outcome.flat_latency_sec:.6f} s")
        self.console.print(f"recall: {hits}/{len(outcome.reference)} ({outcome.recall:.0f}%)")
        return outcome

    def batch(
        self,
        dataset_path: str,
        database_path: str,
        queries_path: str,
        k: Optional[int] = None,
        nprobe: Optional[int] = None,
        mode: RunMode = RunMode.SEQUENTIAL,
        limit: Optional[int] = None,
        stats_path: Optional[str] = None,
        plot_dir: Optional[str] = None,
    ) -> QueryRunReport:
        """Run every query (up to `limit`) and report aggregate statistics."""
        k = self.config.query.k if k is None else k
        nprobe = self.config.query.nprobe if nprobe is None else nprobe
        batch_cfg = self.config.batch

        corpus = self.load_vectors(dataset_path, "dataset")
        db = self.load_database(database_path)
        queries = self.load_vectors(queries_path, "query vectors")

        executor = QueryExecutor(
            db,
            corpus,
            block_size=batch_cfg.flat_block_size,
            progress_every=batch_cfg.progress_every,
        )

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            task = progress.add_task("processing query vectors", total=None)
            report = executor.run(
                queries,
                k,
                nprobe,
                mode=mode,
                limit=limit,
                concurrency=batch_cfg.concurrency,
                skip_failures=batch_cfg.skip_failures,
                on_progress=lambda done, total: progress.update(task, completed=done, total=total),
            )

        report.metadata.update({
            "dataset": str(dataset_path),
            "database": str(database_path),
            "queries": str(queries_path),
            "database_name": self.config.build.database,
            "num_vectors": len(corpus),
            "dimensions": corpus.dimension,
        })
        self.print_report(report)

        if stats_path:
            from annbench.reporting import JSONExporter

            self.console.print(f"saving stats: {stats_path}")
            JSONExporter().export(report, stats_path, extra={"hardware": detect_hardware()})

        if plot_dir:
            from annbench.reporting.visualizer import BenchmarkVisualizer

            plots = BenchmarkVisualizer().generate_all_plots(report, plot_dir)
            self.console.print(f"saved {len(plots)} plots to {plot_dir}")

        return report

    # =========================================================================
    # Output
    # =========================================================================

    def print_report(self, report: QueryRunReport) -> None:
        unit = self.config.output.time_unit
        scale = TIME_UNITS[unit]

        table = Table(title=f"Statistics (k={report.k}, nprobe={report.nprobe}, mode={report.mode.value})")
        table.add_column("Metric", style="cyan")
        for name in ("mean", "std", "median", "q1", "q3", "min", "max"):
            table.add_column(name, justify="right", style="green")

        def add_row(label, summary, fmt):
            values = summary.to_dict()
            table.add_row(label, *(fmt.format(values[name]) for name in ("mean", "std", "median", "q1", "q3", "min", "max")))

        add_row(f"indexed time ({unit})", report.seconds.scaled(scale), "{:.3f}")
        add_row(f"flat time ({unit})", report.flat_seconds.scaled(scale), "{:.3f}")
        add_row("recall (%)", report.recalls, "{:.1f}")
        self.console.print(table)

        self.console.print(
            f"queries: {report.num_queries}, skipped: {report.num_skipped}, "
            f"wall time: {report.wall_time_sec:.3f} s, QPS: {report.qps:.1f}"
        )
        if report.num_skipped:
            self.console.print(f"[yellow]Skipped queries: {report.skipped_queries}[/yellow]")

    def _print_build_summary(self, report: BuildReport) -> None:
        table = Table(title=f"Build: {report.database}")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Vectors", f"{report.num_vectors}")
        table.add_row("Dimensions", f"{report.dimensions}")
        table.add_row("Build time (s)", f"{report.build_time_sec:.3f}")
        table.add_row("Build CPU time (s)", f"{report.cpu_time_sec:.3f}")
        table.add_row("Peak RSS (MiB)", f"{report.ram_bytes_peak / 2**20:.1f}")
        table.add_row("RSS growth (MiB)", f"{report.ram_bytes_delta / 2**20:.1f}")
        table.add_row("Save time (s)", f"{report.save_time_sec:.3f}")
        table.add_row("Index size (MiB)", f"{report.disk_bytes / 2**20:.2f}")
        table.add_row("Bytes per vector", f"{report.bytes_per_vector:.1f}")
        self.console.print(table)


def save_build_report(report: BuildReport, path: str) -> str:
    """Write a BuildReport as JSON next to the index."""
    import json

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(report.to_dict(), f, indent=2, default=str)
    return str(path)
