"""
Benchmark execution module.

Provides the query runner and the orchestration behind the CLI commands.
"""

from annbench.benchmark.query_executor import QueryExecutor, QueryOutcome, run_queries
from annbench.benchmark.runner import BenchmarkRunner, save_build_report

__all__ = ["BenchmarkRunner", "QueryExecutor", "QueryOutcome", "run_queries", "save_build_report"]
