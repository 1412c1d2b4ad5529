"""
Query execution for benchmark passes.

For every query the runner computes the flat ground truth, times one
database search, scores the recall and records the samples. Queries run
either one at a time or overlapping on a bounded thread pool.
"""

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, List, Optional

from annbench.core.base import VectorDatabase
from annbench.core.errors import BenchmarkError, DatabaseFailure, InvalidDimension, SampleCountMismatch
from annbench.core.types import QueryRunReport, ResultSet, RunMode
from annbench.datasets.base import VectorSet
from annbench.metrics.flat import DEFAULT_BLOCK_SIZE, FlatIndex
from annbench.metrics.quality import compute_recall
from annbench.metrics.statistics import SampleCollector

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class QueryOutcome:
    """Measurements of one query."""

    query_index: int
    latency_sec: float
    flat_latency_sec: float
    recall: float
    result: ResultSet
    reference: ResultSet


class QueryExecutor:
    """
    Runs query passes of one database against one corpus.

    Supports:
        - Sequential execution (one database call at a time)
        - Concurrent execution (up to `concurrency` calls in flight)
        - Tolerating failed queries (counted, not sampled)
    """

    def __init__(
        self,
        db: VectorDatabase,
        corpus: VectorSet,
        block_size: int = DEFAULT_BLOCK_SIZE,
        progress_every: int = 100,
    ):
        """
        Args:
            db: Database under test
            corpus: Vectors the database was built from
            block_size: Corpus rows per flat-search block
            progress_every: Log progress every this many completed queries
        """
        self.db = db
        self.corpus = corpus
        self.flat = FlatIndex(corpus, block_size)
        self.progress_every = progress_every

    def execute_query(self, queries: VectorSet, qi: int, k: int, nprobe: int) -> QueryOutcome:
        """
        Measure query `qi`.

        Raises:
            DatabaseFailure: If the database search fails; carries `qi`
        """
        query = queries[qi]

        start = time.perf_counter()
        reference = self.flat.search(query, k)
        flat_latency = time.perf_counter() - start

        start = time.perf_counter()
        try:
            result = self.db.search(query, k, nprobe)
        except DatabaseFailure as e:
            raise DatabaseFailure(e.operation, e.message, query_index=qi) from e
        except BenchmarkError:
            raise
        except Exception as e:
            raise DatabaseFailure("search", f"{type(e).__name__}: {e}", query_index=qi) from e
        latency = time.perf_counter() - start

        return QueryOutcome(
            query_index=qi,
            latency_sec=latency,
            flat_latency_sec=flat_latency,
            recall=compute_recall(result, reference),
            result=result,
            reference=reference,
        )

    def run(
        self,
        queries: VectorSet,
        k: int,
        nprobe: int,
        mode: RunMode = RunMode.SEQUENTIAL,
        limit: Optional[int] = None,
        concurrency: int = 8,
        skip_failures: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> QueryRunReport:
        """
        Execute one benchmark pass.

        Args:
            queries: Query vectors
            k: Number of neighbors
            nprobe: Number of partitions the database inspects
            mode: Sequential or concurrent execution
            limit: Only run the first `limit` queries
            concurrency: Maximum queries in flight (concurrent mode)
            skip_failures: Count failed queries as skipped instead of aborting
            on_progress: Called with (completed, total) after each query

        Returns:
            QueryRunReport with latency, flat latency and recall summaries

        Raises:
            InvalidDimension: If queries, corpus and database disagree
            DatabaseFailure: If a search fails and `skip_failures` is off
            EmptyInput: If no query completed
        """
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.check_dimensions(queries)

        mode = RunMode(mode)
        num_queries = len(queries) if limit is None else min(limit, len(queries))
        workers = concurrency if mode == RunMode.CONCURRENT else 1
        logger.info("Running %d queries (k=%d, nprobe=%d, mode=%s, workers=%d)", num_queries, k, nprobe, mode.value, workers)

        latencies = SampleCollector("latency")
        flat_latencies = SampleCollector("flat latency")
        recalls = SampleCollector("recall")
        skipped: List[int] = []

        def record(outcome: QueryOutcome) -> None:
            latencies.add(outcome.query_index, outcome.latency_sec)
            flat_latencies.add(outcome.query_index, outcome.flat_latency_sec)
            recalls.add(outcome.query_index, outcome.recall)

        def fail(error: DatabaseFailure) -> None:
            if not skip_failures:
                raise error
            logger.warning("Skipping query %s: %s", error.query_index, error)
            skipped.append(error.query_index)

        def progress(done: int) -> None:
            if done % self.progress_every == 0 or done == num_queries:
                logger.info("Processed %d/%d queries", done, num_queries)
            if on_progress is not None:
                on_progress(done, num_queries)

        start = time.perf_counter()
        if mode == RunMode.SEQUENTIAL:
            for qi in range(num_queries):
                try:
                    record(self.execute_query(queries, qi, k, nprobe))
                except DatabaseFailure as e:
                    fail(e)
                progress(qi + 1)
        else:
            self._run_concurrent(queries, num_queries, k, nprobe, workers, record, fail, progress)
        wall_time = time.perf_counter() - start

        if len(latencies) + len(skipped) != num_queries:
            raise SampleCountMismatch(
                f"Sample count mismatch: {len(latencies)} sampled + {len(skipped)} skipped != {num_queries}"
            )

        return QueryRunReport(
            k=k,
            nprobe=nprobe,
            mode=mode,
            num_queries=len(latencies),
            seconds=latencies.summarize(),
            flat_seconds=flat_latencies.summarize(),
            recalls=recalls.summarize(),
            num_skipped=len(skipped),
            concurrency=workers,
            wall_time_sec=wall_time,
            skipped_queries=sorted(skipped),
            latency_samples=latencies.values(),
            recall_samples=recalls.values(),
        )

    def _run_concurrent(self, queries, num_queries, k, nprobe, workers, record, fail, progress) -> None:
        """Keep up to `workers` queries in flight; outcomes are recorded on this thread."""
        done_count = 0
        next_qi = 0
        with ThreadPoolExecutor(max_workers=workers) as executor:
            pending = set()
            try:
                while next_qi < num_queries or pending:
                    while next_qi < num_queries and len(pending) < workers:
                        pending.add(executor.submit(self.execute_query, queries, next_qi, k, nprobe))
                        next_qi += 1
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        try:
                            record(future.result())
                        except DatabaseFailure as e:
                            fail(e)
                        done_count += 1
                        progress(done_count)
            except BaseException:
                for future in pending:
                    future.cancel()
                raise

    def check_dimensions(self, queries: VectorSet) -> None:
        if queries.dimension != self.corpus.dimension:
            raise InvalidDimension(self.corpus.dimension, queries.dimension, "query set")
        db_dimension = self.db.dimension
        if db_dimension is not None and db_dimension != self.corpus.dimension:
            raise InvalidDimension(db_dimension, self.corpus.dimension, "corpus")


def run_queries(
    database: VectorDatabase,
    queries: VectorSet,
    corpus: VectorSet,
    k: int,
    nprobe: int,
    mode: RunMode = RunMode.SEQUENTIAL,
    limit: Optional[int] = None,
    **kwargs,
) -> QueryRunReport:
    """Run one benchmark pass; see `QueryExecutor.run` for the options."""
    return QueryExecutor(database, corpus).run(queries, k, nprobe, mode=mode, limit=limit, **kwargs)
