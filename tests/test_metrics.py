"""Tests for metrics computation."""

import threading

import numpy as np
import pytest

from annbench.core.errors import EmptyInput
from annbench.core.types import ResultSet, Sample
from annbench.metrics.quality import compute_recall, count_hits
from annbench.metrics.resource import ResourceMonitor, measure_disk_usage
from annbench.metrics.statistics import SampleCollector, summarize


class TestQualityMetrics:
    """Test recall."""

    def setup_method(self):
        """Set up test fixtures."""
        self.reference = ResultSet.from_pairs([(0, 0.1), (1, 0.2), (2, 0.3), (3, 0.4), (4, 0.5)])

        # Perfect retrieval, different order and distances
        self.perfect = ResultSet.from_pairs([(4, 0.0), (3, 0.1), (2, 0.2), (1, 0.3), (0, 0.4)])

        # Partial retrieval
        self.partial = ResultSet.from_pairs([(0, 0.1), (5, 0.2), (2, 0.3), (6, 0.4), (4, 0.5)])

        # No overlap
        self.no_overlap = ResultSet.from_pairs([(5, 0.1), (6, 0.2), (7, 0.3), (8, 0.4), (9, 0.5)])

    def test_recall_perfect(self):
        """Test recall with perfect retrieval."""
        assert compute_recall(self.perfect, self.reference) == 100.0

    def test_recall_partial(self):
        """Test recall with partial overlap."""
        assert compute_recall(self.partial, self.reference) == pytest.approx(60.0)  # 3 out of 5
        assert count_hits(self.partial, self.reference) == 3

    def test_recall_no_overlap(self):
        """Test recall with no overlap."""
        assert compute_recall(self.no_overlap, self.reference) == 0.0

    def test_recall_empty_reference(self):
        assert compute_recall(self.perfect, ResultSet()) == 0.0
        assert compute_recall([], []) == 0.0

    def test_recall_shorter_candidate(self):
        """Missing hits count against the candidate."""
        assert compute_recall([0, 1], self.reference) == pytest.approx(40.0)

    def test_recall_accepts_index_lists(self):
        assert compute_recall(np.array([0, 1, 2, 3, 4]), [4, 3, 2, 1, 0]) == 100.0

    def test_recall_bounds(self):
        rng = np.random.default_rng(0)
        for _ in range(50):
            candidate = rng.choice(20, size=5, replace=False)
            reference = rng.choice(20, size=5, replace=False)
            assert 0.0 <= compute_recall(candidate, reference) <= 100.0


class TestStatistics:
    """Test descriptive statistics."""

    def test_one_to_five(self):
        summary = summarize([1, 2, 3, 4, 5])
        assert summary.count == 5
        assert summary.mean == pytest.approx(3.0)
        assert summary.std == pytest.approx(np.sqrt(2.0))  # population std
        assert summary.median == 3.0
        assert summary.q1 == 2.0
        assert summary.q3 == 4.0
        assert summary.min == 1.0
        assert summary.max == 5.0

    def test_single_value(self):
        summary = summarize([10.0])
        assert summary.mean == summary.median == summary.q1 == summary.q3 == 10.0
        assert summary.min == summary.max == 10.0
        assert summary.std == 0.0

    def test_quartile_interpolation(self):
        # h = 3 * 0.25 = 0.75 -> 1 + 0.75 * (2 - 1)
        summary = summarize([4, 1, 3, 2])
        assert summary.q1 == pytest.approx(1.75)
        assert summary.median == pytest.approx(2.5)
        assert summary.q3 == pytest.approx(3.25)

    def test_ordering_invariant(self):
        values = [0.5, 0.1, 0.9, 0.3, 0.7, 0.2]
        summary = summarize(values)
        assert summary.min <= summary.q1 <= summary.median <= summary.q3 <= summary.max
        assert summary == summarize(sorted(values))

    def test_input_not_modified(self):
        values = [3.0, 1.0, 2.0]
        summarize(values)
        assert values == [3.0, 1.0, 2.0]

    def test_accepts_samples(self):
        summary = summarize([Sample(trial=0, value=2.0), Sample(trial=1, value=4.0)])
        assert summary.mean == 3.0

    def test_empty(self):
        with pytest.raises(EmptyInput):
            summarize([])

    def test_empty_is_value_error(self):
        with pytest.raises(ValueError):
            summarize([], what="latency samples")

    def test_scaled(self):
        summary = summarize([0.001, 0.002, 0.003]).scaled(1000.0)
        assert summary.count == 3
        assert summary.mean == pytest.approx(2.0)
        assert summary.max == pytest.approx(3.0)


class TestSampleCollector:
    """Test the thread-safe sample collection."""

    def test_add_and_summarize(self):
        collector = SampleCollector("latency")
        for trial, value in enumerate([1.0, 2.0, 3.0]):
            collector.add(trial, value)
        assert len(collector) == 3
        assert 1 in collector
        assert collector.summarize().mean == 2.0

    def test_duplicate_trial_rejected(self):
        collector = SampleCollector("recall")
        collector.add(7, 100.0)
        with pytest.raises(ValueError, match="trial 7"):
            collector.add(7, 50.0)
        assert collector.values() == [100.0]

    def test_samples_ordered_by_trial(self):
        collector = SampleCollector()
        for trial in (3, 0, 2, 1):
            collector.add(trial, float(trial))
        assert [s.trial for s in collector.samples()] == [0, 1, 2, 3]

    def test_empty_summary(self):
        with pytest.raises(EmptyInput, match="latency"):
            SampleCollector("latency").summarize()

    def test_concurrent_adds(self):
        """No sample is lost when many threads add at once."""
        collector = SampleCollector()
        num_threads, per_thread = 8, 250

        def worker(offset):
            for i in range(per_thread):
                collector.add(offset * per_thread + i, 1.0)

        threads = [threading.Thread(target=worker, args=(t,)) for t in range(num_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collector) == num_threads * per_thread
        assert collector.summarize().count == num_threads * per_thread


class TestResourceMetrics:
    """Test resource measurement."""

    def test_disk_usage(self, tmp_path):
        (tmp_path / "a.bin").write_bytes(b"x" * 100)
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.bin").write_bytes(b"y" * 50)

        assert measure_disk_usage(tmp_path) == {"size": 150, "files": 2}
        assert measure_disk_usage(tmp_path / "a.bin") == {"size": 100, "files": 1}
        assert measure_disk_usage(tmp_path / "missing") == {"size": 0, "files": 0}

    def test_resource_monitor(self):
        with ResourceMonitor(sample_interval_sec=0.01) as monitor:
            block = np.ones((1000, 1000))
            float(block.sum())
        assert monitor.elapsed_sec > 0
        assert monitor.peak_memory_bytes > 0
        assert monitor.cpu_time_sec >= 0

    def test_memory_delta_frozen_at_exit(self):
        with ResourceMonitor(sample_interval_sec=None) as monitor:
            block = np.ones(8 * 2**20)  # 64 MiB, touched
        assert monitor.memory_delta_bytes >= 32 * 2**20
        del block
        assert monitor.memory_delta_bytes >= 32 * 2**20
