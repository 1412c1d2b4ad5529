"""
Descriptive statistics over latency and recall samples.

Conventions:
    - std is the population standard deviation (ddof=0): the summary
      describes the observed queries, not a larger population.
    - median, q1 and q3 use linear interpolation between order statistics
      (NumPy ``method="linear"``). For sorted values x[0..n-1] and fraction
      p, h = (n - 1) * p and the quantile is
      x[floor(h)] + (h - floor(h)) * (x[floor(h) + 1] - x[floor(h)]).
"""

import threading
from typing import Dict, Iterable, List, Union

import numpy as np

from annbench.core.errors import EmptyInput
from annbench.core.types import Sample, StatisticsSummary

SampleValue = Union[float, int, Sample]


def _as_array(samples: Iterable[SampleValue]) -> np.ndarray:
    values = [s.value if isinstance(s, Sample) else s for s in samples]
    return np.array(values, dtype=np.float64)


def summarize(samples: Iterable[SampleValue], what: str = "samples") -> StatisticsSummary:
    """
    Compute a StatisticsSummary over `samples`.

    The input is never modified; sorting happens on a private copy.

    Args:
        samples: Real numbers or Sample objects
        what: Label used in the error message

    Raises:
        EmptyInput: If `samples` is empty
    """
    values = np.sort(_as_array(samples))
    if values.size == 0:
        raise EmptyInput(what)

    q1, median, q3 = np.percentile(values, [25, 50, 75], method="linear")

    return StatisticsSummary(
        count=int(values.size),
        mean=float(np.mean(values)),
        std=float(np.std(values)),
        median=float(median),
        q1=float(q1),
        q3=float(q3),
        min=float(values[0]),
        max=float(values[-1]),
    )


class SampleCollector:
    """
    Thread-safe collection of per-trial samples.

    Each trial contributes at most one sample; a second sample for the same
    trial is rejected so that concurrent runs cannot double count a query.

    Example:
        latencies = SampleCollector("latency")
        latencies.add(0, 0.0012)
        summary = latencies.summarize()
    """

    def __init__(self, name: str = "samples"):
        self.name = name
        self._lock = threading.Lock()
        self._samples: Dict[int, Sample] = {}

    def add(self, trial: int, value: float) -> Sample:
        """
        Record the sample of `trial`.

        Raises:
            ValueError: If `trial` already has a sample
        """
        sample = Sample(trial=trial, value=float(value))
        with self._lock:
            if trial in self._samples:
                raise ValueError(f"Duplicate {self.name} sample for trial {trial}")
            self._samples[trial] = sample
        return sample

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def __contains__(self, trial: int) -> bool:
        with self._lock:
            return trial in self._samples

    def samples(self) -> List[Sample]:
        """Snapshot of the samples, ordered by trial."""
        with self._lock:
            return [self._samples[t] for t in sorted(self._samples)]

    def values(self) -> List[float]:
        return [s.value for s in self.samples()]

    def summarize(self) -> StatisticsSummary:
        """
        Raises:
            EmptyInput: If no sample was recorded
        """
        return summarize(self.samples(), what=f"{self.name} samples")
