"""
Resource metrics for memory, disk, and CPU usage evaluation.
"""

import os
import threading
import time
from pathlib import Path
from typing import Dict, Optional, Union

import psutil


def measure_disk_usage(path: Union[str, Path]) -> Dict[str, int]:
    """
    Measure disk usage for a path.

    Args:
        path: Directory or file path

    Returns:
        Dictionary with disk metrics in bytes
    """
    path = Path(path)

    if not path.exists():
        return {"size": 0, "files": 0}

    if path.is_file():
        return {"size": path.stat().st_size, "files": 1}

    total_size = 0
    file_count = 0

    for item in path.rglob("*"):
        if item.is_file():
            total_size += item.stat().st_size
            file_count += 1

    return {"size": total_size, "files": file_count}


class ResourceMonitor:
    """
    Context manager for monitoring resource usage during operations.

    A daemon thread samples RSS every `sample_interval_sec` so the peak
    reflects transient allocations inside the block.

    Example:
        with ResourceMonitor() as monitor:
            db = FaissIVFPQDatabase.build(corpus, 2048, 8, 256)
        print(monitor.elapsed_sec, monitor.peak_memory_bytes)
    """

    def __init__(self, sample_interval_sec: Optional[float] = 0.1):
        """
        Initialize resource monitor.

        Args:
            sample_interval_sec: Sampling interval for peak detection
                (None disables the sampling thread)
        """
        self.sample_interval = sample_interval_sec
        self.process = psutil.Process(os.getpid())

        self._start_memory = 0
        self._end_memory = 0
        self._peak_memory = 0
        self._start_cpu_times = None
        self._end_cpu_time = 0.0
        self._start_time = 0.0
        self._end_time = 0.0
        self._monitoring = False
        self._stop = threading.Event()
        self._sampler: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def __enter__(self):
        self._start_memory = self.process.memory_info().rss
        self._peak_memory = self._start_memory
        self._start_cpu_times = self.process.cpu_times()
        self._start_time = time.perf_counter()
        self._monitoring = True
        if self.sample_interval:
            self._stop.clear()
            self._sampler = threading.Thread(target=self._run_sampler, daemon=True)
            self._sampler.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._end_time = time.perf_counter()
        self._stop.set()
        if self._sampler is not None:
            self._sampler.join()
            self._sampler = None
        self._end_memory = self.process.memory_info().rss
        self.sample()
        self._end_cpu_time = self._cpu_time_since_start()
        self._monitoring = False
        return False

    def _run_sampler(self) -> None:
        while not self._stop.wait(self.sample_interval):
            self.sample()

    def _cpu_time_since_start(self) -> float:
        current = self.process.cpu_times()
        user = current.user - self._start_cpu_times.user
        system = current.system - self._start_cpu_times.system
        return user + system

    @property
    def elapsed_sec(self) -> float:
        """Elapsed time in seconds."""
        if self._monitoring:
            return time.perf_counter() - self._start_time
        return self._end_time - self._start_time

    @property
    def memory_delta_bytes(self) -> int:
        """RSS change from entering the block to now (or to exit, once closed)."""
        if self._monitoring:
            return self.process.memory_info().rss - self._start_memory
        return self._end_memory - self._start_memory

    @property
    def peak_memory_bytes(self) -> int:
        """Peak memory usage."""
        with self._lock:
            return self._peak_memory

    @property
    def cpu_time_sec(self) -> float:
        """Total CPU time used."""
        if self._monitoring:
            return self._cpu_time_since_start()
        return self._end_cpu_time

    def sample(self) -> None:
        """Take a memory sample."""
        current = self.process.memory_info().rss
        with self._lock:
            self._peak_memory = max(self._peak_memory, current)
