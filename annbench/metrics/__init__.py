"""
Measurement primitives: flat ground truth, recall, statistics and resources.
"""

from annbench.metrics.flat import FlatIndex, NBest, flat_search, squared_distances
from annbench.metrics.quality import compute_recall, count_hits
from annbench.metrics.resource import ResourceMonitor, measure_disk_usage
from annbench.metrics.statistics import SampleCollector, summarize

__all__ = [
    "FlatIndex",
    "NBest",
    "flat_search",
    "squared_distances",
    "compute_recall",
    "count_hits",
    "ResourceMonitor",
    "measure_disk_usage",
    "SampleCollector",
    "summarize",
]
