"""
annbench: measurement harness for approximate nearest-neighbor databases

Builds an ANN index over a vector dataset, then measures build time, storage
footprint, query latency and recall against an exact flat search.

Components:
    - Vector sets loaded from *.fvecs files
    - Flat (exhaustive) k-NN search used as ground truth
    - Recall scoring of ANN results against the flat results
    - Sample statistics (mean, std, median, quartiles, extrema)
    - Query runner in sequential or concurrent-overlapping mode

Supported Databases:
    - FAISS IVF-PQ (faiss-ivfpq)

Supported Datasets:
    - SIFT1M and any other *.fvecs corpus
    - Random (synthetic)
"""

__version__ = "0.1.0"
__license__ = "MIT"

from annbench.core.config import Config, load_config
from annbench.core.types import (
    Neighbor,
    QueryRunReport,
    ResultSet,
    RunMode,
    StatisticsSummary,
)

__all__ = [
    "Config",
    "load_config",
    "Neighbor",
    "QueryRunReport",
    "ResultSet",
    "RunMode",
    "StatisticsSummary",
]
