"""
Dataset loading for benchmark runs.

Supported inputs:
    - Any *.fvecs file (SIFT1M base/query sets are 128-dim)
    - Random: synthetic gaussian or uniform vectors written as *.fvecs
"""

from annbench.datasets.base import VectorSet, load_vector_set, read_fvecs, write_fvecs
from annbench.datasets.random_dataset import generate_random_dataset, generate_vectors

__all__ = [
    "VectorSet",
    "load_vector_set",
    "read_fvecs",
    "write_fvecs",
    "generate_random_dataset",
    "generate_vectors",
]
