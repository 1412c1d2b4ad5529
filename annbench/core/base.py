"""
Capability interface of the ANN database under test.

The harness only ever builds, searches, saves and loads a database, so the
interface is a structural protocol: any object exposing these members can be
benchmarked, no base class required. Handles are created through the
class-level `build(corpus, num_partitions, num_divisions, num_codes)` and
`load(path)` constructors registered in `annbench.databases.factory`.
"""

from typing import Optional, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from annbench.core.types import DatabaseInfo, ResultSet


@runtime_checkable
class VectorDatabase(Protocol):
    """
    Searchable handle of a built ANN index.

    Implementations must tolerate concurrent `search` calls: the query
    runner issues overlapping searches against one handle.

    Example:
        db = FaissIVFPQDatabase.build(corpus, 2048, 8, 256)
        result = db.search(queries[0], k=10, nprobe=16)
    """

    @property
    def info(self) -> DatabaseInfo:
        """Return database information."""
        ...

    @property
    def dimension(self) -> Optional[int]:
        """Return the dimensionality of indexed vectors."""
        ...

    @property
    def num_vectors(self) -> int:
        """Return the number of indexed vectors."""
        ...

    def search(self, query: NDArray[np.float32], k: int, nprobe: int) -> ResultSet:
        """
        Search for the k approximate nearest neighbors of one query.

        Args:
            query: 1D array of shape (d,)
            k: Number of neighbors to return
            nprobe: Number of partitions to inspect

        Raises:
            DatabaseFailure: If the database rejects the call
        """
        ...

    def save(self, path: str) -> None:
        """
        Persist the index to `path`.

        Raises:
            DatabaseFailure: If the index cannot be written
        """
        ...
