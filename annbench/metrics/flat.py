"""
Exact (flat) k-nearest-neighbor search used as ground truth.

The scan is deliberately exhaustive: every corpus vector is compared with
the query. Distances are squared Euclidean, computed with numpy one corpus
block at a time, and the k best hits are kept in a heap bounded at k, so
memory stays O(block + k) and selection costs O(N log k).
"""

import heapq
from typing import List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from annbench.core.types import Neighbor, ResultSet
from annbench.datasets.base import VectorSet

DEFAULT_BLOCK_SIZE = 65536


def squared_distances(vectors: NDArray[np.float32], query: NDArray[np.float32]) -> NDArray[np.float64]:
    """
    Squared L2 distance from `query` to each row of `vectors`.

    Differences are taken in float32 and accumulated in float64.
    """
    diff = vectors - query
    return np.einsum("ij,ij->i", diff, diff, dtype=np.float64)


class NBest:
    """
    Keeps the `k` smallest (distance, index) pairs seen so far.

    Implemented as a max-heap capped at `k`: the root is the current worst
    kept pair, so insert-and-evict is O(log k). Pairs compare by distance,
    then by index, which makes equal distances resolve to the lower index.
    """

    def __init__(self, k: int):
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        self.k = k
        # (-distance, -index): heapq is a min-heap
        self._heap: List[Tuple[float, int]] = []

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def is_full(self) -> bool:
        return len(self._heap) >= self.k

    @property
    def worst_distance(self) -> float:
        """Largest kept distance (inf while not full)."""
        if not self.is_full or not self._heap:
            return float("inf")
        return -self._heap[0][0]

    def push(self, distance: float, index: int) -> bool:
        """Offer a pair; returns True if it was kept."""
        if self.k == 0:
            return False
        entry = (-distance, -index)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True
        if entry > self._heap[0]:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def to_result_set(self) -> ResultSet:
        neighbors = sorted(Neighbor(distance=-d, index=-i) for d, i in self._heap)
        return ResultSet(tuple(neighbors))


def _block_candidates(distances: NDArray[np.float64], k: int) -> NDArray[np.intp]:
    """Offsets that can still belong to the block's k best, ties at the cut included."""
    if len(distances) <= k:
        return np.arange(len(distances))
    kth = np.partition(distances, k - 1)[k - 1]
    return np.flatnonzero(distances <= kth)


def flat_search(
    corpus: VectorSet,
    query: NDArray[np.float32],
    k: int,
    block_size: int = DEFAULT_BLOCK_SIZE,
) -> ResultSet:
    """
    Exact k nearest neighbors of `query` in `corpus`.

    Args:
        corpus: Vectors to scan
        query: 1D array of shape (d,)
        k: Number of neighbors; k >= len(corpus) returns the whole corpus
        block_size: Corpus rows per distance block

    Returns:
        ResultSet ascending by (distance, index)

    Raises:
        InvalidDimension: If the query dimension differs from the corpus
        ValueError: If k is negative
    """
    if k < 0:
        raise ValueError(f"k must be non-negative, got {k}")
    query = np.asarray(query, dtype=np.float32)
    corpus.check_dimension(query)

    nbest = NBest(min(k, len(corpus)))
    if nbest.k == 0:
        return ResultSet()

    data = corpus.data
    for start in range(0, len(corpus), block_size):
        distances = squared_distances(data[start:start + block_size], query)
        for offset in _block_candidates(distances, nbest.k):
            distance = float(distances[offset])
            if distance > nbest.worst_distance:
                continue
            nbest.push(distance, start + int(offset))

    return nbest.to_result_set()


class FlatIndex:
    """
    Flat search bound to one corpus.

    Stateless apart from the read-only corpus, so one instance may serve
    concurrent callers.
    """

    def __init__(self, corpus: VectorSet, block_size: int = DEFAULT_BLOCK_SIZE):
        self.corpus = corpus
        self.block_size = block_size

    @property
    def dimension(self) -> int:
        return self.corpus.dimension

    def search(self, query: NDArray[np.float32], k: int) -> ResultSet:
        return flat_search(self.corpus, query, k, self.block_size)

    def search_many(self, queries: Sequence[NDArray[np.float32]], k: int) -> List[ResultSet]:
        return [self.search(query, k) for query in queries]
