"""
FAISS IVF-PQ adapter.

Partitions map to the IVF lists (nlist), divisions to the PQ subquantizers
(M) and codes to the PQ centroids per subquantizer (2**nbits).
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
from numpy.typing import NDArray

from annbench.core.errors import DatabaseFailure, InvalidDimension
from annbench.core.types import DatabaseInfo, IndexConfig, ResultSet
from annbench.databases.factory import register_database
from annbench.datasets.base import VectorSet

logger = logging.getLogger(__name__)

try:
    import faiss
    FAISS_AVAILABLE = True
except ImportError:
    FAISS_AVAILABLE = False


def _require_faiss() -> None:
    if not FAISS_AVAILABLE:
        raise ImportError("FAISS not installed. Install with: pip install faiss-cpu")


def _code_bits(num_codes: int) -> int:
    nbits = int(num_codes).bit_length() - 1
    if num_codes < 2 or 1 << nbits != num_codes:
        raise DatabaseFailure("build", f"number of codes must be a power of two, got {num_codes}")
    return nbits


@register_database("faiss-ivfpq")
class FaissIVFPQDatabase:
    """
    Searchable FAISS IVF-PQ index.

    `nprobe` travels with each search call as SearchParametersIVF, so the
    index object is never mutated while searching and concurrent searches
    are safe.
    """

    def __init__(self, index: "faiss.Index", config: Optional[Dict[str, Any]] = None):
        _require_faiss()
        self.config = config or {}
        self.index = index

    @property
    def name(self) -> str:
        return "faiss-ivfpq"

    @property
    def info(self) -> DatabaseInfo:
        return DatabaseInfo(
            name="faiss-ivfpq",
            display_name="FAISS IVF-PQ",
            version=getattr(faiss, "__version__", "unknown"),
            index_type="IVF_PQ",
        )

    @property
    def dimension(self) -> int:
        return int(self.index.d)

    @property
    def num_vectors(self) -> int:
        return int(self.index.ntotal)

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def build(
        cls,
        corpus: VectorSet,
        num_partitions: int,
        num_divisions: int,
        num_codes: int,
        config: Optional[Dict[str, Any]] = None,
    ) -> "FaissIVFPQDatabase":
        """
        Train an IVF-PQ index on `corpus` and add every vector.

        Vector ids are corpus positions.

        Raises:
            DatabaseFailure: If the parameters are rejected or training fails
        """
        _require_faiss()
        d = corpus.dimension
        nbits = _code_bits(num_codes)
        if d % num_divisions != 0:
            raise DatabaseFailure(
                "build", f"dimension {d} is not divisible by the number of divisions {num_divisions}"
            )
        if len(corpus) < num_partitions:
            raise DatabaseFailure(
                "build", f"{len(corpus)} vectors are too few for {num_partitions} partitions"
            )

        data = corpus.data
        start = time.perf_counter()
        try:
            quantizer = faiss.IndexFlatL2(d)
            index = faiss.IndexIVFPQ(quantizer, d, num_partitions, num_divisions, nbits)
            logger.info("Training %d partitions, %d divisions, %d codes", num_partitions, num_divisions, num_codes)
            index.train(data)
            logger.info("Trained in %.3f s; adding %d vectors", time.perf_counter() - start, len(corpus))
            index.add(data)
        except RuntimeError as e:
            raise DatabaseFailure("build", str(e)) from e
        logger.info("Built index in %.3f s", time.perf_counter() - start)

        return cls(index, config)

    @classmethod
    def load(cls, path: str, config: Optional[Dict[str, Any]] = None) -> "FaissIVFPQDatabase":
        """
        Load an index written by `save`.

        Raises:
            DatabaseFailure: If the file is missing or not an IVF index
        """
        _require_faiss()
        if not Path(path).is_file():
            raise DatabaseFailure("load", f"index file not found: {path}")
        try:
            index = faiss.read_index(str(path))
        except RuntimeError as e:
            raise DatabaseFailure("load", str(e)) from e
        if faiss.try_extract_index_ivf(index) is None:
            raise DatabaseFailure("load", f"{path} does not hold an IVF index")
        return cls(index, config)

    def save(self, path: str) -> None:
        """Write the index to `path`, creating parent directories."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            faiss.write_index(self.index, str(path))
        except RuntimeError as e:
            raise DatabaseFailure("save", str(e)) from e

    # =========================================================================
    # Search
    # =========================================================================

    def search(self, query: NDArray[np.float32], k: int, nprobe: int) -> ResultSet:
        """
        Approximate k nearest neighbors of one query.

        Missing hits (fewer than k vectors in the probed partitions) are
        dropped rather than reported as -1.
        """
        query = np.ascontiguousarray(query, dtype=np.float32)
        if query.ndim != 1 or query.shape[0] != self.dimension:
            raise InvalidDimension(self.dimension, query.shape[-1] if query.ndim else 0)
        if k <= 0:
            return ResultSet()
        try:
            params = faiss.SearchParametersIVF(nprobe=nprobe)
            distances, labels = self.index.search(query.reshape(1, -1), k, params=params)
        except (RuntimeError, AssertionError) as e:
            raise DatabaseFailure("search", str(e)) from e

        pairs = [(int(i), float(dist)) for i, dist in zip(labels[0], distances[0]) if i >= 0]
        return ResultSet.from_pairs(pairs)

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_index_stats(self) -> Dict[str, Any]:
        """
        Get index statistics.

        Returns:
            Dictionary containing num_vectors, dimensions, index_config,
            code_size_bytes and the in-memory size of the PQ codes.
        """
        ivf = faiss.downcast_index(faiss.extract_index_ivf(self.index))
        pq = getattr(ivf, "pq", None)
        config = IndexConfig(
            num_partitions=int(ivf.nlist),
            num_divisions=int(pq.M) if pq is not None else 0,
            num_codes=int(pq.ksub) if pq is not None else 0,
        )
        code_size = int(ivf.code_size)
        return {
            "num_vectors": self.num_vectors,
            "dimensions": self.dimension,
            "index_type": "IVF_PQ",
            "index_config": config.to_dict(),
            "code_size_bytes": code_size,
            "codes_bytes": code_size * self.num_vectors,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, num_vectors={self.num_vectors})"
