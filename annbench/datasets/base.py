"""
Vector sets and the *.fvecs file format.

A VectorSet is the read-only corpus (or query set) of one run. It is shared
by reference between the flat search, the query runner and the database
under test, so its buffer is frozen on construction.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from annbench.core.errors import InvalidDimension, LoadFailure

logger = logging.getLogger(__name__)


class VectorSet:
    """
    Immutable collection of fixed-dimension float32 vectors.

    Attributes:
        name: Label of the set (usually the source file name)
    """

    def __init__(self, data: ArrayLike, name: str = "vectors", copy: bool = True):
        """
        Args:
            data: Array-like of shape (n, d)
            name: Label of the set
            copy: Copy `data` before freezing it. Loaders that own a fresh
                buffer pass False.

        Raises:
            ValueError: If `data` is not two-dimensional
        """
        if copy:
            array = np.array(data, dtype=np.float32, order="C")
        else:
            array = np.ascontiguousarray(data, dtype=np.float32)
        if array.ndim != 2:
            raise ValueError(f"Vectors must be 2D, got {array.ndim}D")
        array.setflags(write=False)
        self._data = array
        self.name = name

    @property
    def data(self) -> NDArray[np.float32]:
        """Read-only (n, d) array."""
        return self._data

    @property
    def dimension(self) -> int:
        return int(self._data.shape[1])

    def __len__(self) -> int:
        return int(self._data.shape[0])

    def __getitem__(self, index: int) -> NDArray[np.float32]:
        return self._data[index]

    def __iter__(self) -> Iterator[NDArray[np.float32]]:
        return iter(self._data)

    def head(self, n: int) -> "VectorSet":
        """Return the first `n` vectors as a new set sharing this buffer."""
        return VectorSet(self._data[: max(n, 0)], name=self.name, copy=False)

    def check_dimension(self, vector: NDArray[np.float32], context: str = "query") -> None:
        """
        Raises:
            InvalidDimension: If `vector` does not have this set's dimension
        """
        shape = np.shape(vector)
        if len(shape) != 1 or shape[0] != self.dimension:
            raise InvalidDimension(self.dimension, shape[-1] if shape else 0, context)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, n={len(self)}, d={self.dimension})"


# =============================================================================
# File Format Readers
# =============================================================================


def read_fvecs(filename: Union[str, Path], dimensions: Optional[int] = None) -> NDArray[np.float32]:
    """
    Read vectors from .fvecs file format.

    Format: each vector is a little-endian int32 dimension followed by that
    many float32 values. The number of vectors follows from the file size.

    Args:
        filename: Path to the file
        dimensions: Expected dimensionality, checked when given

    Raises:
        LoadFailure: If the file is missing, empty, truncated or has
            inconsistent dimensions
    """
    path = Path(filename)
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise LoadFailure(str(path), str(e)) from e

    if not raw:
        raise LoadFailure(str(path), "file is empty")
    if len(raw) % 4 != 0:
        raise LoadFailure(str(path), f"truncated file: {len(raw)} bytes is not a multiple of 4")
    data = np.frombuffer(raw, dtype="<i4")

    # First value is dimension
    d = int(data[0])
    if d <= 0:
        raise LoadFailure(str(path), f"invalid vector size: {d}")
    if dimensions is not None and d != dimensions:
        raise LoadFailure(str(path), f"invalid vector size: expected {dimensions} but got {d}")
    if data.size % (d + 1) != 0:
        raise LoadFailure(str(path), f"truncated file: {data.size * 4} bytes is not a whole number of vectors")

    # Reshape: each row has (1 + d) values (dim prefix + vector)
    data = data.reshape(-1, d + 1)
    prefixes = data[:, 0]
    bad = np.flatnonzero(prefixes != d)
    if bad.size:
        raise LoadFailure(
            str(path),
            f"inconsistent vector size at vector {int(bad[0])}: expected {d} but got {int(prefixes[bad[0]])}",
        )

    # Return only vector part (skip dimension prefix)
    return data[:, 1:].view("<f4").astype(np.float32)


def write_fvecs(filename: Union[str, Path], vectors: ArrayLike) -> None:
    """Write an (n, d) array to .fvecs file format."""
    array = np.asarray(vectors, dtype="<f4")
    if array.ndim != 2:
        raise ValueError(f"Vectors must be 2D, got {array.ndim}D")
    n, d = array.shape
    rows = np.empty((n, d + 1), dtype="<i4")
    rows[:, 0] = d
    rows[:, 1:] = array.view("<i4")
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows.tofile(str(path))


def load_vector_set(path: Union[str, Path], dimensions: Optional[int] = None) -> VectorSet:
    """
    Load a VectorSet from an .fvecs file.

    Raises:
        LoadFailure: If the file cannot be read or parsed
    """
    path = Path(path)
    vectors = read_fvecs(path, dimensions)
    logger.debug("Loaded %d vectors of dimension %d from %s", len(vectors), vectors.shape[1], path)
    return VectorSet(vectors, name=path.name, copy=False)
