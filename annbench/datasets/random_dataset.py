"""Random synthetic dataset for controlled experiments - Persisted Version."""

import logging
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from numpy.typing import NDArray

from annbench.datasets.base import write_fvecs

logger = logging.getLogger(__name__)

BASE_FILENAME = "base.fvecs"
QUERY_FILENAME = "query.fvecs"


def generate_vectors(
    n: int,
    d: int,
    seed: int = 42,
    distribution: str = "gaussian",
    normalize: bool = False,
) -> NDArray[np.float32]:
    """
    Generate `n` random vectors of dimension `d`.

    Args:
        distribution: "gaussian" (mean 0, std 1) or "uniform" ([-1, 1))
        normalize: L2-normalize each vector
    """
    rng = np.random.default_rng(seed)

    if distribution == "gaussian":
        vectors = rng.normal(0.0, 1.0, (n, d)).astype(np.float32)
    elif distribution == "uniform":
        vectors = rng.uniform(-1.0, 1.0, (n, d)).astype(np.float32)
    else:
        raise ValueError(f"Unknown distribution: {distribution}")

    if normalize:
        norms = np.linalg.norm(vectors, axis=1, keepdims=True)
        vectors = vectors / np.maximum(norms, 1e-8)

    return vectors


def generate_random_dataset(
    output_dir: Union[str, Path],
    num_vectors: int = 100_000,
    num_queries: int = 1_000,
    dimensions: int = 128,
    seed: int = 42,
    distribution: str = "gaussian",
    overwrite: bool = False,
) -> Tuple[Path, Path]:
    """
    Generate base and query vectors ONCE and save them as .fvecs files.

    Queries use `seed + 1` so they never coincide with base vectors.

    Returns:
        Tuple of (base_path, query_path)
    """
    output_dir = Path(output_dir)
    base_path = output_dir / BASE_FILENAME
    query_path = output_dir / QUERY_FILENAME

    if base_path.exists() and query_path.exists() and not overwrite:
        logger.info("Random dataset already generated in %s", output_dir)
        return base_path, query_path

    logger.info("Generating %d base and %d query vectors (%s, d=%d)", num_vectors, num_queries, distribution, dimensions)
    write_fvecs(base_path, generate_vectors(num_vectors, dimensions, seed, distribution))
    write_fvecs(query_path, generate_vectors(num_queries, dimensions, seed + 1, distribution))

    logger.info("Random dataset saved to %s", output_dir)
    return base_path, query_path
