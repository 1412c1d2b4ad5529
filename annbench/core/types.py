"""
Core data types shared across the benchmark harness.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple


class RunMode(str, Enum):
    """How a query pass issues its database calls."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass(frozen=True, order=True)
class Neighbor:
    """
    A single search hit.

    Ordering compares distance first and index second, which gives the
    deterministic tie-break used by every result set.
    """

    distance: float
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "distance": self.distance}


@dataclass(frozen=True)
class ResultSet:
    """
    Neighbors of one query, ascending by (distance, index).

    Raises:
        ValueError: If the same index appears twice or the neighbors are
            out of order
    """

    neighbors: Tuple[Neighbor, ...] = ()

    def __post_init__(self):
        indices = [n.index for n in self.neighbors]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Result set contains duplicate indices: {indices}")
        if list(self.neighbors) != sorted(self.neighbors):
            raise ValueError(f"Result set is not ascending by (distance, index): {indices}")

    @classmethod
    def from_pairs(cls, pairs: Sequence[Tuple[int, float]]) -> "ResultSet":
        """Build a result set from (index, distance) pairs in any order."""
        neighbors = sorted(Neighbor(distance=float(d), index=int(i)) for i, d in pairs)
        return cls(tuple(neighbors))

    @property
    def indices(self) -> List[int]:
        return [n.index for n in self.neighbors]

    @property
    def distances(self) -> List[float]:
        return [n.distance for n in self.neighbors]

    def __len__(self) -> int:
        return len(self.neighbors)

    def __iter__(self) -> Iterator[Neighbor]:
        return iter(self.neighbors)


@dataclass(frozen=True)
class Sample:
    """A scalar observation produced by one trial (query)."""

    trial: int
    value: float


@dataclass(frozen=True)
class StatisticsSummary:
    """
    Descriptive statistics over a non-empty sample collection.

    `std` is the population standard deviation; quartiles use linear
    interpolation between order statistics.
    """

    count: int
    mean: float
    std: float
    median: float
    q1: float
    q3: float
    min: float
    max: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def scaled(self, factor: float) -> "StatisticsSummary":
        """Return a copy with every value (not the count) multiplied by `factor`."""
        return StatisticsSummary(
            count=self.count,
            mean=self.mean * factor,
            std=self.std * factor,
            median=self.median * factor,
            q1=self.q1 * factor,
            q3=self.q3 * factor,
            min=self.min * factor,
            max=self.max * factor,
        )


@dataclass
class IndexConfig:
    """Build parameters of a partitioned product-quantization index."""

    num_partitions: int = 2048
    num_divisions: int = 8
    num_codes: int = 256

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class DatabaseInfo:
    """Static information about a database adapter."""

    name: str
    display_name: str
    version: str = "unknown"
    index_type: str = "IVF_PQ"


@dataclass
class BuildReport:
    """Outcome of building and saving an index."""

    database: str
    num_vectors: int
    dimensions: int
    index_config: IndexConfig
    build_time_sec: float
    save_time_sec: float = 0.0
    disk_bytes: int = 0
    ram_bytes_peak: int = 0
    ram_bytes_delta: int = 0
    cpu_time_sec: float = 0.0
    output_path: Optional[str] = None

    @property
    def bytes_per_vector(self) -> float:
        return self.disk_bytes / max(self.num_vectors, 1)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["bytes_per_vector"] = self.bytes_per_vector
        return data


@dataclass
class QueryRunReport:
    """
    Aggregate result of one query pass.

    Latencies are in seconds and recalls in percent. `num_queries` counts
    queries that produced samples; `num_skipped` counts queries whose
    database call failed while failures were tolerated. Per-query samples
    are kept for plotting and left out of `to_dict`.
    """

    k: int
    nprobe: int
    mode: RunMode
    num_queries: int
    seconds: StatisticsSummary
    flat_seconds: StatisticsSummary
    recalls: StatisticsSummary
    num_skipped: int = 0
    concurrency: int = 1
    wall_time_sec: float = 0.0
    skipped_queries: List[int] = field(default_factory=list)
    latency_samples: List[float] = field(default_factory=list, repr=False)
    recall_samples: List[float] = field(default_factory=list, repr=False)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def qps(self) -> float:
        """Completed queries per second of wall-clock time."""
        if self.wall_time_sec <= 0:
            return 0.0
        return self.num_queries / self.wall_time_sec

    def to_dict(self) -> Dict[str, Any]:
        return {
            "k": self.k,
            "nprobe": self.nprobe,
            "mode": self.mode.value,
            "concurrency": self.concurrency,
            "num_queries": self.num_queries,
            "num_skipped": self.num_skipped,
            "skipped_queries": list(self.skipped_queries),
            "wall_time_sec": self.wall_time_sec,
            "qps": self.qps,
            "seconds": self.seconds.to_dict(),
            "flat_seconds": self.flat_seconds.to_dict(),
            "recalls": self.recalls.to_dict(),
            "metadata": self.metadata,
        }
