"""Core module containing the database protocol, types, errors and configuration utilities."""

from annbench.core.base import VectorDatabase
from annbench.core.config import Config, load_config
from annbench.core.errors import (
    BenchmarkError,
    DatabaseFailure,
    EmptyInput,
    InvalidDimension,
    LoadFailure,
    SampleCountMismatch,
)
from annbench.core.types import (
    BuildReport,
    DatabaseInfo,
    IndexConfig,
    Neighbor,
    QueryRunReport,
    ResultSet,
    RunMode,
    Sample,
    StatisticsSummary,
)

__all__ = [
    "VectorDatabase",
    "Config",
    "load_config",
    "BenchmarkError",
    "DatabaseFailure",
    "EmptyInput",
    "InvalidDimension",
    "LoadFailure",
    "SampleCountMismatch",
    "BuildReport",
    "DatabaseInfo",
    "IndexConfig",
    "Neighbor",
    "QueryRunReport",
    "ResultSet",
    "RunMode",
    "Sample",
    "StatisticsSummary",
]
