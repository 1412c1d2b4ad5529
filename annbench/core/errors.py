"""
Exception types raised by the benchmark harness.

Every error carries enough context (operation, query index, path) for the
caller to tell which step of a run failed. Nothing in the harness retries:
a failed database call would distort the latency measurements.
"""

from typing import Optional


class BenchmarkError(Exception):
    """Base class for all harness errors."""


class InvalidDimension(BenchmarkError, ValueError):
    """Raised when vector dimensions of a query and a corpus disagree."""

    def __init__(self, expected: int, actual: int, context: str = "query"):
        self.expected = expected
        self.actual = actual
        self.context = context
        super().__init__(
            f"Vector dimensions mismatch for {context}: expected {expected}, got {actual}"
        )


class EmptyInput(BenchmarkError, ValueError):
    """Raised when statistics are requested over zero samples."""

    def __init__(self, what: str = "samples"):
        self.what = what
        super().__init__(f"Cannot summarize empty {what}")


class DatabaseFailure(BenchmarkError, RuntimeError):
    """
    Raised when the database under test rejects an operation.

    Attributes:
        operation: Name of the rejected operation (build, search, save, load)
        query_index: Index of the query being searched, if any
    """

    def __init__(
        self,
        operation: str,
        message: str,
        query_index: Optional[int] = None,
    ):
        self.operation = operation
        self.message = message
        self.query_index = query_index
        where = f" (query {query_index})" if query_index is not None else ""
        super().__init__(f"Database {operation} failed{where}: {message}")


class LoadFailure(BenchmarkError):
    """Raised when a dataset or query file cannot be read or parsed."""

    def __init__(self, path: str, message: str):
        self.path = str(path)
        super().__init__(f"Failed to load {path}: {message}")


class SampleCountMismatch(BenchmarkError, RuntimeError):
    """Raised when sampled plus skipped queries do not add up to the queries issued."""
