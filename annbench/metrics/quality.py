"""
Retrieval quality metrics.

Recall here compares one ANN result with the flat (exact) result of the same
query. Results are treated as sets of indices: order and distances do not
affect the score.
"""

from typing import Iterable, Set, Union

from annbench.core.types import ResultSet

Results = Union[ResultSet, Iterable[int]]


def _index_set(results: Results) -> Set[int]:
    if isinstance(results, ResultSet):
        return set(results.indices)
    return {int(i) for i in results}


def count_hits(candidate: Results, reference: Results) -> int:
    """Number of reference indices that also appear in the candidate."""
    return len(_index_set(candidate) & _index_set(reference))


def compute_recall(candidate: Results, reference: Results) -> float:
    """
    Recall of `candidate` against `reference`, in percent.

    recall = |candidate ∩ reference| / |reference| * 100

    An empty reference scores 0.

    Args:
        candidate: ANN result (ResultSet or indices)
        reference: Ground-truth result (ResultSet or indices)

    Returns:
        Recall in [0, 100]
    """
    reference_ids = _index_set(reference)
    if not reference_ids:
        return 0.0
    hits = len(_index_set(candidate) & reference_ids)
    return hits / len(reference_ids) * 100.0
