"""
Gap Ranker - orders compliance deficits for reports.

Gaps are sorted by deficit, largest first. The sort is stable so equal
deficits keep catalog order, which keeps exports reproducible.
"""

from typing import Iterable, List, Sequence

from backend.readiness.context import Gap


DEFAULT_TOP_GAPS = 5


def rank_gaps(gaps: Iterable[Gap]) -> List[Gap]:
    return sorted(gaps, key=lambda g: g.deficit, reverse=True)


def top_gaps(ranked: Sequence[Gap], n: int = DEFAULT_TOP_GAPS) -> List[Gap]:
    if n <= 0:
        return []
    return list(ranked[:n])
