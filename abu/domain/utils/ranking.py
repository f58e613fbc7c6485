"""
Ranking strategies for report records.

Ranked reports sort by a metric, largest first, and keep the top N. Listing
reports sort by name and keep everything. Both sorts are stable, so records
that tie keep the order they were given in.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RankStrategy(Enum):
    """How a report orders its records."""

    BY_METRIC_DESC = "by_metric_desc"  # Largest metric first, truncated to N
    BY_NAME_ASC = "by_name_asc"  # Alphabetical, never truncated


def _default_metric(record) -> float:
    return record.delta.base


def _default_name(record) -> str:
    return record.name


def rank(
    records: Sequence[T],
    strategy: RankStrategy = RankStrategy.BY_METRIC_DESC,
    limit: Optional[int] = None,
    metric: Callable[[T], float] = _default_metric,
    name: Callable[[T], str] = _default_name,
) -> List[T]:
    """
    Order records according to ``strategy``.

    Parameters
    ----------
    records : Sequence[T]
        Records in input order, which breaks ties
    strategy : RankStrategy, default=BY_METRIC_DESC
        Ordering to apply
    limit : int, optional
        Maximum number of records kept by ``BY_METRIC_DESC``; ``None`` keeps
        all. Ignored by ``BY_NAME_ASC``.
    metric : callable, default=delta in base currency
        Metric extracted from each record for ``BY_METRIC_DESC``
    name : callable, default=record name
        Sort key for ``BY_NAME_ASC``

    Returns
    -------
    List[T]
        New ordered list; the input is not modified

    Raises
    ------
    ValueError
        If ``limit`` is negative

    Examples
    --------
    >>> rank([5.0, -3.0, 10.0, 10.0], limit=2, metric=lambda x: x)
    [10.0, 10.0]
    """
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")

    if strategy == RankStrategy.BY_NAME_ASC:
        return sorted(records, key=name)

    # sorted() with reverse=True keeps equal elements in input order
    ordered = sorted(records, key=metric, reverse=True)
    if limit is not None and len(ordered) > limit:
        logger.debug(
            "ranking.truncated",
            extra={"records": len(ordered), "limit": limit},
        )
        ordered = ordered[:limit]
    return ordered
