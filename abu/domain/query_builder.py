"""Expand dimension value lists into independent query descriptors."""

from __future__ import annotations

import itertools
import logging
from typing import Iterable, List, Optional, Sequence

from .models import Dimension, DimensionValue, QueryDescriptor, TimeInterval

logger = logging.getLogger(__name__)


def dimension_values(
    dimension: Dimension,
    values: Iterable[str],
    labels: Optional[Sequence[Optional[str]]] = None,
) -> List[DimensionValue]:
    """Build the value list for one dimension.

    ``labels``, when given, must line up with ``values`` and provides display
    names (e.g. account names for account ids).
    """
    values = list(values)
    if labels is None:
        return [DimensionValue(dimension=dimension, value=v) for v in values]
    if len(labels) != len(values):
        raise ValueError(
            f"{dimension.value}: got {len(labels)} labels for {len(values)} values"
        )
    return [
        DimensionValue(dimension=dimension, value=v, label=label)
        for v, label in zip(values, labels)
    ]


def build_descriptors(
    dimensions: Sequence[Sequence[DimensionValue]], interval: TimeInterval
) -> List[QueryDescriptor]:
    """Return the cartesian product of ``dimensions`` as query descriptors.

    Descriptors come out in lexicographic product order, the first dimension
    varying slowest. Later stages use this order as the tie-break when ranking.
    If any dimension list is empty, or no dimension is given, the result is an
    empty list.
    """
    if not dimensions or any(len(values) == 0 for values in dimensions):
        logger.debug(
            "query_builder.empty",
            extra={"dimension_sizes": [len(values) for values in dimensions]},
        )
        return []

    descriptors = [
        QueryDescriptor(values=combination, interval=interval)
        for combination in itertools.product(*dimensions)
    ]
    logger.info(
        "query_builder.built",
        extra={
            "descriptors": len(descriptors),
            "dimension_sizes": [len(values) for values in dimensions],
            "start": interval.start.isoformat(),
            "end": interval.end.isoformat(),
        },
    )
    return descriptors
