"""Cost change report: accounts × services × regions over the lookback window.

Every (account, service, region) combination is an independent monthly cost
query. Queries run through a bounded executor because the product easily
reaches thousands of calls against a rate-limited API. The change between
the first and last month of each series is ranked, largest increase first.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable, List, Optional

from ..adapters import CostSource
from ..context import RuntimeContext
from ..domain.models import Dimension, DerivedRecord, QueryDescriptor, QueryResult
from ..domain.query_builder import build_descriptors, dimension_values
from ..domain.utils.aggregation import derive_change_records
from ..domain.utils.ranking import RankStrategy, rank
from ..domain.utils.timestamps import lookback_interval
from ..utils.bounded_executor import BoundedExecutor

logger = logging.getLogger(__name__)


def _series_query(source: CostSource) -> Callable[[QueryDescriptor], QueryResult]:
    def execute(descriptor: QueryDescriptor) -> QueryResult:
        return QueryResult(
            descriptor=descriptor, points=source.get_cost_series(descriptor)
        )

    return execute


async def change_report(
    ctx: RuntimeContext,
    *,
    limit: Optional[int] = None,
    lookback: Optional[int] = None,
    concurrency: Optional[int] = None,
    today: Optional[date] = None,
) -> List[DerivedRecord]:
    """Return the top cost changes over the lookback window.

    Parameters
    ----------
    ctx: RuntimeContext
        Cost source, conversion rate and report defaults.
    limit: Optional[int]
        Rows to keep; defaults to ``reports.num_lines``.
    lookback: Optional[int]
        Months covered; defaults to ``reports.month_lookback``.
    concurrency: Optional[int]
        Queries in flight; defaults to ``reports.max_concurrency``.
    today: Optional[date]
        Reference day for the window (tests).

    Raises
    ------
    BatchFailedError
        If any cost query failed.
    """
    settings = ctx.config.reports
    if lookback is None:
        lookback = settings.month_lookback
    if concurrency is None:
        concurrency = settings.max_concurrency
    if limit is None:
        limit = settings.num_lines
    interval = lookback_interval(lookback, today)

    accounts, services, regions = await asyncio.gather(
        asyncio.to_thread(ctx.source.list_accounts),
        asyncio.to_thread(ctx.source.list_services, interval),
        asyncio.to_thread(ctx.source.list_regions),
    )
    descriptors = build_descriptors(
        [
            dimension_values(
                Dimension.LINKED_ACCOUNT,
                [a.id for a in accounts],
                labels=[a.name for a in accounts],
            ),
            dimension_values(Dimension.SERVICE, services),
            dimension_values(Dimension.REGION, regions),
        ],
        interval,
    )

    executor = BoundedExecutor(concurrency, name="change")
    results = await executor.run(descriptors, _series_query(ctx.source))

    records = derive_change_records(results, ctx.rate)
    ranked = rank(records, RankStrategy.BY_METRIC_DESC, limit=limit)
    logger.info(
        "report.change.done",
        extra={
            "accounts": len(accounts),
            "services": len(services),
            "regions": len(regions),
            "queries": len(descriptors),
            "rows": len(ranked),
        },
    )
    return ranked
