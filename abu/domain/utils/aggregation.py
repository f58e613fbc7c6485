"""
Reducers turning raw query results into derived report records.

Two modes are supported:

- series-delta: one cost series per dimension tuple, reduced to the change
  between its first and last observation;
- join: two independently fetched per-key collections (e.g. cost and
  forecast per account) merged on the key, a missing counterpart counting
  as zero.

Currency conversion is applied through the ``ConversionRate`` passed in by the
caller; reducers hold no conversion state of their own.
"""

import logging
from typing import Dict, Hashable, Iterator, List, Mapping, Sequence, Tuple, TypeVar

from ..models import (
    Account,
    Budget,
    BudgetRecord,
    CostPoint,
    Dimension,
    DerivedRecord,
    MonthlyBill,
    QueryResult,
)
from .units import ConversionRate

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


def series_endpoints(amounts: Sequence[float]) -> Tuple[float, float, float]:
    """
    Reduce a chronological series to ``(first, last, last - first)``.

    Parameters
    ----------
    amounts : Sequence[float]
        Observations ordered oldest first

    Returns
    -------
    tuple of (float, float, float)
        First amount, last amount and their difference. A single point yields
        a zero delta with both endpoints equal to it; an empty series yields
        zeros.

    Examples
    --------
    >>> series_endpoints([100.0, 120.0, 90.0])
    (100.0, 90.0, -10.0)
    >>> series_endpoints([50.0])
    (50.0, 50.0, 0.0)
    >>> series_endpoints([])
    (0.0, 0.0, 0.0)
    """
    if not amounts:
        return 0.0, 0.0, 0.0
    if len(amounts) == 1:
        return amounts[0], amounts[0], 0.0
    first, last = amounts[0], amounts[-1]
    return first, last, last - first


def _labels_for(result: QueryResult) -> Dict[str, str]:
    descriptor = result.descriptor
    labels: Dict[str, str] = {}
    account = descriptor.get(Dimension.LINKED_ACCOUNT)
    if account is not None:
        labels["name"] = account.display
        labels["id"] = account.value
    service = descriptor.get(Dimension.SERVICE)
    if service is not None:
        labels["service"] = service.value
    region = descriptor.get(Dimension.REGION)
    if region is not None:
        labels["region"] = region.value
    return labels


def derive_change_records(
    results: Sequence[QueryResult], rate: ConversionRate
) -> List[DerivedRecord]:
    """
    Build one change record per query result (series-delta mode).

    ``current`` is the last observation, ``reference`` the first, and
    ``delta`` their difference; each is converted with ``rate``.
    """
    records: List[DerivedRecord] = []
    for result in results:
        first, last, delta = series_endpoints([p.amount for p in result.points])
        records.append(
            DerivedRecord(
                key=result.descriptor.key,
                labels=_labels_for(result),
                current=rate.money(last),
                reference=rate.money(first),
                delta=rate.money(delta),
            )
        )
    logger.debug(
        "aggregation.change_records",
        extra={"results": len(results), "records": len(records)},
    )
    return records


def join_by_key(
    primary: Mapping[K, float],
    secondary: Mapping[K, float],
    default: float = 0.0,
) -> Iterator[Tuple[K, float, float]]:
    """
    Merge two per-key collections on their shared key.

    Yields ``(key, primary_value, secondary_value)`` for every key of
    ``primary``, in its iteration order. Keys missing from ``secondary`` get
    ``default``; keys only present in ``secondary`` are ignored.

    Examples
    --------
    >>> list(join_by_key({"A": 100.0, "B": 50.0}, {"A": 110.0}))
    [('A', 100.0, 110.0), ('B', 50.0, 0.0)]
    """
    for key, value in primary.items():
        yield key, value, secondary.get(key, default)


def derive_forecast_records(
    accounts: Sequence[Account],
    costs: Mapping[str, float],
    forecasts: Mapping[str, float],
    rate: ConversionRate,
) -> List[DerivedRecord]:
    """
    Join per-account cost with per-account forecast (join mode).

    ``delta`` is ``forecast - cost``. Accounts without a cost entry count as
    zero cost; a missing forecast (new or suspended account) counts as zero.
    """
    by_id = {account.id: account for account in accounts}
    primary = {account.id: costs.get(account.id, 0.0) for account in accounts}

    records: List[DerivedRecord] = []
    missing_forecasts = 0
    for account_id, cost, forecast in join_by_key(primary, forecasts):
        if account_id not in forecasts:
            missing_forecasts += 1
        account = by_id[account_id]
        records.append(
            DerivedRecord(
                key=(account_id,),
                labels={
                    "name": account.name,
                    "id": account_id,
                    "suspended": "YES" if account.suspended else "NO",
                },
                current=rate.money(cost),
                reference=rate.money(forecast),
                delta=rate.money(forecast - cost),
            )
        )

    if missing_forecasts:
        logger.info(
            "aggregation.forecast_missing",
            extra={"accounts": len(accounts), "missing": missing_forecasts},
        )
    return records


def derive_budget_records(
    budgets: Sequence[Budget], rate: ConversionRate
) -> List[BudgetRecord]:
    """Convert budgets and compute ``limit - forecast`` headroom."""
    return [
        BudgetRecord(
            name=budget.name,
            limit=rate.money(budget.limit),
            spend=rate.money(budget.actual_spend),
            forecast=rate.money(budget.forecasted_spend),
            delta=rate.money(budget.limit - budget.forecasted_spend),
        )
        for budget in budgets
    ]


def derive_monthly_bills(
    points: Sequence[CostPoint], rate: ConversionRate
) -> List[MonthlyBill]:
    """Return closed months, newest first, skipping estimated periods."""
    bills = [
        MonthlyBill(month=point.period.start, amount=rate.money(point.amount))
        for point in points
        if not point.estimated
    ]
    bills.sort(key=lambda bill: bill.month, reverse=True)
    return bills
