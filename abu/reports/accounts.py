"""Per-account cost vs. forecast report.

Last month's cost and the current forecast are fetched independently for
every account, one task per (account, kind), then joined on the account id.
The task count is bounded by the size of the organization, so the executor
runs them all at once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..adapters import CostSource
from ..context import RuntimeContext
from ..domain.models import Account, DerivedRecord, TimeInterval
from ..domain.utils.aggregation import derive_forecast_records
from ..domain.utils.ranking import RankStrategy, rank
from ..domain.utils.timestamps import forecast_interval, lookback_interval
from ..utils.bounded_executor import BoundedExecutor

logger = logging.getLogger(__name__)


class AccountQueryKind(Enum):
    COST = "cost"
    FORECAST = "forecast"


@dataclass(frozen=True)
class AccountQuery:
    """One per-account query of the accounts report."""

    kind: AccountQueryKind
    account: Account

    def __str__(self) -> str:
        return f"{self.account.id}/{self.kind.value}"


def _account_query(
    source: CostSource, cost_window: TimeInterval, forecast_window: TimeInterval
) -> Callable[[AccountQuery], Tuple[AccountQuery, Optional[float]]]:
    def execute(query: AccountQuery) -> Tuple[AccountQuery, Optional[float]]:
        if query.kind is AccountQueryKind.COST:
            return query, source.get_account_cost(query.account.id, cost_window)
        return query, source.get_forecast(query.account.id, forecast_window)

    return execute


async def accounts_report(
    ctx: RuntimeContext, *, today: Optional[date] = None
) -> List[DerivedRecord]:
    """Return last month's cost and forecast per account, sorted by name.

    Raises
    ------
    BatchFailedError
        If any cost or forecast query failed (a forecast AWS has no data for
        is not a failure).
    """
    accounts = await asyncio.to_thread(ctx.source.list_accounts)
    cost_window = lookback_interval(1, today)
    forecast_window = forecast_interval(today)

    queries = [
        AccountQuery(kind=kind, account=account)
        for account in accounts
        for kind in AccountQueryKind
    ]
    executor = BoundedExecutor(None, name="accounts")
    outcomes = await executor.run(
        queries, _account_query(ctx.source, cost_window, forecast_window)
    )

    costs = {
        query.account.id: value or 0.0
        for query, value in outcomes
        if query.kind is AccountQueryKind.COST
    }
    forecasts = {
        query.account.id: value
        for query, value in outcomes
        if query.kind is AccountQueryKind.FORECAST and value is not None
    }

    records = derive_forecast_records(accounts, costs, forecasts, ctx.rate)
    logger.info(
        "report.accounts.done",
        extra={"accounts": len(accounts), "forecasts": len(forecasts)},
    )
    return rank(records, RankStrategy.BY_NAME_ASC)
