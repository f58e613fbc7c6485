"""Monthly bills and budgets reports."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import List, Optional

from ..context import RuntimeContext
from ..domain.models import BudgetRecord, MonthlyBill
from ..domain.utils.aggregation import derive_budget_records, derive_monthly_bills
from ..domain.utils.timestamps import lookback_interval


async def bills_report(
    ctx: RuntimeContext,
    *,
    months: Optional[int] = None,
    today: Optional[date] = None,
) -> List[MonthlyBill]:
    """Return organization totals for the last closed months, newest first."""
    if months is None:
        months = ctx.config.reports.bills_months
    interval = lookback_interval(months, today)
    points = await asyncio.to_thread(ctx.source.get_monthly_costs, interval)
    return derive_monthly_bills(points, ctx.rate)


async def budgets_report(ctx: RuntimeContext) -> List[BudgetRecord]:
    """Return the management account's budgets with forecast headroom."""
    account_id = await asyncio.to_thread(ctx.source.get_management_account_id)
    budgets = await asyncio.to_thread(ctx.source.list_budgets, account_id)
    return derive_budget_records(budgets, ctx.rate)
