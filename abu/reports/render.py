"""Plain-text and JSON rendering of report records."""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from pydantic import BaseModel
from tabulate import tabulate

from ..domain.models import Account, BudgetRecord, DerivedRecord, Money, MonthlyBill
from ..domain.utils.timestamps import month_name
from ..domain.utils.units import ConversionRate, CurrencyUnit

NAME_TITLE = "NAME"
ID_TITLE = "ID"
MONTH_TITLE = "MONTH"
SUSPENDED_TITLE = "SUSP."
SERVICE_TITLE = "SERVICE"
REGION_TITLE = "REGION"
DELTA = "Δ"


def format_money(value: float, unit: CurrencyUnit) -> str:
    """Format ``value`` as ``$1,234.56`` (``-$1,234.56`` when negative)."""
    sign = "-" if value < 0 else ""
    return f"{sign}{unit.value}{abs(value):,.2f}"


def render_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    align: Optional[Sequence[str]] = None,
) -> str:
    """Render pre-formatted cells as a plain column-aligned table.

    ``align`` gives one of ``"left"`` or ``"right"`` per column; text
    columns default to left.
    """
    return tabulate(
        rows,
        headers=list(headers),
        tablefmt="plain",
        disable_numparse=True,
        colalign=list(align) if align is not None else None,
    )


def render_json(items: Sequence[BaseModel]) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items], indent=2)


class MoneyColumns:
    """Titles, cells and alignment for amounts shown in both currencies."""

    def __init__(self, rate: ConversionRate) -> None:
        self.rate = rate

    def titles(self, label: str) -> List[str]:
        return [
            f"{label} ({self.rate.base.value})",
            f"{label} (~{self.rate.target.value})",
        ]

    def cells(self, money: Money) -> List[str]:
        return [
            format_money(money.base, self.rate.base),
            format_money(money.converted, self.rate.target),
        ]

    @staticmethod
    def align() -> List[str]:
        return ["right", "right"]


def accounts_table(records: Sequence[DerivedRecord], rate: ConversionRate) -> str:
    money = MoneyColumns(rate)
    headers = [
        NAME_TITLE,
        ID_TITLE,
        *money.titles("COST"),
        *money.titles("FORECAST"),
        *money.titles(f"COST / FORECAST {DELTA}"),
        SUSPENDED_TITLE,
    ]
    align = ["left", "left", *money.align() * 3, "left"]
    rows = [
        [
            r.labels.get("name", ""),
            r.labels.get("id", ""),
            *money.cells(r.current),
            *money.cells(r.reference),
            *money.cells(r.delta),
            r.labels.get("suspended", "NO"),
        ]
        for r in records
    ]
    return render_table(headers, rows, align)


def change_table(records: Sequence[DerivedRecord], rate: ConversionRate) -> str:
    money = MoneyColumns(rate)
    headers = [
        NAME_TITLE,
        ID_TITLE,
        SERVICE_TITLE,
        REGION_TITLE,
        *money.titles("COST"),
        *money.titles(DELTA),
    ]
    align = ["left"] * 4 + money.align() * 2
    rows = [
        [
            r.labels.get("name", ""),
            r.labels.get("id", ""),
            r.labels.get("service", ""),
            r.labels.get("region", ""),
            *money.cells(r.current),
            *money.cells(r.delta),
        ]
        for r in records
    ]
    return render_table(headers, rows, align)


def bills_table(bills: Sequence[MonthlyBill], rate: ConversionRate) -> str:
    money = MoneyColumns(rate)
    headers = [MONTH_TITLE, *money.titles("COST")]
    rows = [[month_name(b.month), *money.cells(b.amount)] for b in bills]
    return render_table(headers, rows, ["left", *money.align()])


def budgets_table(records: Sequence[BudgetRecord], rate: ConversionRate) -> str:
    money = MoneyColumns(rate)
    headers = [
        NAME_TITLE,
        *money.titles("BUDGET"),
        *money.titles("COST"),
        *money.titles("FORECAST"),
        *money.titles(f"BUDGET / FORECAST {DELTA}"),
    ]
    rows = [
        [
            r.name,
            *money.cells(r.limit),
            *money.cells(r.spend),
            *money.cells(r.forecast),
            *money.cells(r.delta),
        ]
        for r in records
    ]
    return render_table(headers, rows, ["left", *money.align() * 4])


def accounts_list_table(accounts: Sequence[Account]) -> str:
    headers = [NAME_TITLE, ID_TITLE, SUSPENDED_TITLE]
    rows = [[a.name, a.id, "YES" if a.suspended else "NO"] for a in accounts]
    return render_table(headers, rows)
