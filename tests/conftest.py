"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like ``import abu``
resolve correctly regardless of the working directory pytest chooses, and
provides an in-memory cost source for report flow tests.
"""

from __future__ import annotations

import sys
import threading
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()

import pytest  # noqa: E402

from abu.config.models import AppConfig  # noqa: E402
from abu.context import RuntimeContext  # noqa: E402
from abu.domain.models import (  # noqa: E402
    Account,
    Budget,
    CostPoint,
    QueryDescriptor,
    TimeInterval,
)
from abu.domain.utils.units import ConversionRate  # noqa: E402


def month_points(amounts: List[float], start: date = date(2024, 2, 1)) -> List[CostPoint]:
    """Build consecutive monthly cost points starting at ``start``."""
    points = []
    year, month = start.year, start.month
    for amount in amounts:
        begin = date(year, month, 1)
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
        points.append(
            CostPoint(
                period=TimeInterval(start=begin, end=date(year, month, 1)),
                amount=amount,
            )
        )
    return points


class FakeCostSource:
    """In-memory cost source.

    ``series`` maps descriptor keys (account id, service, region) to monthly
    amounts; ``failures`` maps keys to exceptions raised instead. Calls are
    recorded so tests can assert which queries ran.
    """

    def __init__(
        self,
        accounts: Optional[List[Account]] = None,
        services: Optional[List[str]] = None,
        regions: Optional[List[str]] = None,
        series: Optional[Dict[Tuple[str, ...], List[float]]] = None,
        costs: Optional[Dict[str, float]] = None,
        forecasts: Optional[Dict[str, float]] = None,
        failures: Optional[Dict[Tuple[str, ...], Exception]] = None,
        monthly: Optional[List[CostPoint]] = None,
        budgets: Optional[List[Budget]] = None,
        on_query: Optional[Callable[[QueryDescriptor], None]] = None,
    ) -> None:
        self.accounts = accounts or []
        self.services = services or []
        self.regions = regions or []
        self.series = series or {}
        self.costs = costs or {}
        self.forecasts = forecasts or {}
        self.failures = failures or {}
        self.monthly = monthly or []
        self.budgets = budgets or []
        self.on_query = on_query
        self.calls: List[Tuple[str, ...]] = []
        self._lock = threading.Lock()

    def _record(self, *call: str) -> None:
        with self._lock:
            self.calls.append(call)

    def get_cost_series(self, descriptor: QueryDescriptor) -> List[CostPoint]:
        self._record("series", *descriptor.key)
        if self.on_query is not None:
            self.on_query(descriptor)
        if descriptor.key in self.failures:
            raise self.failures[descriptor.key]
        return month_points(self.series.get(descriptor.key, []))

    def get_account_cost(self, account_id: str, interval: TimeInterval) -> float:
        self._record("cost", account_id)
        if (account_id, "cost") in self.failures:
            raise self.failures[(account_id, "cost")]
        return self.costs.get(account_id, 0.0)

    def get_forecast(self, account_id: str, interval: TimeInterval) -> Optional[float]:
        self._record("forecast", account_id)
        if (account_id, "forecast") in self.failures:
            raise self.failures[(account_id, "forecast")]
        return self.forecasts.get(account_id)

    def get_monthly_costs(self, interval: TimeInterval) -> List[CostPoint]:
        self._record("monthly")
        return list(self.monthly)

    def list_accounts(self) -> List[Account]:
        return list(self.accounts)

    def list_services(self, interval: TimeInterval) -> List[str]:
        return list(self.services)

    def list_regions(self) -> List[str]:
        return list(self.regions)

    def get_management_account_id(self) -> str:
        return "000000000000"

    def list_budgets(self, account_id: str) -> List[Budget]:
        self._record("budgets", account_id)
        return list(self.budgets)


@pytest.fixture
def rate() -> ConversionRate:
    return ConversionRate.fallback(0.9)


@pytest.fixture
def make_context(rate: ConversionRate) -> Callable[..., RuntimeContext]:
    def _make(source: FakeCostSource, **kwargs) -> RuntimeContext:
        config = kwargs.pop("config", None) or AppConfig()
        return RuntimeContext(config=config, source=source, rate=rate, **kwargs)

    return _make
