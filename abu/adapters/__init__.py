"""Cost source adapter interface."""

from __future__ import annotations

from typing import List, Optional, Protocol

from ..domain.models import (
    Account,
    Budget,
    CostPoint,
    QueryDescriptor,
    TimeInterval,
)


class CostSource(Protocol):
    """Protocol for cost backends.

    Implementations translate report queries into calls against the remote
    billing APIs and return validated domain models. All methods are
    blocking; report flows run them in executor worker threads.
    """

    # ---------------- Query service ----------------
    def get_cost_series(self, descriptor: QueryDescriptor) -> List[CostPoint]:
        """Return the monthly cost series matching every dimension value."""
        raise NotImplementedError

    def get_account_cost(self, account_id: str, interval: TimeInterval) -> float:
        """Return the total cost of one account over ``interval`` (0 if none)."""
        raise NotImplementedError

    def get_forecast(self, account_id: str, interval: TimeInterval) -> Optional[float]:
        """Return the mean cost forecast for one account, None if unavailable."""
        raise NotImplementedError

    def get_monthly_costs(self, interval: TimeInterval) -> List[CostPoint]:
        """Return organization-wide monthly totals over ``interval``."""
        raise NotImplementedError

    # ---------------- Dimension catalog ----------------
    def list_accounts(self) -> List[Account]:
        """List member accounts of the organization."""
        raise NotImplementedError

    def list_services(self, interval: TimeInterval) -> List[str]:
        """List service names with cost data in ``interval``."""
        raise NotImplementedError

    def list_regions(self) -> List[str]:
        """List region names."""
        raise NotImplementedError

    # ---------------- Budgets ----------------
    def get_management_account_id(self) -> str:
        """Return the organization's management (payer) account id."""
        raise NotImplementedError

    def list_budgets(self, account_id: str) -> List[Budget]:
        """List budgets defined in ``account_id``."""
        raise NotImplementedError
