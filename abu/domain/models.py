"""Canonical domain data model for cost queries and reports.

These Pydantic models describe a unit of query work (``QueryDescriptor``),
what the query service returns for it (``QueryResult``), and the rows the
reducers produce for ranking (``DerivedRecord`` and the auxiliary report
records). Descriptors and intervals are frozen so they can be used as
dictionary keys and compared by value.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Dimension(str, Enum):
    """Cost Explorer dimensions used to slice queries."""

    LINKED_ACCOUNT = "LINKED_ACCOUNT"
    SERVICE = "SERVICE"
    REGION = "REGION"


class TimeInterval(BaseModel):
    """Half-open date interval ``[start, end)``.

    Attributes
    ----------
    start: date
        First day included in the interval.
    end: date
        First day after the interval; must be later than ``start``.
    """

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> "TimeInterval":
        if self.end <= self.start:
            raise ValueError(
                f"interval end {self.end.isoformat()} must be after "
                f"start {self.start.isoformat()}"
            )
        return self

    def as_aws(self) -> Dict[str, str]:
        """Return the ``TimePeriod`` payload expected by Cost Explorer."""
        return {"Start": self.start.isoformat(), "End": self.end.isoformat()}


class DimensionValue(BaseModel):
    """One value along a query dimension.

    Attributes
    ----------
    dimension: Dimension
        Axis the value belongs to.
    value: str
        Filter value sent to the query service (account id, service name,
        region name).
    label: Optional[str]
        Human-readable name, used for accounts whose filter value is an id.
    """

    model_config = ConfigDict(frozen=True)

    dimension: Dimension
    value: str
    label: Optional[str] = None

    @property
    def display(self) -> str:
        return self.label or self.value


class QueryDescriptor(BaseModel):
    """Immutable description of one independent query.

    Identity is the tuple of dimension values plus the interval; two
    descriptors built from the same inputs compare and hash equal.
    """

    model_config = ConfigDict(frozen=True)

    values: Tuple[DimensionValue, ...]
    interval: TimeInterval

    @property
    def key(self) -> Tuple[str, ...]:
        """Identifying dimension values, in dimension order."""
        return tuple(v.value for v in self.values)

    def get(self, dimension: Dimension) -> Optional[DimensionValue]:
        """Return the value for ``dimension`` or None if not constrained."""
        for value in self.values:
            if value.dimension == dimension:
                return value
        return None

    def __str__(self) -> str:
        return "/".join(self.key)


class CostPoint(BaseModel):
    """Cost observed over one reporting period, in the base currency."""

    period: TimeInterval
    amount: float
    estimated: bool = False


class QueryResult(BaseModel):
    """Successful outcome of executing a :class:`QueryDescriptor`.

    Points are ordered chronologically as returned by the query service.
    Failed queries never produce a ``QueryResult``; they are reported as
    failures by the result collector and fail the whole batch.
    """

    descriptor: QueryDescriptor
    points: List[CostPoint] = Field(default_factory=list)


class Money(BaseModel):
    """Amount in the base currency alongside its converted value."""

    model_config = ConfigDict(frozen=True)

    base: float
    converted: float


class DerivedRecord(BaseModel):
    """One row of a ranked or listed cost report.

    Attributes
    ----------
    key: Tuple[str, ...]
        Identifying dimension values (e.g. account id, service, region).
    labels: Dict[str, str]
        Display columns keyed by name (``name``, ``id``, ``service``,
        ``region``, ``suspended``).
    current: Money
        Latest observed cost.
    reference: Money
        Earliest observed cost (change report) or forecast (accounts report).
    delta: Money
        Signed difference between the two observations.
    """

    key: Tuple[str, ...]
    labels: Dict[str, str] = Field(default_factory=dict)
    current: Money
    reference: Money
    delta: Money

    @property
    def name(self) -> str:
        return self.labels.get("name", "/".join(self.key))


class Account(BaseModel):
    """Organization member account as returned by the dimension catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    status: str = "ACTIVE"

    @property
    def suspended(self) -> bool:
        return self.status == "SUSPENDED"


class Budget(BaseModel):
    """Budget definition with its calculated spend, in the base currency."""

    name: str
    limit: float
    actual_spend: float = 0.0
    forecasted_spend: float = 0.0


class BudgetRecord(BaseModel):
    """Budget row with converted amounts and remaining headroom.

    ``delta`` is ``limit - forecast``: positive when the forecast stays within
    the budget.
    """

    name: str
    limit: Money
    spend: Money
    forecast: Money
    delta: Money


class MonthlyBill(BaseModel):
    """Total cost for one closed billing month."""

    month: date
    amount: Money
