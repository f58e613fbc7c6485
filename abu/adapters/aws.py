"""AWS cost source adapter.

This adapter implements :class:`~abu.adapters.CostSource` on top of boto3
clients for Cost Explorer, Organizations, EC2 and Budgets. It encapsulates
transport concerns (profile, region, timeouts, connection pool size) and
converts raw API payloads into validated domain models.

Notes
-----
- Clients are created once per adapter and shared by executor worker threads;
  boto3 clients are thread-safe, sessions are not, so the session is only
  used here during construction.
- Amounts are parsed strictly: an amount that is not a number raises
  :class:`AmountParseError`, which fails the batch it belongs to.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ..config.models import AwsConfig
from ..domain.models import (
    Account,
    Budget,
    CostPoint,
    Dimension,
    DimensionValue,
    QueryDescriptor,
    TimeInterval,
)
from ..domain.utils.timestamps import parse_aws_date
from ..domain.utils.validation import parse_amount

logger = logging.getLogger(__name__)

COST_METRIC = "UnblendedCost"
FORECAST_METRIC = "UNBLENDED_COST"
GRANULARITY = "MONTHLY"

# Forecast errors meaning "no forecast for this account" rather than failure
_MISSING_FORECAST_CODES = {"DataUnavailableException"}


def dimension_filter(values: List[DimensionValue]) -> Optional[Dict[str, Any]]:
    """Build a Cost Explorer filter matching every dimension value.

    Cost Explorer rejects an ``And`` with a single operand, so one value maps
    to a bare ``Dimensions`` expression.
    """
    expressions = [
        {"Dimensions": {"Key": v.dimension.value, "Values": [v.value]}}
        for v in values
    ]
    if not expressions:
        return None
    if len(expressions) == 1:
        return expressions[0]
    return {"And": expressions}


def _point_from_result(result_by_time: Dict[str, Any]) -> CostPoint:
    period = result_by_time["TimePeriod"]
    amount = result_by_time["Total"][COST_METRIC]["Amount"]
    return CostPoint(
        period=TimeInterval(
            start=parse_aws_date(period["Start"]), end=parse_aws_date(period["End"])
        ),
        amount=parse_amount(amount, context=f"{COST_METRIC} amount"),
        estimated=bool(result_by_time.get("Estimated", False)),
    )


def _optional_amount(spend: Optional[Dict[str, Any]], context: str) -> float:
    if not spend:
        return 0.0
    return parse_amount(spend.get("Amount"), context=context)


class AwsCostAdapter:
    """Adapter for the AWS billing APIs.

    Parameters
    ----------
    config: AwsConfig
        Region, profile and timeout settings.
    session: Optional[boto3.session.Session]
        Pre-built session (e.g. with explicit credentials); by default a
        session is created from ``config.profile`` and ``config.region``.

    Attributes
    ----------
    ce, organizations, ec2, budgets:
        boto3 clients, exposed so tests can attach a ``botocore`` Stubber.
    """

    def __init__(
        self, config: AwsConfig, session: Optional[boto3.session.Session] = None
    ) -> None:
        session = session or boto3.session.Session(
            profile_name=config.profile, region_name=config.region
        )
        client_config = Config(
            connect_timeout=config.connect_timeout_seconds,
            read_timeout=config.query_timeout_seconds,
            max_pool_connections=config.max_pool_connections,
        )
        self.ce = session.client("ce", config=client_config)
        self.organizations = session.client("organizations", config=client_config)
        self.ec2 = session.client("ec2", config=client_config)
        self.budgets = session.client("budgets", config=client_config)
        logger.info(
            "aws.adapter.init",
            extra={
                "region": config.region,
                "profile": config.profile,
                "read_timeout_seconds": config.query_timeout_seconds,
            },
        )

    # ---------------- Query service ----------------

    def _cost_and_usage(self, **request: Any) -> List[Dict[str, Any]]:
        """Call GetCostAndUsage, following NextPageToken, and return all results."""
        results: List[Dict[str, Any]] = []
        token: Optional[str] = None
        while True:
            if token:
                request["NextPageToken"] = token
            response = self.ce.get_cost_and_usage(**request)
            results.extend(response.get("ResultsByTime", []))
            token = response.get("NextPageToken")
            if not token:
                return results

    def get_cost_series(self, descriptor: QueryDescriptor) -> List[CostPoint]:
        """Return the monthly cost series for one descriptor, oldest first."""
        request: Dict[str, Any] = {
            "TimePeriod": descriptor.interval.as_aws(),
            "Granularity": GRANULARITY,
            "Metrics": [COST_METRIC],
        }
        expression = dimension_filter(list(descriptor.values))
        if expression is not None:
            request["Filter"] = expression

        logger.debug("aws.ce.cost_series", extra={"descriptor": str(descriptor)})
        points = [_point_from_result(r) for r in self._cost_and_usage(**request)]
        points.sort(key=lambda p: p.period.start)
        return points

    def get_account_cost(self, account_id: str, interval: TimeInterval) -> float:
        """Return the cost of ``account_id`` over ``interval``; 0.0 without data."""
        account = DimensionValue(dimension=Dimension.LINKED_ACCOUNT, value=account_id)
        results = self._cost_and_usage(
            TimePeriod=interval.as_aws(),
            Granularity=GRANULARITY,
            Metrics=[COST_METRIC],
            Filter=dimension_filter([account]),
            GroupBy=[{"Type": "DIMENSION", "Key": Dimension.LINKED_ACCOUNT.value}],
        )
        total = 0.0
        for result_by_time in results:
            for group in result_by_time.get("Groups", []):
                if group.get("Keys", [None])[0] != account_id:
                    continue
                total += parse_amount(
                    group["Metrics"][COST_METRIC]["Amount"],
                    context=f"{COST_METRIC} amount for {account_id}",
                )
        return total

    def get_forecast(self, account_id: str, interval: TimeInterval) -> Optional[float]:
        """Return the mean forecast for ``account_id``, or None when AWS has none."""
        account = DimensionValue(dimension=Dimension.LINKED_ACCOUNT, value=account_id)
        try:
            response = self.ce.get_cost_forecast(
                TimePeriod=interval.as_aws(),
                Metric=FORECAST_METRIC,
                Granularity=GRANULARITY,
                Filter=dimension_filter([account]),
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code not in _MISSING_FORECAST_CODES:
                raise
            logger.info(
                "aws.ce.forecast_unavailable",
                extra={"account_id": account_id, "code": code},
            )
            return None

        forecasts = response.get("ForecastResultsByTime", [])
        if not forecasts:
            return None
        return parse_amount(
            forecasts[0].get("MeanValue"), context=f"forecast for {account_id}"
        )

    def get_monthly_costs(self, interval: TimeInterval) -> List[CostPoint]:
        """Return organization-wide monthly totals, oldest first."""
        results = self._cost_and_usage(
            TimePeriod=interval.as_aws(),
            Granularity=GRANULARITY,
            Metrics=[COST_METRIC],
        )
        return [_point_from_result(r) for r in results]

    # ---------------- Dimension catalog ----------------

    def list_accounts(self) -> List[Account]:
        """List all member accounts of the organization."""
        paginator = self.organizations.get_paginator("list_accounts")
        accounts: List[Account] = []
        for page in paginator.paginate():
            for raw in page.get("Accounts", []):
                accounts.append(
                    Account(
                        id=raw["Id"],
                        name=raw.get("Name", raw["Id"]),
                        status=raw.get("Status", "ACTIVE"),
                    )
                )
        logger.info("aws.organizations.accounts", extra={"count": len(accounts)})
        return accounts

    def list_services(self, interval: TimeInterval) -> List[str]:
        """List services with cost data in ``interval``."""
        services: List[str] = []
        token: Optional[str] = None
        while True:
            request: Dict[str, Any] = {
                "TimePeriod": interval.as_aws(),
                "Dimension": Dimension.SERVICE.value,
            }
            if token:
                request["NextPageToken"] = token
            response = self.ce.get_dimension_values(**request)
            services.extend(v["Value"] for v in response.get("DimensionValues", []))
            token = response.get("NextPageToken")
            if not token:
                break
        logger.info("aws.ce.services", extra={"count": len(services)})
        return services

    def list_regions(self) -> List[str]:
        """List regions enabled for the account."""
        response = self.ec2.describe_regions()
        return [region["RegionName"] for region in response.get("Regions", [])]

    # ---------------- Budgets ----------------

    def get_management_account_id(self) -> str:
        response = self.organizations.describe_organization()
        return response["Organization"]["MasterAccountId"]

    def list_budgets(self, account_id: str) -> List[Budget]:
        """List budgets of ``account_id`` with their calculated spend."""
        paginator = self.budgets.get_paginator("describe_budgets")
        budgets: List[Budget] = []
        for page in paginator.paginate(AccountId=account_id):
            for raw in page.get("Budgets", []):
                name = raw["BudgetName"]
                spend = raw.get("CalculatedSpend", {})
                budgets.append(
                    Budget(
                        name=name,
                        limit=_optional_amount(
                            raw.get("BudgetLimit"), f"limit of {name}"
                        ),
                        actual_spend=_optional_amount(
                            spend.get("ActualSpend"), f"spend of {name}"
                        ),
                        forecasted_spend=_optional_amount(
                            spend.get("ForecastedSpend"), f"forecast of {name}"
                        ),
                    )
                )
        return budgets
