"""
Tests for the AWS cost source adapter using botocore's Stubber.
"""

from datetime import date

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from abu.adapters.aws import AwsCostAdapter, dimension_filter
from abu.config.models import AwsConfig
from abu.domain.models import Dimension, TimeInterval
from abu.domain.query_builder import build_descriptors, dimension_values
from abu.domain.utils.validation import AmountParseError

INTERVAL = TimeInterval(start=date(2024, 2, 1), end=date(2024, 4, 1))
ACCOUNT_ID = "111122223333"


@pytest.fixture
def adapter() -> AwsCostAdapter:
    session = boto3.session.Session(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
    )
    return AwsCostAdapter(AwsConfig(region="us-east-1"), session=session)


def _month(start: str, end: str, amount: str, estimated: bool = False):
    return {
        "TimePeriod": {"Start": start, "End": end},
        "Total": {"UnblendedCost": {"Amount": amount, "Unit": "USD"}},
        "Groups": [],
        "Estimated": estimated,
    }


def _descriptor():
    return build_descriptors(
        [
            dimension_values(Dimension.LINKED_ACCOUNT, [ACCOUNT_ID], ["prod"]),
            dimension_values(Dimension.SERVICE, ["Amazon EC2"]),
        ],
        INTERVAL,
    )[0]


def test_dimension_filter_shapes():
    """No values, one value and several values map to distinct expressions."""
    account, service = _descriptor().values

    assert dimension_filter([]) is None
    assert dimension_filter([account]) == {
        "Dimensions": {"Key": "LINKED_ACCOUNT", "Values": [ACCOUNT_ID]}
    }
    assert dimension_filter([account, service]) == {
        "And": [
            {"Dimensions": {"Key": "LINKED_ACCOUNT", "Values": [ACCOUNT_ID]}},
            {"Dimensions": {"Key": "SERVICE", "Values": ["Amazon EC2"]}},
        ]
    }


def test_get_cost_series_follows_pages(adapter):
    """Pages are concatenated and points sorted oldest first."""
    descriptor = _descriptor()
    base_request = {
        "TimePeriod": {"Start": "2024-02-01", "End": "2024-04-01"},
        "Granularity": "MONTHLY",
        "Metrics": ["UnblendedCost"],
        "Filter": dimension_filter(list(descriptor.values)),
    }

    with Stubber(adapter.ce) as stubber:
        stubber.add_response(
            "get_cost_and_usage",
            {
                "ResultsByTime": [_month("2024-03-01", "2024-04-01", "120.5")],
                "NextPageToken": "page-2",
            },
            base_request,
        )
        stubber.add_response(
            "get_cost_and_usage",
            {"ResultsByTime": [_month("2024-02-01", "2024-03-01", "100")]},
            {**base_request, "NextPageToken": "page-2"},
        )

        points = adapter.get_cost_series(descriptor)
        stubber.assert_no_pending_responses()

    assert [p.period.start for p in points] == [date(2024, 2, 1), date(2024, 3, 1)]
    assert [p.amount for p in points] == [100.0, 120.5]


def test_get_cost_series_rejects_bad_amount(adapter):
    with Stubber(adapter.ce) as stubber:
        stubber.add_response(
            "get_cost_and_usage",
            {"ResultsByTime": [_month("2024-02-01", "2024-03-01", "n/a")]},
        )

        with pytest.raises(AmountParseError):
            adapter.get_cost_series(_descriptor())


def test_get_cost_series_propagates_client_errors(adapter):
    with Stubber(adapter.ce) as stubber:
        stubber.add_client_error(
            "get_cost_and_usage",
            service_error_code="ThrottlingException",
            service_message="Rate exceeded",
            http_status_code=400,
        )

        with pytest.raises(ClientError):
            adapter.get_cost_series(_descriptor())


def test_get_account_cost_sums_matching_groups(adapter):
    result = _month("2024-02-01", "2024-03-01", "0")
    result["Total"] = {}
    result["Groups"] = [
        {
            "Keys": [ACCOUNT_ID],
            "Metrics": {"UnblendedCost": {"Amount": "42.5", "Unit": "USD"}},
        },
        {
            "Keys": ["999988887777"],
            "Metrics": {"UnblendedCost": {"Amount": "1000", "Unit": "USD"}},
        },
    ]

    with Stubber(adapter.ce) as stubber:
        stubber.add_response("get_cost_and_usage", {"ResultsByTime": [result]})

        assert adapter.get_account_cost(ACCOUNT_ID, INTERVAL) == 42.5


def test_get_forecast(adapter):
    with Stubber(adapter.ce) as stubber:
        stubber.add_response(
            "get_cost_forecast",
            {
                "Total": {"Amount": "310.0", "Unit": "USD"},
                "ForecastResultsByTime": [
                    {
                        "TimePeriod": {"Start": "2024-04-01", "End": "2024-04-02"},
                        "MeanValue": "310.0",
                    }
                ],
            },
        )

        assert adapter.get_forecast(ACCOUNT_ID, INTERVAL) == 310.0


def test_get_forecast_without_data_returns_none(adapter):
    """An account AWS has no forecast data for is not a failure."""
    with Stubber(adapter.ce) as stubber:
        stubber.add_client_error(
            "get_cost_forecast",
            service_error_code="DataUnavailableException",
            service_message="Insufficient amount of historical data",
        )

        assert adapter.get_forecast(ACCOUNT_ID, INTERVAL) is None


def test_get_forecast_other_errors_propagate(adapter):
    with Stubber(adapter.ce) as stubber:
        stubber.add_client_error(
            "get_cost_forecast",
            service_error_code="AccessDeniedException",
            service_message="denied",
            http_status_code=403,
        )

        with pytest.raises(ClientError):
            adapter.get_forecast(ACCOUNT_ID, INTERVAL)


def test_get_monthly_costs_keeps_estimated_flag(adapter):
    with Stubber(adapter.ce) as stubber:
        stubber.add_response(
            "get_cost_and_usage",
            {
                "ResultsByTime": [
                    _month("2024-02-01", "2024-03-01", "10"),
                    _month("2024-03-01", "2024-04-01", "20", estimated=True),
                ]
            },
            {
                "TimePeriod": {"Start": "2024-02-01", "End": "2024-04-01"},
                "Granularity": "MONTHLY",
                "Metrics": ["UnblendedCost"],
            },
        )

        points = adapter.get_monthly_costs(INTERVAL)

    assert [p.estimated for p in points] == [False, True]


def test_list_accounts(adapter):
    with Stubber(adapter.organizations) as stubber:
        stubber.add_response(
            "list_accounts",
            {
                "Accounts": [
                    {"Id": ACCOUNT_ID, "Name": "prod", "Status": "ACTIVE"},
                    {"Id": "999988887777", "Name": "old", "Status": "SUSPENDED"},
                ]
            },
        )

        accounts = adapter.list_accounts()

    assert [a.id for a in accounts] == [ACCOUNT_ID, "999988887777"]
    assert not accounts[0].suspended
    assert accounts[1].suspended


def test_list_services_follows_pages(adapter):
    """Service names from every page are returned in order."""
    request = {
        "TimePeriod": {"Start": "2024-02-01", "End": "2024-04-01"},
        "Dimension": "SERVICE",
    }
    with Stubber(adapter.ce) as stubber:
        stubber.add_response(
            "get_dimension_values",
            {
                "DimensionValues": [{"Value": "Amazon EC2"}],
                "NextPageToken": "next",
                "ReturnSize": 1,
                "TotalSize": 2,
            },
            request,
        )
        stubber.add_response(
            "get_dimension_values",
            {
                "DimensionValues": [{"Value": "Amazon S3"}],
                "ReturnSize": 1,
                "TotalSize": 2,
            },
            {**request, "NextPageToken": "next"},
        )

        services = adapter.list_services(INTERVAL)
        stubber.assert_no_pending_responses()

    assert services == ["Amazon EC2", "Amazon S3"]


def test_list_regions(adapter):
    with Stubber(adapter.ec2) as stubber:
        stubber.add_response(
            "describe_regions",
            {"Regions": [{"RegionName": "eu-west-1"}, {"RegionName": "us-east-1"}]},
        )

        assert adapter.list_regions() == ["eu-west-1", "us-east-1"]


def test_budgets(adapter):
    with Stubber(adapter.organizations) as orgs:
        orgs.add_response(
            "describe_organization",
            {"Organization": {"Id": "o-abc1234567", "MasterAccountId": ACCOUNT_ID}},
        )
        assert adapter.get_management_account_id() == ACCOUNT_ID

    with Stubber(adapter.budgets) as stubber:
        stubber.add_response(
            "describe_budgets",
            {
                "Budgets": [
                    {
                        "BudgetName": "monthly",
                        "BudgetLimit": {"Amount": "1000", "Unit": "USD"},
                        "TimeUnit": "MONTHLY",
                        "BudgetType": "COST",
                        "CalculatedSpend": {
                            "ActualSpend": {"Amount": "400.5", "Unit": "USD"},
                            "ForecastedSpend": {"Amount": "900", "Unit": "USD"},
                        },
                    },
                    {
                        "BudgetName": "empty",
                        "TimeUnit": "MONTHLY",
                        "BudgetType": "COST",
                    },
                ]
            },
            {"AccountId": ACCOUNT_ID},
        )

        budgets = adapter.list_budgets(ACCOUNT_ID)

    monthly, empty = budgets
    assert monthly.limit == 1000.0
    assert monthly.actual_spend == 400.5
    assert monthly.forecasted_spend == 900.0
    assert empty.limit == 0.0
    assert empty.forecasted_spend == 0.0
