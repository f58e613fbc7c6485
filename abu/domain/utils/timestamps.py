"""
Date window utilities for monthly cost queries.

Cost Explorer works with half-open ``[start, end)`` date intervals and monthly
granularity. These helpers build the windows the reports query: whole closed
months counted back from the current month, and the one-day window used for
forecasts.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional

from ..models import TimeInterval

AWS_DATE_FORMAT = "%Y-%m-%d"


def month_start(day: date) -> date:
    """
    Return the first day of the month containing ``day``.

    Examples
    --------
    >>> month_start(date(2024, 5, 20))
    datetime.date(2024, 5, 1)
    """
    return day.replace(day=1)


def add_months(day: date, months: int) -> date:
    """
    Shift the first day of ``day``'s month by ``months`` (may be negative).

    The result is always a first-of-month date, so month-length differences
    never matter.

    Examples
    --------
    >>> add_months(date(2024, 1, 31), -1)
    datetime.date(2023, 12, 1)
    >>> add_months(date(2024, 11, 5), 3)
    datetime.date(2025, 2, 1)
    """
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    return date(year, month + 1, 1)


def lookback_interval(months: int, today: Optional[date] = None) -> TimeInterval:
    """
    Return the closed months window ending at the start of the current month.

    Parameters
    ----------
    months : int
        Number of whole months to cover (>= 1)
    today : date, optional
        Reference day, defaults to the current local date

    Examples
    --------
    >>> lookback_interval(3, date(2024, 5, 20))
    TimeInterval(start=datetime.date(2024, 2, 1), end=datetime.date(2024, 5, 1))
    """
    if months < 1:
        raise ValueError(f"lookback must cover at least one month, got {months}")
    today = today or date.today()
    end = month_start(today)
    return TimeInterval(start=add_months(end, -months), end=end)


def forecast_interval(today: Optional[date] = None) -> TimeInterval:
    """Return the one-day window starting today used for cost forecasts."""
    today = today or date.today()
    return TimeInterval(start=today, end=today + timedelta(days=1))


def parse_aws_date(value: str) -> date:
    """
    Parse a ``YYYY-MM-DD`` date as returned by AWS APIs.

    Raises
    ------
    ValueError
        If the value does not match the format.
    """
    return datetime.strptime(value, AWS_DATE_FORMAT).date()


def month_name(day: date) -> str:
    """
    Return the English month name for ``day``.

    Examples
    --------
    >>> month_name(date(2024, 5, 1))
    'May'
    """
    return calendar.month_name[day.month]
