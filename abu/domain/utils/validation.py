"""
Validation utilities for monetary amounts.

Cost APIs report amounts as decimal strings ("123.4567890123"). These helpers
turn them into finite floats and reject anything else loudly: an amount that
cannot be interpreted must fail the report rather than be silently zeroed.
"""

import logging
import math
from typing import Any, Optional

logger = logging.getLogger(__name__)


class AmountParseError(ValueError):
    """Raised when a monetary amount cannot be interpreted as a number."""

    def __init__(self, value: Any, context: str = "amount") -> None:
        super().__init__(f"Cannot parse {context} {value!r} as a number")
        self.value = value
        self.context = context


def is_valid_float(value: float) -> bool:
    """
    Check if a float value is finite.

    Examples
    --------
    >>> is_valid_float(42.5)
    True
    >>> is_valid_float(float('inf'))
    False
    >>> is_valid_float(float('nan'))
    False
    """
    return math.isfinite(value)


def parse_amount(value: Optional[Any], context: str = "amount") -> float:
    """
    Parse a monetary amount into a finite float.

    Parameters
    ----------
    value : str, int, float, or None
        Raw amount as returned by the remote service
    context : str, default="amount"
        Description of the field, used in error messages and logs

    Returns
    -------
    float
        Parsed amount

    Raises
    ------
    AmountParseError
        If the value is missing, empty, non-numeric, or not finite

    Examples
    --------
    >>> parse_amount("12.34")
    12.34
    >>> parse_amount(" 0.0000001 ")
    1e-07
    >>> parse_amount("n/a")
    Traceback (most recent call last):
    ...
    abu.domain.utils.validation.AmountParseError: Cannot parse amount 'n/a' as a number
    """
    if value is None or isinstance(value, bool):
        raise AmountParseError(value, context)

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise AmountParseError(value, context)
        try:
            parsed = float(text)
        except ValueError as exc:
            raise AmountParseError(value, context) from exc
    elif isinstance(value, (int, float)):
        parsed = float(value)
    else:
        raise AmountParseError(value, context)

    if not is_valid_float(parsed):
        logger.warning(
            "validation.non_finite_amount",
            extra={"value": str(value), "context": context},
        )
        raise AmountParseError(value, context)

    return parsed
