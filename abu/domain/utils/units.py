"""
Currency conversion utilities.

Cost APIs report amounts in a single base currency (USD). Reports show an
estimate in a second reporting currency using one conversion rate that is
resolved once at startup and then passed explicitly to every reducer.
"""

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ...config.models import DEFAULT_USD_TO_EUR
from ..models import Money

logger = logging.getLogger(__name__)


class CurrencyUnit(Enum):
    """Currencies handled by reports, with their display symbol."""

    USD = "$"
    EUR = "€"

    @classmethod
    def from_code(cls, code: str) -> "CurrencyUnit":
        """Look up a unit by ISO code (case-insensitive)."""
        try:
            return cls[code.upper()]
        except KeyError as exc:
            raise ValueError(f"Unsupported currency code: {code}") from exc


class RateSource(Enum):
    """Where a conversion rate came from."""

    LIVE = "live"
    FALLBACK = "fallback"


class ConversionRate(BaseModel):
    """Fixed-at-runtime conversion from a base to a target currency.

    Attributes
    ----------
    rate: float
        Target units per base unit.
    base: CurrencyUnit
        Currency of the amounts returned by the query service.
    target: CurrencyUnit
        Reporting currency.
    source: RateSource
        Whether the rate was fetched live or is the fallback constant.
    """

    model_config = ConfigDict(frozen=True)

    rate: float = Field(gt=0)
    base: CurrencyUnit = CurrencyUnit.USD
    target: CurrencyUnit = CurrencyUnit.EUR
    source: RateSource = RateSource.FALLBACK

    @classmethod
    def fallback(
        cls,
        rate: float = DEFAULT_USD_TO_EUR,
        base: CurrencyUnit = CurrencyUnit.USD,
        target: CurrencyUnit = CurrencyUnit.EUR,
    ) -> "ConversionRate":
        return cls(rate=rate, base=base, target=target, source=RateSource.FALLBACK)

    def convert(self, amount: float) -> float:
        """Convert ``amount`` from the base to the target currency."""
        return convert(amount, self.rate)

    def money(self, amount: float) -> Money:
        """Pair ``amount`` with its converted value."""
        return Money(base=amount, converted=self.convert(amount))


def convert(amount: float, rate: float) -> float:
    """
    Convert an amount using a fixed rate.

    Parameters
    ----------
    amount : float
        Amount in the base currency
    rate : float
        Target units per base unit

    Returns
    -------
    float
        Amount in the target currency

    Examples
    --------
    >>> convert(100.0, 0.92)
    92.0
    >>> convert(-10.0, 0.5)
    -5.0
    """
    return amount * rate
