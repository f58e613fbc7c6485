"""
Tests for currency conversion utilities.
"""

import pytest
from pydantic import ValidationError

from abu.config.models import DEFAULT_USD_TO_EUR
from abu.domain.utils.units import ConversionRate, CurrencyUnit, RateSource, convert


def test_convert():
    assert convert(100.0, 0.92) == pytest.approx(92.0)
    assert convert(-10.0, 0.5) == -5.0
    assert convert(0.0, 0.92) == 0.0


def test_conversion_rate_money_pairs_base_and_converted():
    rate = ConversionRate(rate=0.92, source=RateSource.LIVE)

    money = rate.money(100.0)

    assert money.base == 100.0
    assert money.converted == pytest.approx(92.0)
    assert rate.base is CurrencyUnit.USD
    assert rate.target is CurrencyUnit.EUR


def test_fallback_rate_defaults():
    rate = ConversionRate.fallback()

    assert rate.rate == DEFAULT_USD_TO_EUR
    assert rate.source is RateSource.FALLBACK


def test_rate_must_be_positive():
    with pytest.raises(ValidationError):
        ConversionRate(rate=0)


def test_currency_unit_from_code():
    assert CurrencyUnit.from_code("eur") is CurrencyUnit.EUR
    assert CurrencyUnit.USD.value == "$"
    with pytest.raises(ValueError, match="Unsupported currency"):
        CurrencyUnit.from_code("GBP")
