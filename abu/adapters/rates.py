"""Currency conversion rate source.

The rate is fetched once at startup from a public exchange-rate endpoint. The
whole fetch runs under one deadline and is best effort: any transport error,
non-2xx status, timeout or unexpected payload falls back to the configured
constant so reports are never blocked by it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from ..config.models import RatesConfig
from ..domain.utils.units import ConversionRate, CurrencyUnit, RateSource
from ..domain.utils.validation import parse_amount

logger = logging.getLogger(__name__)


async def fetch_conversion_rate(
    config: RatesConfig, client: Optional[httpx.AsyncClient] = None
) -> ConversionRate:
    """Fetch the live base-to-target rate, or return the fallback rate.

    Parameters
    ----------
    config: RatesConfig
        Endpoint, currencies, timeout and fallback constant.
    client: Optional[httpx.AsyncClient]
        Client to use (tests inject one with a mock transport); by default a
        short-lived client with ``config.timeout_seconds`` is created.

    Returns
    -------
    ConversionRate
        Live rate with ``source=LIVE``, or the fallback with
        ``source=FALLBACK``.
    """
    base = CurrencyUnit.from_code(config.base_currency)
    target = CurrencyUnit.from_code(config.target_currency)
    fallback = ConversionRate.fallback(config.fallback_rate, base=base, target=target)

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.timeout_seconds)
    try:
        # Total deadline; httpx timeouts apply per connect/read/write only
        async with asyncio.timeout(config.timeout_seconds):
            resp = await client.get(config.url)
        resp.raise_for_status()
        payload = resp.json()
        value = parse_amount(
            payload["rates"][target.name], context=f"{target.name} rate"
        )
        rate = ConversionRate(
            rate=value, base=base, target=target, source=RateSource.LIVE
        )
    except (httpx.HTTPError, TimeoutError, ValueError, KeyError, TypeError) as exc:
        logger.warning(
            "rates.fetch_failed",
            extra={
                "url": config.url,
                "error": str(exc) or type(exc).__name__,
                "fallback_rate": config.fallback_rate,
            },
        )
        return fallback
    finally:
        if owns_client:
            await client.aclose()

    logger.info(
        "rates.fetched",
        extra={"base": base.name, "target": target.name, "rate": rate.rate},
    )
    return rate
