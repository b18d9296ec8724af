"""
Price Sources Package - Spot price lookup by currency pair and date.

Quick Start:
    from price_sources import CoinbasePriceSource

    async def btc_on_new_year():
        async with CoinbasePriceSource() as source:
            return await source.spot_price(("BTC", "USD"), "2018-01-01")

Failures of any kind surface as PriceUnavailable.
"""

from price_sources.base import BasePriceSource
from price_sources.exceptions import PriceSourceError, PriceUnavailable
from price_sources.models import CurrencyPair, DateLike, format_date
from price_sources.providers import CoinbasePriceSource


__version__ = "1.0.0"

__all__ = [
    # Base
    "BasePriceSource",

    # Models
    "CurrencyPair",
    "DateLike",
    "format_date",

    # Exceptions
    "PriceSourceError",
    "PriceUnavailable",

    # Providers
    "CoinbasePriceSource",
]
