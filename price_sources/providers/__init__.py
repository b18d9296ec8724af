"""
Providers package - Price source implementations.
"""

from price_sources.providers.coinbase import CoinbasePriceSource


__all__ = [
    "CoinbasePriceSource",
]
