"""
Coinbase Price Source - Public spot price API.

Endpoint:
- GET /v2/prices/{BASE}-{QUOTE}/spot[?date=YYYY-MM-DD]

No authentication required.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import aiohttp

from price_sources.base import BasePriceSource
from price_sources.exceptions import PriceUnavailable
from price_sources.models import CurrencyPair


logger = logging.getLogger(__name__)


class CoinbasePriceSource(BasePriceSource):
    """
    Coinbase spot prices, current or historical by calendar date.

    Response shape: {"data": {"base": "BTC", "currency": "USD", "amount": "9000.01"}}
    """

    BASE_URL = "https://api.coinbase.com"
    SPOT_PATH = "/v2/prices/{symbol}/spot"
    API_VERSION = "2018-02-12"

    def __init__(
        self,
        timeout: float = BasePriceSource.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        base_url: str = BASE_URL,
    ) -> None:
        super().__init__(timeout, session)
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "coinbase"

    async def fetch_raw(
        self,
        pair: CurrencyPair,
        at_date: Optional[str],
    ) -> dict[str, Any]:
        """Fetch the spot quote for a pair."""
        url = self._base_url + self.SPOT_PATH.format(symbol=pair.symbol)
        params = {"date": at_date} if at_date else None
        headers = {"CB-VERSION": self.API_VERSION}
        return await self._make_request(url, pair, at_date, params=params, headers=headers)

    def normalize(
        self,
        raw_data: dict[str, Any],
        pair: CurrencyPair,
        at_date: Optional[str],
    ) -> Decimal:
        """Read `data.amount` as an exact Decimal."""
        data = raw_data.get("data")
        amount = data.get("amount") if isinstance(data, dict) else None
        if amount is None:
            errors = raw_data.get("errors")
            raise PriceUnavailable(
                message=f"No quote in response{f': {errors}' if errors else ''}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
                response_body=str(raw_data)[:500],
            )

        try:
            price = Decimal(str(amount))
        except InvalidOperation as e:
            raise PriceUnavailable(
                message=f"Non-numeric amount {amount!r}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
                original_error=e,
            ) from e

        if not price.is_finite():
            raise PriceUnavailable(
                message=f"Non-finite amount {amount!r}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
            )
        return price
