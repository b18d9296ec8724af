"""
Base Price Source - Abstract interface for spot price providers.

All providers MUST implement this interface to ensure:
- Isolation
- Replaceability
- A single failure type (PriceUnavailable) for the caller
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Optional, Union

import aiohttp

from price_sources.exceptions import PriceUnavailable
from price_sources.models import CurrencyPair, DateLike, format_date


logger = logging.getLogger(__name__)


class BasePriceSource(ABC):
    """
    Abstract base class for all price sources.

    Each price source must:
    1. Implement fetch_raw() - Get the raw quote from the provider
    2. Implement normalize() - Extract a positive Decimal price

    One HTTP request per call. No caching and no retry.
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._request_count = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this price source."""
        pass

    @property
    def request_count(self) -> int:
        """Number of HTTP requests issued so far."""
        return self._request_count

    @abstractmethod
    async def fetch_raw(
        self,
        pair: CurrencyPair,
        at_date: Optional[str],
    ) -> dict[str, Any]:
        """
        Fetch the raw quote payload.

        Raises:
            PriceUnavailable: If the request fails
        """
        pass

    @abstractmethod
    def normalize(
        self,
        raw_data: dict[str, Any],
        pair: CurrencyPair,
        at_date: Optional[str],
    ) -> Decimal:
        """
        Extract the price from a raw payload.

        Raises:
            PriceUnavailable: If the payload carries no usable price
        """
        pass

    async def spot_price(
        self,
        pair: Union[CurrencyPair, tuple[str, str]],
        at_date: Optional[DateLike] = None,
    ) -> Decimal:
        """
        Spot price of `pair` on `at_date`, or the current price when omitted.

        Returns:
            Positive Decimal price

        Raises:
            PriceUnavailable: On any failure to obtain a usable quote
        """
        pair = CurrencyPair.of(pair)
        try:
            day = format_date(at_date)
        except ValueError as e:
            raise PriceUnavailable(
                message=f"Invalid date {at_date!r}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=str(at_date),
                original_error=e,
            ) from e

        raw_data = await self.fetch_raw(pair, day)
        price = self.normalize(raw_data, pair, day)

        if price <= 0:
            raise PriceUnavailable(
                message=f"Non-positive price {price}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=day,
            )

        logger.debug(f"[{self.name}] {pair.symbol} @ {day or 'now'} = {price}")
        return price

    async def current_price(self, pair: Union[CurrencyPair, tuple[str, str]]) -> Decimal:
        """Current spot price of `pair`."""
        return await self.spot_price(pair)

    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def _make_request(
        self,
        url: str,
        pair: CurrencyPair,
        at_date: Optional[str],
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """Make a GET request; every failure becomes PriceUnavailable."""
        session = await self._get_session()
        self._request_count += 1

        try:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise PriceUnavailable(
                        message=f"HTTP {response.status}",
                        source_name=self.name,
                        pair=pair.symbol,
                        at_date=at_date,
                        status_code=response.status,
                        response_body=body[:500],
                    )
                data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise PriceUnavailable(
                message=f"Request timed out after {self._timeout}s",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            raise PriceUnavailable(
                message=f"Connection error: {e}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
                original_error=e,
            ) from e
        except ValueError as e:
            raise PriceUnavailable(
                message=f"Invalid JSON response: {e}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise PriceUnavailable(
                message=f"Unexpected response type {type(data).__name__}",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
            )
        return data

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BasePriceSource":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"
