"""
Shared fixtures: an in-memory price source and a canned-transfer adapter.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pytest

from income_adapters.base import BaseIncomeAdapter, Page
from income_adapters.models import RawTransfer
from price_sources.base import BasePriceSource
from price_sources.exceptions import PriceUnavailable
from price_sources.models import CurrencyPair


# ============================================================
# STUBS
# ============================================================

class StubPriceSource(BasePriceSource):
    """Answers from a {(symbol, date): price} table; date None is the current price."""

    def __init__(self, prices: Dict[Tuple[str, Optional[str]], str]) -> None:
        super().__init__()
        self.prices = {key: Decimal(value) for key, value in prices.items()}
        self.lookups: List[Tuple[str, Optional[str]]] = []

    @property
    def name(self) -> str:
        return "stub"

    async def fetch_raw(self, pair: CurrencyPair, at_date: Optional[str]) -> Dict[str, Any]:
        self._request_count += 1
        self.lookups.append((pair.symbol, at_date))
        key = (pair.symbol, at_date)
        if key not in self.prices:
            raise PriceUnavailable(
                message="No quote",
                source_name=self.name,
                pair=pair.symbol,
                at_date=at_date,
            )
        return {"data": {"amount": str(self.prices[key])}}

    def normalize(self, raw_data, pair, at_date) -> Decimal:
        return Decimal(raw_data["data"]["amount"])


class StubAdapter(BaseIncomeAdapter[None]):
    """Returns canned transfers per address, or raises a preset error."""

    def __init__(
        self,
        descriptor,
        transfers: Optional[Dict[str, List[RawTransfer]]] = None,
        error: Optional[Exception] = None,
        **kwargs,
    ) -> None:
        super().__init__(descriptor, **kwargs)
        self._transfers = transfers or {}
        self._error = error
        self.fetched: List[List[str]] = []

    @property
    def name(self) -> str:
        return "stub"

    def initial_state(self, addresses):
        return None

    async def fetch_page(self, addresses, state):
        self._request_count += 1
        self.fetched.append(list(addresses))
        if self._error is not None:
            raise self._error
        return {}

    def parse_page(self, raw_page, addresses, state) -> Page[None]:
        transfers = [t for a in addresses for t in self._transfers.get(a, [])]
        return Page(transfers=transfers, has_more=False)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def make_transfer():
    """Build a RawTransfer with sensible defaults."""
    def _make(
        amount: int,
        date: str = "2018-01-01",
        tx_hash: str = "tx1",
        address: str = "addr1",
        network: str = "bitcoin",
    ) -> RawTransfer:
        return RawTransfer(
            network=network,
            address=address,
            amount=amount,
            timestamp=1514764800,
            date=date,
            tx_hash=tx_hash,
        )
    return _make


@pytest.fixture
def stub_price_source():
    """Factory for StubPriceSource."""
    return StubPriceSource


@pytest.fixture
def stub_adapter():
    """Factory for StubAdapter."""
    return StubAdapter
