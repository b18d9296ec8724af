"""
Tests for Price Sources.

============================================================
TEST SCENARIOS
============================================================
1. Historical quote → request carries ?date=YYYY-MM-DD
2. Current quote → no date parameter
3. Missing / non-numeric / non-positive amount → PriceUnavailable
4. Invalid date → PriceUnavailable before any request
5. HTTP failures → PriceUnavailable carrying pair and date

============================================================
"""

import asyncio
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from price_sources import CoinbasePriceSource, CurrencyPair, PriceUnavailable, format_date


def quote(amount) -> dict:
    return {"data": {"base": "BTC", "currency": "USD", "amount": amount}}


# ============================================================
# TEST: MODELS
# ============================================================

class TestCurrencyPair:
    """Tests for CurrencyPair."""

    def test_codes_uppercased(self):
        pair = CurrencyPair("btc", "usd")
        assert pair.symbol == "BTC-USD"
        assert str(pair) == "BTC-USD"

    def test_of_accepts_tuple(self):
        assert CurrencyPair.of(("eth", "EUR")) == CurrencyPair("ETH", "EUR")

    def test_blank_code_rejected(self):
        with pytest.raises(ValueError):
            CurrencyPair("", "USD")

    def test_format_date(self):
        assert format_date(None) is None
        assert format_date(date(2018, 1, 2)) == "2018-01-02"
        assert format_date("2018-01-02T10:00:00Z") == "2018-01-02"
        with pytest.raises(ValueError):
            format_date("yesterday")


# ============================================================
# TEST: COINBASE
# ============================================================

class TestCoinbasePriceSource:
    """Tests for the Coinbase spot price source."""

    @pytest.mark.asyncio
    async def test_historical_price(self):
        """A dated lookup hits the spot endpoint with ?date=."""
        source = CoinbasePriceSource()

        with patch.object(
            source, "_make_request", new=AsyncMock(return_value=quote("13657.20"))
        ) as mock_request:
            price = await source.spot_price(("BTC", "USD"), "2018-01-01")

        assert price == Decimal("13657.20")
        url = mock_request.call_args.args[0]
        assert url == "https://api.coinbase.com/v2/prices/BTC-USD/spot"
        assert mock_request.call_args.kwargs["params"] == {"date": "2018-01-01"}
        assert mock_request.call_args.kwargs["headers"] == {"CB-VERSION": "2018-02-12"}

    @pytest.mark.asyncio
    async def test_date_object_accepted(self):
        source = CoinbasePriceSource()

        with patch.object(
            source, "_make_request", new=AsyncMock(return_value=quote("1.00"))
        ) as mock_request:
            await source.spot_price(CurrencyPair("LTC", "EUR"), date(2019, 6, 30))

        assert mock_request.call_args.kwargs["params"] == {"date": "2019-06-30"}

    @pytest.mark.asyncio
    async def test_current_price_has_no_date(self):
        source = CoinbasePriceSource()

        with patch.object(
            source, "_make_request", new=AsyncMock(return_value=quote("9000.01"))
        ) as mock_request:
            price = await source.current_price(("BTC", "USD"))

        assert price == Decimal("9000.01")
        assert mock_request.call_args.kwargs["params"] is None

    @pytest.mark.asyncio
    async def test_price_is_exact_decimal(self):
        """No float round-trip on the quoted amount."""
        source = CoinbasePriceSource()

        with patch.object(source, "_make_request", new=AsyncMock(return_value=quote("0.1"))):
            price = await source.spot_price(("ETH", "USD"), "2018-01-01")

        assert price == Decimal("0.1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"data": {}},
        {"errors": [{"id": "not_found", "message": "Invalid currency"}]},
        quote("abc"),
        quote("NaN"),
        quote("0"),
        quote("-3.5"),
    ])
    async def test_unusable_quote(self, payload):
        source = CoinbasePriceSource()

        with patch.object(source, "_make_request", new=AsyncMock(return_value=payload)):
            with pytest.raises(PriceUnavailable) as exc_info:
                await source.spot_price(("BTC", "USD"), "2018-01-01")

        assert exc_info.value.pair == "BTC-USD"
        assert exc_info.value.at_date == "2018-01-01"

    @pytest.mark.asyncio
    async def test_invalid_date_no_request(self):
        source = CoinbasePriceSource()

        with patch.object(source, "_make_request", new=AsyncMock()) as mock_request:
            with pytest.raises(PriceUnavailable, match="Invalid date"):
                await source.spot_price(("BTC", "USD"), "not-a-date")

        mock_request.assert_not_called()


# ============================================================
# TEST: HTTP FAILURES
# ============================================================

def mock_session(response=None, side_effect=None):
    session = MagicMock()
    session.closed = False
    if side_effect is not None:
        session.get.side_effect = side_effect
    else:
        session.get.return_value.__aenter__.return_value = response
    return session


class TestPriceHttpFailures:
    """Tests for transport errors surfacing as PriceUnavailable."""

    @pytest.mark.asyncio
    async def test_http_error(self):
        response = MagicMock()
        response.status = 404
        response.text = AsyncMock(return_value='{"errors": []}')
        source = CoinbasePriceSource(session=mock_session(response))

        with pytest.raises(PriceUnavailable) as exc_info:
            await source.spot_price(("BTC", "XYZ"), "2018-01-01")

        assert exc_info.value.status_code == 404
        assert exc_info.value.pair == "BTC-XYZ"

    @pytest.mark.asyncio
    async def test_timeout(self):
        source = CoinbasePriceSource(session=mock_session(side_effect=asyncio.TimeoutError()))

        with pytest.raises(PriceUnavailable, match="timed out"):
            await source.current_price(("BTC", "USD"))

    @pytest.mark.asyncio
    async def test_success_counts_request(self):
        response = MagicMock()
        response.status = 200
        response.json = AsyncMock(return_value=quote("42"))
        source = CoinbasePriceSource(session=mock_session(response))

        price = await source.spot_price(("BTC", "USD"), "2018-01-01")

        assert price == Decimal("42")
        assert source.request_count == 1
