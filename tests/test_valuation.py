"""
Tests for the Valuation Engine.

============================================================
TEST SCENARIOS
============================================================
1. Raw amount conversion is exact (150,000,000 sat → 1.5 BTC)
2. value_when_received = amount × price
3. Unpriced transfers are dropped and never counted
4. Totals derived twice are identical
5. A failed current-price lookup propagates from build_result

============================================================
"""

import asyncio
import pytest
from decimal import Decimal

from income_adapters import BITCOIN, ETHEREUM, LITECOIN
from price_sources import PriceUnavailable
from valuation import DroppedTransfer, ResultRecord, ValuationEngine, ValuedTransaction, to_display_amount


def done_future(value) -> asyncio.Future:
    """An already-resolved future, awaitable any number of times."""
    future = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


# ============================================================
# TEST: CONVERSION
# ============================================================

class TestConversion:
    """Tests for exact smallest-unit conversion."""

    def test_satoshi_to_bitcoin(self):
        assert to_display_amount(150000000, 8) == Decimal("1.5")

    def test_single_wei_is_exact(self):
        assert to_display_amount(1, 18) == Decimal("0.000000000000000001")

    def test_large_wei_amount_is_exact(self):
        raw = 123456789012345678901234567
        assert to_display_amount(raw, 18) == Decimal("123456789.012345678901234567")

    def test_valued_transaction(self, make_transfer):
        txn = ValuedTransaction.create(make_transfer(150000000), BITCOIN, Decimal("10000.10"))

        assert txn.amount == Decimal("1.5")
        assert txn.value_when_received == Decimal("15000.15")
        assert txn.value_at(Decimal("2")) == Decimal("3")
        assert txn.tx_hash == "tx1"


# ============================================================
# TEST: ENGINE
# ============================================================

class TestValuationEngine:
    """Tests for ValuationEngine."""

    @pytest.mark.asyncio
    async def test_value_price_uses_transfer_date(self, make_transfer, stub_price_source):
        source = stub_price_source({("LTC-EUR", "2018-02-03"): "150.25"})
        engine = ValuationEngine(source)

        txn = await engine.value_price(
            make_transfer(200000000, date="2018-02-03", network="litecoin"),
            LITECOIN,
            "EUR",
        )

        assert source.lookups == [("LTC-EUR", "2018-02-03")]
        assert txn.price == Decimal("150.25")
        assert txn.value_when_received == Decimal("300.5")

    @pytest.mark.asyncio
    async def test_value_price_propagates_unavailable(self, make_transfer, stub_price_source):
        engine = ValuationEngine(stub_price_source({}))

        with pytest.raises(PriceUnavailable):
            await engine.value_price(make_transfer(1), BITCOIN, "USD")

    @pytest.mark.asyncio
    async def test_unpriced_transfer_dropped(self, make_transfer, stub_price_source):
        """One success (value 10) + one PriceUnavailable → totals exactly 10."""
        source = stub_price_source({
            ("BTC-USD", "2018-01-01"): "10",
            ("BTC-USD", None): "20",
        })
        engine = ValuationEngine(source)
        transfers = [
            make_transfer(100000000, date="2018-01-01", tx_hash="priced"),
            make_transfer(100000000, date="2018-01-02", tx_hash="unpriced"),
        ]

        valued, dropped = await engine.value_transfers(transfers, BITCOIN, "USD")
        record = await engine.build_result(
            valued, BITCOIN, "USD", done_future(Decimal("20")), address_group=("addr1",)
        )

        assert [t.tx_hash for t in valued] == ["priced"]
        assert len(dropped) == 1
        assert isinstance(dropped[0], DroppedTransfer)
        assert dropped[0].transfer.tx_hash == "unpriced"
        assert record.value_when_received == Decimal("10")
        assert record.amount == Decimal("1")
        assert record.value == Decimal("20")
        assert record.transaction_count == 1

    @pytest.mark.asyncio
    async def test_order_preserved(self, make_transfer, stub_price_source):
        source = stub_price_source({
            ("BTC-USD", "2018-01-03"): "3",
            ("BTC-USD", "2018-01-01"): "1",
            ("BTC-USD", "2018-01-02"): "2",
        })
        engine = ValuationEngine(source)
        transfers = [
            make_transfer(1, date="2018-01-03", tx_hash="c"),
            make_transfer(1, date="2018-01-01", tx_hash="a"),
            make_transfer(1, date="2018-01-02", tx_hash="b"),
        ]

        valued, dropped = await engine.value_transfers(transfers, BITCOIN, "USD")

        assert [t.tx_hash for t in valued] == ["c", "a", "b"]
        assert dropped == []

    @pytest.mark.asyncio
    async def test_empty_transfers(self, stub_price_source):
        engine = ValuationEngine(stub_price_source({}))

        valued, dropped = await engine.value_transfers([], BITCOIN, "USD")
        record = await engine.build_result(valued, BITCOIN, "USD", done_future(Decimal("5")))

        assert record.transactions == ()
        assert record.amount == Decimal(0)
        assert record.value == Decimal(0)
        assert record.value_when_received == Decimal(0)

    @pytest.mark.asyncio
    async def test_build_result_twice_identical(self, make_transfer, stub_price_source):
        source = stub_price_source({("ETH", None): "1"})
        engine = ValuationEngine(source)
        valued = [
            ValuedTransaction.create(
                make_transfer(333333333333333333, tx_hash=f"t{i}", network="ethereum"),
                ETHEREUM,
                Decimal("812.37"),
            )
            for i in range(5)
        ]
        current = done_future(Decimal("1234.5678"))

        first = await engine.build_result(valued, ETHEREUM, "USD", current)
        second = await engine.build_result(valued, ETHEREUM, "USD", current)

        assert first == second
        for name in ("amount", "value", "value_when_received"):
            assert getattr(first, name).as_tuple() == getattr(second, name).as_tuple()
        assert first.value_when_received == sum(
            (t.value_when_received for t in valued), Decimal(0)
        )

    @pytest.mark.asyncio
    async def test_failed_current_price_propagates(self, make_transfer, stub_price_source):
        engine = ValuationEngine(stub_price_source({}))
        future = asyncio.get_running_loop().create_future()
        future.set_exception(PriceUnavailable("No quote", pair="BTC-USD"))

        with pytest.raises(PriceUnavailable):
            await engine.build_result([], BITCOIN, "USD", future)


# ============================================================
# TEST: RESULT RECORD
# ============================================================

class TestResultRecord:
    """Tests for ResultRecord serialization."""

    def test_to_dict(self, make_transfer):
        txn = ValuedTransaction.create(make_transfer(150000000, tx_hash="abc"), BITCOIN, Decimal("100"))
        record = ResultRecord.from_transactions(
            network=BITCOIN,
            currency="USD",
            current_price=Decimal("200"),
            transactions=[txn],
            address_group=["addr1"],
        )

        data = record.to_dict()

        assert data["coin"] == {"name": "Bitcoin", "code": "BTC", "price": "200"}
        assert data["addresses"] == ["addr1"]
        assert Decimal(data["amount"]) == Decimal("1.5")
        assert Decimal(data["value_when_received"]) == Decimal("150")
        assert Decimal(data["value"]) == Decimal("300")
        assert data["txns"][0]["link"] == "https://blockchain.info/tx/abc"
        assert Decimal(data["txns"][0]["value"]) == Decimal("300")
