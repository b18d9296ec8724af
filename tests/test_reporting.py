"""
Tests for Reporting.

============================================================
TEST SCENARIOS
============================================================
1. CSV header exactly as consumed by spreadsheets
2. One row per valued transaction, fields in header order
3. Plain decimal notation without trailing zeros
4. JSON report carries records, failures and drops
5. Summary totals per record

============================================================
"""

import io
import json
import pytest
from decimal import Decimal

from income_adapters import BITCOIN, LITECOIN
from orchestrator.models import GroupFailure, PipelineReport
from reporting import (
    CSV_HEADER,
    format_decimal,
    render_json,
    render_rows,
    render_summary,
    write_csv,
    write_json,
)
from valuation import DroppedTransfer, ResultRecord, ValuedTransaction


@pytest.fixture
def records(make_transfer):
    btc = ResultRecord.from_transactions(
        network=BITCOIN,
        currency="USD",
        current_price=Decimal("20000"),
        transactions=[
            ValuedTransaction.create(
                make_transfer(150000000, tx_hash="b1", address="1A"), BITCOIN, Decimal("13000.50")
            ),
            ValuedTransaction.create(
                make_transfer(1, date="2018-01-02", tx_hash="b2", address="1B"), BITCOIN, Decimal("14000")
            ),
        ],
        address_group=("1A", "1B"),
    )
    ltc = ResultRecord.from_transactions(
        network=LITECOIN,
        currency="USD",
        current_price=Decimal("100"),
        transactions=[
            ValuedTransaction.create(
                make_transfer(200000000, tx_hash="l1", address="L1", network="litecoin"),
                LITECOIN,
                Decimal("250"),
            ),
        ],
        address_group=("L1",),
    )
    return [btc, ltc]


# ============================================================
# TEST: CSV
# ============================================================

class TestCsvReport:
    """Tests for the CSV report."""

    def test_header(self):
        stream = io.StringIO()
        write_csv([], stream)

        assert stream.getvalue() == "Coin,Code,Date,Price,Amount,Value When Received,Address,Transaction\n"
        assert len(CSV_HEADER) == 8

    def test_rows(self, records):
        stream = io.StringIO()

        count = write_csv(records, stream)

        lines = stream.getvalue().splitlines()
        assert count == 3
        assert lines[1:] == [
            "Bitcoin,BTC,2018-01-01,13000.5,1.5,19500.75,1A,b1",
            "Bitcoin,BTC,2018-01-02,14000,0.00000001,0.00014,1B,b2",
            "Litecoin,LTC,2018-01-01,250,2,500,L1,l1",
        ]

    def test_empty_record_has_no_rows(self):
        record = ResultRecord.from_transactions(BITCOIN, "USD", Decimal("1"), [])

        assert list(render_rows([record])) == []

    @pytest.mark.parametrize("value, expected", [
        (Decimal("1.50000000"), "1.5"),
        (Decimal("100"), "100"),
        (Decimal("1E+2"), "100"),
        (Decimal("0E-8"), "0"),
        (Decimal("1E-18"), "0.000000000000000001"),
        (Decimal("123456789.012345678901234567890123"), "123456789.012345678901234567890123"),
    ])
    def test_format_decimal(self, value, expected):
        assert format_decimal(value) == expected


# ============================================================
# TEST: JSON
# ============================================================

class TestJsonReport:
    """Tests for the JSON report."""

    def test_report_contents(self, records, make_transfer):
        report = PipelineReport(records=records)
        report.failures.append(GroupFailure("ethereum", ("0xA",), "FetchFailure", "HTTP 500"))
        report.dropped.append(DroppedTransfer(make_transfer(5, tx_hash="x"), "No quote"))
        report.complete()

        data = json.loads(render_json(report))

        assert data["success"] is False
        assert [r["coin"]["code"] for r in data["records"]] == ["BTC", "LTC"]
        assert data["failures"][0]["addresses"] == ["0xA"]
        assert data["dropped"][0]["transfer"]["tx_hash"] == "x"
        assert Decimal(data["records"][1]["value_when_received"]) == Decimal("500")

    def test_write_matches_render(self, records):
        report = PipelineReport(records=records)
        stream = io.StringIO()

        write_json(report, stream)

        assert stream.getvalue() == render_json(report) + "\n"


# ============================================================
# TEST: SUMMARY
# ============================================================

class TestSummary:
    """Tests for the console summary."""

    def test_totals(self, records):
        text = render_summary(records)

        assert "Bitcoin (BTC)  1A, 1B" in text
        assert "Total mined:    1.50000001 BTC" in text
        assert "Taxable income: 500 USD" in text
        assert "Current value:  200 USD" in text

    def test_failures_listed(self):
        failure = GroupFailure("litecoin", ("L1",), "FetchFailure", "HTTP 429")

        text = render_summary([], [failure])

        assert "Failed address groups: 1" in text
        assert "litecoin [L1]: FetchFailure: HTTP 429" in text
