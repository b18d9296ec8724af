"""
Reporting - CSV Report.

============================================================
RESPONSIBILITY
============================================================
Writes one row per valued transaction across all records.

Columns, in order:
Coin,Code,Date,Price,Amount,Value When Received,Address,Transaction

Numbers are written in plain positional notation with trailing
zeros removed (1.50000000 becomes 1.5).

============================================================
"""

import csv
from decimal import Decimal, localcontext
from typing import IO, Iterable, Iterator, List

from valuation.models import VALUATION_PRECISION, ResultRecord


CSV_HEADER = (
    "Coin",
    "Code",
    "Date",
    "Price",
    "Amount",
    "Value When Received",
    "Address",
    "Transaction",
)


def format_decimal(value: Decimal) -> str:
    """Plain-notation string of a Decimal without trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        return format(value.normalize(), "f")


def render_rows(records: Iterable[ResultRecord]) -> Iterator[List[str]]:
    """Yield the data rows of the report, header excluded."""
    for record in records:
        for txn in record.transactions:
            yield [
                record.network.name,
                record.network.code,
                txn.date,
                format_decimal(txn.price),
                format_decimal(txn.amount),
                format_decimal(txn.value_when_received),
                txn.address,
                txn.tx_hash,
            ]


def write_csv(records: Iterable[ResultRecord], stream: IO[str]) -> int:
    """
    Write the header and all rows to a text stream.

    Returns:
        Number of data rows written
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(CSV_HEADER)

    count = 0
    for row in render_rows(records):
        writer.writerow(row)
        count += 1
    return count
