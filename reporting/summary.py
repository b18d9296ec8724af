"""
Reporting - Console Summary.

Per-record totals: amount mined, its current value and the taxable
income (value when received).
"""

from typing import Iterable, List

from orchestrator.models import GroupFailure
from valuation.models import ResultRecord

from .csv_report import format_decimal


def render_summary(
    records: Iterable[ResultRecord],
    failures: Iterable[GroupFailure] = (),
) -> str:
    """Render a human-readable summary block."""
    lines: List[str] = []

    for record in records:
        currency = record.currency
        addresses = ", ".join(record.address_group)
        lines.append("=" * 60)
        lines.append(f"  {record.network.name} ({record.network.code})  {addresses}")
        lines.append("=" * 60)
        lines.append(f"  Transactions:   {record.transaction_count}")
        lines.append(f"  Total mined:    {format_decimal(record.amount)} {record.network.code}")
        lines.append(
            f"  Current price:  {format_decimal(record.current_price)} {currency}"
        )
        lines.append(f"  Current value:  {format_decimal(record.value)} {currency}")
        lines.append(
            f"  Taxable income: {format_decimal(record.value_when_received)} {currency}"
        )
        lines.append("")

    failures = list(failures)
    if failures:
        lines.append(f"Failed address groups: {len(failures)}")
        for failure in failures:
            lines.append(
                f"  - {failure.network} [{', '.join(failure.addresses)}]: "
                f"{failure.error_type}: {failure.message}"
            )
        lines.append("")

    return "\n".join(lines)
