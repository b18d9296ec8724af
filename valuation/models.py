"""
Valuation Models - Valued transactions and per-group result records.

Both are immutable. Result totals are always derived from the
transaction tuple, never accumulated separately.
"""

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Any, Iterable, Optional

from income_adapters.models import NetworkDescriptor, RawTransfer
from price_sources.exceptions import PriceUnavailable


# Working precision for products of amounts and prices
VALUATION_PRECISION = 50


def multiply(left: Decimal, right: Decimal) -> Decimal:
    """Product computed at valuation precision."""
    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        return left * right


def total(values: Iterable[Decimal]) -> Decimal:
    """Sum computed at valuation precision, in iteration order."""
    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        result = Decimal(0)
        for value in values:
            result += value
        return result


def to_display_amount(raw_amount: int, decimals: int) -> Decimal:
    """Exact conversion of a smallest-unit count to display units."""
    with localcontext() as ctx:
        ctx.prec = VALUATION_PRECISION
        return Decimal(raw_amount).scaleb(-decimals)


@dataclass(frozen=True)
class ValuedTransaction:
    """A raw transfer priced at its receipt date."""
    transfer: RawTransfer
    amount: Decimal
    price: Decimal
    value_when_received: Decimal

    @classmethod
    def create(
        cls,
        transfer: RawTransfer,
        network: NetworkDescriptor,
        price: Decimal,
    ) -> "ValuedTransaction":
        """Convert the raw amount and value it at `price`."""
        amount = to_display_amount(transfer.amount, network.decimals)
        return cls(
            transfer=transfer,
            amount=amount,
            price=price,
            value_when_received=multiply(amount, price),
        )

    @property
    def address(self) -> str:
        return self.transfer.address

    @property
    def date(self) -> str:
        return self.transfer.date

    @property
    def tx_hash(self) -> str:
        return self.transfer.tx_hash

    def value_at(self, spot_price: Decimal) -> Decimal:
        """Value of the received amount at another price."""
        return multiply(self.amount, spot_price)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = self.transfer.to_dict()
        data.update({
            "raw_amount": self.transfer.amount,
            "amount": str(self.amount),
            "price": str(self.price),
            "value_when_received": str(self.value_when_received),
        })
        return data


@dataclass(frozen=True)
class DroppedTransfer:
    """A transfer excluded from its result because it could not be priced."""
    transfer: RawTransfer
    reason: str
    error: Optional[PriceUnavailable] = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "transfer": self.transfer.to_dict(),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ResultRecord:
    """
    Valued income for one network address group in one currency.

    Totals:
    - amount: sum of converted amounts
    - value: amount valued at the current spot price
    - value_when_received: sum of per-transaction receipt values
    """
    network: NetworkDescriptor
    currency: str
    current_price: Decimal
    transactions: tuple[ValuedTransaction, ...]
    address_group: tuple[str, ...] = ()
    amount: Decimal = Decimal(0)
    value: Decimal = Decimal(0)
    value_when_received: Decimal = Decimal(0)

    @classmethod
    def from_transactions(
        cls,
        network: NetworkDescriptor,
        currency: str,
        current_price: Decimal,
        transactions: Iterable[ValuedTransaction],
        address_group: Iterable[str] = (),
    ) -> "ResultRecord":
        """Build a record whose totals are summed from `transactions`."""
        txns = tuple(transactions)
        return cls(
            network=network,
            currency=currency,
            current_price=current_price,
            transactions=txns,
            address_group=tuple(address_group),
            amount=total(t.amount for t in txns),
            value=total(t.value_at(current_price) for t in txns),
            value_when_received=total(t.value_when_received for t in txns),
        )

    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "coin": {
                "name": self.network.name,
                "code": self.network.code,
                "price": str(self.current_price),
            },
            "currency": self.currency,
            "addresses": list(self.address_group),
            "amount": str(self.amount),
            "value": str(self.value),
            "value_when_received": str(self.value_when_received),
            "explorer": {
                "address_url": self.network.explorer.address_url,
                "transaction_url": self.network.explorer.transaction_url,
            },
            "txns": [
                dict(
                    t.to_dict(),
                    value=str(t.value_at(self.current_price)),
                    link=self.network.explorer.transaction_link(t.tx_hash),
                )
                for t in self.transactions
            ],
        }
