"""
Valuation Engine - Prices raw transfers and aggregates result records.

============================================================
RESPONSIBILITY
============================================================
- Look up the unit price of each transfer on its receipt date
- Drop (never zero-fill) transfers whose price is unavailable
- Build result records with totals derived from the valued set

============================================================
"""

import asyncio
import logging
from decimal import Decimal
from typing import Awaitable, Iterable, Sequence

from income_adapters.models import NetworkDescriptor, RawTransfer
from price_sources.base import BasePriceSource
from price_sources.exceptions import PriceUnavailable
from price_sources.models import CurrencyPair

from .models import DroppedTransfer, ResultRecord, ValuedTransaction


logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Attaches receipt-date prices to transfers of one network.

    Usage:
        engine = ValuationEngine(CoinbasePriceSource())
        valued, dropped = await engine.value_transfers(transfers, BITCOIN, "USD")
        record = await engine.build_result(valued, BITCOIN, "USD", price_task)
    """

    def __init__(self, price_source: BasePriceSource) -> None:
        self._price_source = price_source

    @property
    def price_source(self) -> BasePriceSource:
        return self._price_source

    async def value_price(
        self,
        transfer: RawTransfer,
        network: NetworkDescriptor,
        currency: str,
    ) -> ValuedTransaction:
        """
        Price one transfer at its receipt date.

        Raises:
            PriceUnavailable: If the source has no quote for that date
        """
        price = await self._price_source.spot_price(
            CurrencyPair(network.code, currency),
            transfer.date,
        )
        return ValuedTransaction.create(transfer, network, price)

    async def value_transfers(
        self,
        transfers: Sequence[RawTransfer],
        network: NetworkDescriptor,
        currency: str,
    ) -> tuple[list[ValuedTransaction], list[DroppedTransfer]]:
        """
        Price all transfers concurrently.

        Returns the valued transactions in transfer order and the
        transfers dropped because no price was available.
        """
        outcomes = await asyncio.gather(
            *(self._value_or_drop(t, network, currency) for t in transfers)
        )

        valued = [o for o in outcomes if isinstance(o, ValuedTransaction)]
        dropped = [o for o in outcomes if isinstance(o, DroppedTransfer)]

        if dropped:
            logger.warning(
                f"[{network.key}] Dropped {len(dropped)} of {len(transfers)} "
                f"transfers without a {currency} price"
            )
        return valued, dropped

    async def _value_or_drop(
        self,
        transfer: RawTransfer,
        network: NetworkDescriptor,
        currency: str,
    ):
        try:
            return await self.value_price(transfer, network, currency)
        except PriceUnavailable as e:
            logger.warning(
                f"[{network.key}] No price for {transfer.tx_hash} on {transfer.date}: {e}"
            )
            return DroppedTransfer(transfer=transfer, reason=e.message, error=e)

    async def build_result(
        self,
        transactions: Iterable[ValuedTransaction],
        network: NetworkDescriptor,
        currency: str,
        current_price: Awaitable[Decimal],
        address_group: Iterable[str] = (),
    ) -> ResultRecord:
        """
        Await the in-flight current price and assemble the result record.

        `current_price` may be shared between groups of one network, so
        pass an asyncio.Task or Future rather than a bare coroutine.

        Raises:
            PriceUnavailable: If the current price lookup failed
        """
        spot = await current_price
        record = ResultRecord.from_transactions(
            network=network,
            currency=currency,
            current_price=spot,
            transactions=transactions,
            address_group=address_group,
        )
        logger.debug(
            f"[{network.key}] Built result: {record.transaction_count} txns, "
            f"amount={record.amount}, value_when_received={record.value_when_received}"
        )
        return record
