"""
Blockchain.info Income Adapter - Multi-address, offset-paginated.

Uses the public `multiaddr` endpoint, which accepts a set of addresses
in one call and reports the total transaction count of the whole set.

Pagination:
- `n` transactions per page, starting at `offset`
- `wallet.n_tx` is the total for the address set
- The offset advances by the number of transactions received
"""

import logging
from typing import Any, Optional

import aiohttp

from income_adapters.base import BaseIncomeAdapter, Page
from income_adapters.exceptions import FetchFailure
from income_adapters.models import NetworkDescriptor, RawTransfer, date_from_epoch


logger = logging.getLogger(__name__)


class BlockchainInfoAdapter(BaseIncomeAdapter[int]):
    """
    Bitcoin adapter backed by blockchain.info.

    Only transactions whose `result` (net value to the queried address
    set) is strictly positive are kept, which excludes outbound and
    self-transfers.
    """

    API_URL = "https://blockchain.info/multiaddr"
    PAGE_SIZE = 100

    def __init__(
        self,
        descriptor: NetworkDescriptor,
        timeout: float = BaseIncomeAdapter.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        super().__init__(descriptor, timeout, session)
        self._page_size = page_size

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "blockchain_info"

    def initial_state(self, addresses: list[str]) -> int:
        """Offset of the first page."""
        return 0

    async def fetch_page(
        self,
        addresses: list[str],
        state: Optional[int],
    ) -> dict[str, Any]:
        """Fetch one page of the address set's transactions."""
        params = {
            "active": "|".join(addresses),
            "n": str(self._page_size),
            "offset": str(state or 0),
        }
        return await self._make_request(self.API_URL, params=params)

    def parse_page(
        self,
        raw_page: dict[str, Any],
        addresses: list[str],
        state: Optional[int],
    ) -> Page[int]:
        """Keep positive-result transactions and advance the offset."""
        offset = state or 0
        wallet = raw_page.get("wallet")
        if not isinstance(wallet, dict) or "n_tx" not in wallet:
            raise FetchFailure(
                message="Response is missing wallet.n_tx",
                adapter_name=self.name,
                network=self.descriptor.key,
                response_body=str(raw_page)[:500],
            )
        total = int(wallet["n_tx"])
        txs = raw_page.get("txs") or []

        transfers = []
        for tx in txs:
            result = self._normalize_signed(tx.get("result", 0))
            if result <= 0:
                continue
            timestamp = int(tx["time"])
            transfers.append(
                RawTransfer(
                    network=self.descriptor.key,
                    address=self._receiving_address(tx, addresses),
                    amount=result,
                    timestamp=timestamp,
                    date=date_from_epoch(timestamp),
                    tx_hash=tx["hash"],
                )
            )

        processed = offset + len(txs)
        # An empty page cannot advance the offset; treat it as the end.
        has_more = bool(txs) and processed < total
        if not txs and offset < total:
            logger.warning(
                f"[{self.name}] Empty page at offset {offset} of {total}, stopping"
            )

        return Page(transfers=transfers, has_more=has_more, next_state=processed)

    def _normalize_signed(self, value: Any) -> int:
        """`result` is negative for outbound transactions."""
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
            return -self._normalize_amount(-value, "result")
        if isinstance(value, str) and value.strip().startswith("-"):
            return -self._normalize_amount(value.strip()[1:], "result")
        return self._normalize_amount(value, "result")

    @staticmethod
    def _receiving_address(tx: dict[str, Any], addresses: list[str]) -> str:
        """First output paying one of the queried addresses, else the first output."""
        outputs = tx.get("out") or []
        wanted = set(addresses)
        for output in outputs:
            if output.get("addr") in wanted:
                return output["addr"]
        if outputs and outputs[0].get("addr"):
            return outputs[0]["addr"]
        return addresses[0]
