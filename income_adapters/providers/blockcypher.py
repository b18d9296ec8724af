"""
BlockCypher Income Adapter - Single address, cursor-paginated.

Each page lists transaction references (`txrefs`) newest first with a
`hasMore` flag. The next page is requested with `before=<height>`,
where height is the block height of the last reference on the page.
"""

import logging
from typing import Any, Optional

import aiohttp

from income_adapters.base import BaseIncomeAdapter, Page
from income_adapters.exceptions import FetchFailure
from income_adapters.models import NetworkDescriptor, RawTransfer


logger = logging.getLogger(__name__)


class BlockCypherAdapter(BaseIncomeAdapter[int]):
    """
    Litecoin adapter backed by BlockCypher.

    Only unspent references are kept as inbound transfers.
    """

    API_URL = "https://api.blockcypher.com/v1/{coin}/main/addrs/{address}"
    PAGE_LIMIT = 2000

    def __init__(
        self,
        descriptor: NetworkDescriptor,
        timeout: float = BaseIncomeAdapter.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        coin: str = "ltc",
    ) -> None:
        super().__init__(descriptor, timeout, session)
        self._coin = coin

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "blockcypher"

    def initial_state(self, addresses: list[str]) -> Optional[int]:
        """The first page has no `before` cursor."""
        return None

    async def fetch_page(
        self,
        addresses: list[str],
        state: Optional[int],
    ) -> dict[str, Any]:
        """Fetch the page of references below the cursor height."""
        url = self.API_URL.format(coin=self._coin, address=addresses[0])
        params = {
            "limit": str(self.PAGE_LIMIT),
            "omitWalletAddresses": "true",
        }
        if state is not None:
            params["before"] = str(state)
        return await self._make_request(url, params=params)

    def parse_page(
        self,
        raw_page: dict[str, Any],
        addresses: list[str],
        state: Optional[int],
    ) -> Page[int]:
        """
        Keep unspent references and derive the next cursor.

        txrefs arrive newest first, so the last reference carries the
        lowest height on the page and is the continuation height.
        """
        address = addresses[0]
        txrefs = raw_page.get("txrefs") or []

        transfers = []
        last_height: Optional[int] = None
        for ref in txrefs:
            if ref.get("spent") is False:
                confirmed = ref["confirmed"]
                transfers.append(
                    RawTransfer(
                        network=self.descriptor.key,
                        address=address,
                        amount=self._normalize_amount(ref["value"], "value"),
                        timestamp=confirmed,
                        date=confirmed[:10],
                        tx_hash=ref["tx_hash"],
                    )
                )
            last_height = int(ref["block_height"])

        has_more = bool(raw_page.get("hasMore"))
        if has_more:
            if last_height is None:
                logger.warning(f"[{self.name}] hasMore set on an empty page, stopping")
                has_more = False
            elif state is not None and last_height >= state:
                raise FetchFailure(
                    message=f"Pagination cursor did not advance (before={state}, last={last_height})",
                    adapter_name=self.name,
                    network=self.descriptor.key,
                    addresses=[address],
                )

        return Page(transfers=transfers, has_more=has_more, next_state=last_height)
