"""
Etherscan Income Adapter - Account ledger, single page.

Uses Etherscan API V2 (unified multichain). One `txlist` request returns
the full normal-transaction history of the address; there is no further
pagination.

Requires an API key (ETHERSCAN_API_KEY).
"""

import logging
import os
from typing import Any, Optional

import aiohttp

from income_adapters.base import BaseIncomeAdapter, Page
from income_adapters.exceptions import FetchFailure
from income_adapters.models import NetworkDescriptor, RawTransfer, date_from_epoch


logger = logging.getLogger(__name__)


class EtherscanAdapter(BaseIncomeAdapter[None]):
    """
    Ethereum adapter backed by Etherscan.

    Entries are kept when their destination is the queried address.
    Addresses are compared case-insensitively because Etherscan returns
    lowercase addresses while users usually configure EIP-55 checksummed
    ones. Failed transactions (`isError == "1"`) moved no value and are
    dropped.
    """

    V2_API_URL = "https://api.etherscan.io/v2/api"
    CHAIN_ID = 1
    API_KEY_ENV_VAR = "ETHERSCAN_API_KEY"
    EMPTY_MESSAGES = ("No transactions found",)

    def __init__(
        self,
        descriptor: NetworkDescriptor,
        api_key: Optional[str] = None,
        timeout: float = BaseIncomeAdapter.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        chain_id: int = CHAIN_ID,
    ) -> None:
        super().__init__(descriptor, timeout, session)
        self._api_key = api_key or os.environ.get(self.API_KEY_ENV_VAR, "")
        self._chain_id = chain_id

    @property
    def name(self) -> str:
        """Unique identifier."""
        return "etherscan"

    def initial_state(self, addresses: list[str]) -> None:
        """Single-page retrieval carries no continuation state."""
        return None

    async def fetch_page(
        self,
        addresses: list[str],
        state: None,
    ) -> dict[str, Any]:
        """Fetch the address's complete transaction list."""
        params = {
            "chainid": str(self._chain_id),
            "module": "account",
            "action": "txlist",
            "address": addresses[0],
            "sort": "desc",
        }
        if self._api_key:
            params["apikey"] = self._api_key

        response = await self._make_request(self.V2_API_URL, params=params)
        return self._unwrap(response, addresses[0])

    def _unwrap(self, response: dict[str, Any], address: str) -> dict[str, Any]:
        """Check the `{"status", "message", "result"}` envelope."""
        status = str(response.get("status", "0"))
        message = str(response.get("message", ""))
        result = response.get("result")

        if status == "1" and isinstance(result, list):
            return response

        if status == "0" and message in self.EMPTY_MESSAGES:
            return {"status": "1", "message": message, "result": []}

        # Errors put their description in `result` as a string
        detail = result if isinstance(result, str) else message
        raise FetchFailure(
            message=f"Etherscan API error: {detail or 'unknown error'}",
            adapter_name=self.name,
            network=self.descriptor.key,
            addresses=[address],
            response_body=str(response)[:500],
        )

    def parse_page(
        self,
        raw_page: dict[str, Any],
        addresses: list[str],
        state: None,
    ) -> Page[None]:
        """Keep successful entries sent to the queried address."""
        address = addresses[0]
        wanted = address.lower()

        transfers = []
        for entry in raw_page["result"]:
            if (entry.get("to") or "").lower() != wanted:
                continue
            if str(entry.get("isError", "0")) == "1":
                continue
            timestamp = int(entry["timeStamp"])
            transfers.append(
                RawTransfer(
                    network=self.descriptor.key,
                    address=address,
                    amount=self._normalize_amount(entry["value"], "value"),
                    timestamp=timestamp,
                    date=date_from_epoch(timestamp),
                    tx_hash=entry["hash"],
                )
            )

        return Page(transfers=transfers, has_more=False)
