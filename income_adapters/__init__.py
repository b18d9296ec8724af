"""
Income Adapters Package - Inbound transfer retrieval per blockchain.

Features:
- One adapter per network behind a single fetch contract
- Heterogeneous pagination (offset, cursor, single page)
- Exact integer amounts in the network's smallest unit
- Explicit FetchFailure on any transport or decode problem

Quick Start:
    from income_adapters import NetworkRegistry

    async def received_bitcoin(addresses):
        registry = NetworkRegistry.default()
        async with registry.create_adapter("bitcoin") as adapter:
            return await adapter.fetch_inbound_transfers(addresses)

Adding New Adapters:
    class NewAdapter(BaseIncomeAdapter[int]):
        @property
        def name(self) -> str:
            return "new_adapter"

        def initial_state(self, addresses): ...
        async def fetch_page(self, addresses, state): ...
        def parse_page(self, raw_page, addresses, state): ...
"""

from income_adapters.base import AddressGroup, BaseIncomeAdapter, Page
from income_adapters.exceptions import (
    FetchFailure,
    IncomeAdapterError,
    NetworkNotSupportedError,
    NormalizationError,
)
from income_adapters.models import (
    Explorer,
    Network,
    NetworkDescriptor,
    RawTransfer,
    date_from_epoch,
)
from income_adapters.providers import (
    BlockchainInfoAdapter,
    BlockCypherAdapter,
    EtherscanAdapter,
)
from income_adapters.registry import (
    BITCOIN,
    ETHEREUM,
    LITECOIN,
    NetworkRegistry,
)


__version__ = "1.0.0"

__all__ = [
    # Base
    "BaseIncomeAdapter",
    "Page",
    "AddressGroup",

    # Models
    "Explorer",
    "Network",
    "NetworkDescriptor",
    "RawTransfer",
    "date_from_epoch",

    # Exceptions
    "IncomeAdapterError",
    "FetchFailure",
    "NormalizationError",
    "NetworkNotSupportedError",

    # Providers
    "BlockchainInfoAdapter",
    "BlockCypherAdapter",
    "EtherscanAdapter",

    # Registry
    "NetworkRegistry",
    "BITCOIN",
    "LITECOIN",
    "ETHEREUM",
]
