"""
Network Registry - Immutable table of supported networks and their adapters.

Built once at startup and passed by reference into the pipeline.
"""

import logging
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

import aiohttp

from income_adapters.base import BaseIncomeAdapter
from income_adapters.exceptions import NetworkNotSupportedError
from income_adapters.models import Explorer, Network, NetworkDescriptor
from income_adapters.providers import (
    BlockchainInfoAdapter,
    BlockCypherAdapter,
    EtherscanAdapter,
)


logger = logging.getLogger(__name__)


BITCOIN = NetworkDescriptor(
    network=Network.BITCOIN,
    name="Bitcoin",
    code="BTC",
    decimals=8,
    explorer=Explorer(
        address_url="https://blockchain.info/address/",
        transaction_url="https://blockchain.info/tx/",
    ),
    multi_address=True,
)

LITECOIN = NetworkDescriptor(
    network=Network.LITECOIN,
    name="Litecoin",
    code="LTC",
    decimals=8,
    explorer=Explorer(
        address_url="https://live.blockcypher.com/ltc/address/",
        transaction_url="https://live.blockcypher.com/ltc/tx/",
    ),
)

ETHEREUM = NetworkDescriptor(
    network=Network.ETHEREUM,
    name="Ethereum",
    code="ETH",
    decimals=18,
    explorer=Explorer(
        address_url="https://etherscan.io/address/",
        transaction_url="https://etherscan.io/tx/",
    ),
)


# Builds an adapter for a descriptor given (session, timeout, api_keys)
AdapterFactory = Callable[
    [NetworkDescriptor, Optional[aiohttp.ClientSession], float, Mapping[str, str]],
    BaseIncomeAdapter,
]


def _blockchain_info(descriptor, session, timeout, api_keys):
    return BlockchainInfoAdapter(descriptor, timeout=timeout, session=session)


def _blockcypher(descriptor, session, timeout, api_keys):
    return BlockCypherAdapter(descriptor, timeout=timeout, session=session)


def _etherscan(descriptor, session, timeout, api_keys):
    return EtherscanAdapter(
        descriptor,
        api_key=api_keys.get("etherscan"),
        timeout=timeout,
        session=session,
    )


class NetworkRegistry:
    """
    Read-only registry of network descriptors and adapter factories.

    Usage:
        registry = NetworkRegistry.default()
        descriptor = registry.get("bitcoin")
        adapter = registry.create_adapter("bitcoin", session=session)
    """

    def __init__(
        self,
        entries: Iterable[tuple[NetworkDescriptor, AdapterFactory]],
    ) -> None:
        descriptors: dict[str, NetworkDescriptor] = {}
        factories: dict[str, AdapterFactory] = {}
        for descriptor, factory in entries:
            if descriptor.key in descriptors:
                raise ValueError(f"Network '{descriptor.key}' registered twice")
            descriptors[descriptor.key] = descriptor
            factories[descriptor.key] = factory

        self._descriptors = MappingProxyType(descriptors)
        self._factories = MappingProxyType(factories)

    @classmethod
    def default(cls) -> "NetworkRegistry":
        """Registry with every built-in network."""
        return cls([
            (BITCOIN, _blockchain_info),
            (LITECOIN, _blockcypher),
            (ETHEREUM, _etherscan),
        ])

    def get(self, network: str) -> NetworkDescriptor:
        """Get the descriptor of a network."""
        try:
            return self._descriptors[network]
        except KeyError:
            raise NetworkNotSupportedError(
                message=f"Network '{network}' is not supported",
                network=network,
                supported_networks=self.list_networks(),
            ) from None

    def create_adapter(
        self,
        network: str,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = BaseIncomeAdapter.DEFAULT_TIMEOUT,
        api_keys: Optional[Mapping[str, str]] = None,
    ) -> BaseIncomeAdapter:
        """Build the adapter serving a network."""
        descriptor = self.get(network)
        adapter = self._factories[network](descriptor, session, timeout, api_keys or {})
        logger.debug(f"Created adapter '{adapter.name}' for network '{network}'")
        return adapter

    def list_networks(self) -> list[str]:
        """List supported network names."""
        return list(self._descriptors)

    def __contains__(self, network: object) -> bool:
        return network in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)
