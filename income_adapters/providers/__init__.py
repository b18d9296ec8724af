"""
Providers package - Inbound transfer adapter implementations.
"""

from income_adapters.providers.blockchain_info import BlockchainInfoAdapter
from income_adapters.providers.blockcypher import BlockCypherAdapter
from income_adapters.providers.etherscan import EtherscanAdapter


__all__ = [
    "BlockchainInfoAdapter",
    "BlockCypherAdapter",
    "EtherscanAdapter",
]
