"""
Income Data Models - Network descriptors and raw inbound transfers.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union


class Network(Enum):
    """Supported blockchain networks."""
    BITCOIN = "bitcoin"
    LITECOIN = "litecoin"
    ETHEREUM = "ethereum"


@dataclass(frozen=True)
class Explorer:
    """Human-facing block explorer URL prefixes."""
    address_url: str
    transaction_url: str

    def address_link(self, address: str) -> str:
        """Link to the address view."""
        return f"{self.address_url}{address}"

    def transaction_link(self, tx_hash: str) -> str:
        """Link to the transaction view."""
        return f"{self.transaction_url}{tx_hash}"


@dataclass(frozen=True)
class NetworkDescriptor:
    """
    Static description of one supported blockchain.

    `decimals` is the exponent of the smallest-unit factor
    (8 for satoshi/litoshi, 18 for wei).
    """
    network: Network
    name: str
    code: str
    decimals: int
    explorer: Explorer
    multi_address: bool = False

    @property
    def key(self) -> str:
        """Configuration key of the network."""
        return self.network.value

    @property
    def factor(self) -> int:
        """Smallest units per display unit."""
        return 10 ** self.decimals

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "network": self.key,
            "name": self.name,
            "code": self.code,
            "decimals": self.decimals,
            "multi_address": self.multi_address,
            "explorer": {
                "address_url": self.explorer.address_url,
                "transaction_url": self.explorer.transaction_url,
            },
        }


Timestamp = Union[int, str]


@dataclass(frozen=True)
class RawTransfer:
    """
    One inbound transfer as reported by a provider.

    `amount` is an exact count of the network's smallest unit and
    `date` (YYYY-MM-DD, UTC) is the key for the historical price lookup.
    """
    network: str
    address: str
    amount: int
    timestamp: Timestamp
    date: str
    tx_hash: str

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Inbound transfer amount must be non-negative, got {self.amount}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "network": self.network,
            "address": self.address,
            "amount": self.amount,
            "timestamp": self.timestamp,
            "date": self.date,
            "tx_hash": self.tx_hash,
        }


def date_from_epoch(seconds: Union[int, str]) -> str:
    """UTC calendar date (YYYY-MM-DD) of an epoch timestamp in seconds."""
    moment = datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    return moment.strftime("%Y-%m-%d")
