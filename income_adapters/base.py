"""
Base Income Adapter - Abstract interface for all transfer providers.

All adapters MUST:
- Return inbound transfers only (value received by the queried address)
- Normalize amounts to an exact integer count of the smallest unit
- Report any transport or decode problem as FetchFailure
- Fetch pages strictly in sequence
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, Optional, Sequence, TypeVar, Union

import aiohttp

from income_adapters.exceptions import (
    FetchFailure,
    IncomeAdapterError,
    NormalizationError,
)
from income_adapters.models import NetworkDescriptor, RawTransfer


logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")

AddressGroup = Union[str, Sequence[str]]

# Largest integer a float represents exactly.
_MAX_EXACT_FLOAT = 2 ** 53


@dataclass
class Page(Generic[StateT]):
    """One parsed provider page plus the state needed to request the next one."""
    transfers: list[RawTransfer] = field(default_factory=list)
    has_more: bool = False
    next_state: Optional[StateT] = None


class BaseIncomeAdapter(ABC, Generic[StateT]):
    """
    Abstract base class for all inbound transfer adapters.

    The pagination loop lives here. Each adapter implements:
    1. initial_state() - Continuation state for the first page
    2. fetch_page() - Request one raw page from the provider
    3. parse_page() - Turn a raw page into transfers and the next state

    Features:
    - Explicit, sequential pagination loop (no recursion)
    - Shared or owned aiohttp session
    - Bounded per-request timeout
    """

    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        descriptor: NetworkDescriptor,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._descriptor = descriptor
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._request_count = 0

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this adapter."""
        pass

    @property
    def descriptor(self) -> NetworkDescriptor:
        """Network served by this adapter."""
        return self._descriptor

    @property
    def request_count(self) -> int:
        """Number of HTTP requests issued so far."""
        return self._request_count

    @abstractmethod
    def initial_state(self, addresses: list[str]) -> Optional[StateT]:
        """Continuation state used for the first page."""
        pass

    @abstractmethod
    async def fetch_page(
        self,
        addresses: list[str],
        state: Optional[StateT],
    ) -> dict[str, Any]:
        """
        Fetch one raw page from the provider API.

        Raises:
            FetchFailure: If the request or decoding fails
        """
        pass

    @abstractmethod
    def parse_page(
        self,
        raw_page: dict[str, Any],
        addresses: list[str],
        state: Optional[StateT],
    ) -> Page[StateT]:
        """
        Extract inbound transfers and the continuation state from a page.

        Raises:
            NormalizationError: If an entry cannot be normalized
        """
        pass

    async def fetch_inbound_transfers(
        self,
        address_or_group: AddressGroup,
    ) -> list[RawTransfer]:
        """
        Fetch every inbound transfer for an address or address group.

        Returns an empty list for addresses without inbound transfers.

        Raises:
            FetchFailure: If any page fails; no partial result is returned
        """
        addresses = self._as_group(address_or_group)
        network = self._descriptor.key

        transfers: list[RawTransfer] = []
        state = self.initial_state(addresses)
        pages = 0
        started = time.monotonic()

        try:
            while True:
                raw_page = await self.fetch_page(addresses, state)
                page = self.parse_page(raw_page, addresses, state)
                pages += 1
                transfers.extend(page.transfers)

                logger.debug(
                    f"[{self.name}] Page {pages}: {len(page.transfers)} inbound "
                    f"transfers (has_more={page.has_more})"
                )

                if not page.has_more:
                    break
                state = page.next_state

        except FetchFailure as e:
            e.network = e.network or network
            e.adapter_name = e.adapter_name or self.name
            if not e.addresses:
                e.addresses = list(addresses)
            raise
        except IncomeAdapterError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError, ArithmeticError, OSError) as e:
            raise FetchFailure(
                message=f"Malformed response: {e!r}",
                adapter_name=self.name,
                network=network,
                addresses=list(addresses),
                original_error=e,
            ) from e

        logger.info(
            f"[{self.name}] Fetched {len(transfers)} inbound transfers for "
            f"{len(addresses)} address(es) in {pages} page(s) "
            f"({time.monotonic() - started:.2f}s)"
        )
        return transfers

    def _as_group(self, address_or_group: AddressGroup) -> list[str]:
        """Normalize the argument to a non-empty list of addresses."""
        if isinstance(address_or_group, str):
            addresses = [address_or_group]
        else:
            addresses = list(address_or_group)

        if not addresses:
            raise ValueError(f"[{self.name}] Address group must not be empty")
        if len(addresses) > 1 and not self._descriptor.multi_address:
            raise ValueError(
                f"[{self.name}] {self._descriptor.name} accepts one address per call, "
                f"got {len(addresses)}"
            )
        return addresses

    # ─────────────────────────────────────────────────────────────
    # Normalization Helpers
    # ─────────────────────────────────────────────────────────────

    def _normalize_amount(self, value: Any, field_name: str) -> int:
        """Convert a provider amount to an exact smallest-unit integer."""
        if isinstance(value, bool):
            raise self._normalization_error(value, field_name, "boolean amount")

        if isinstance(value, int):
            amount = value
        elif isinstance(value, float):
            if not value.is_integer() or abs(value) >= _MAX_EXACT_FLOAT:
                raise self._normalization_error(value, field_name, "inexact float amount")
            amount = int(value)
        elif isinstance(value, (str, Decimal)):
            try:
                parsed = Decimal(str(value).strip())
            except InvalidOperation as e:
                raise self._normalization_error(value, field_name, "non-numeric amount", e)
            if not parsed.is_finite() or parsed != parsed.to_integral_value():
                raise self._normalization_error(value, field_name, "fractional amount")
            amount = int(parsed)
        else:
            raise self._normalization_error(value, field_name, "unsupported amount type")

        if amount < 0:
            raise self._normalization_error(value, field_name, "negative amount")
        return amount

    def _normalization_error(
        self,
        value: Any,
        field_name: str,
        reason: str,
        original_error: Optional[Exception] = None,
    ) -> NormalizationError:
        return NormalizationError(
            message=f"Cannot normalize {field_name}={value!r}: {reason}",
            adapter_name=self.name,
            network=self._descriptor.key,
            raw_data=value,
            field_name=field_name,
            original_error=original_error,
        )

    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": "MiningIncomeValuation/1.0",
        }

    async def _make_request(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """Make a GET request and decode the JSON body."""
        session = await self._get_session()
        self._request_count += 1

        try:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise FetchFailure(
                        message=f"HTTP {response.status}",
                        adapter_name=self.name,
                        network=self._descriptor.key,
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=url,
                    )

                data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise FetchFailure(
                message=f"Request timed out after {self._timeout}s",
                adapter_name=self.name,
                network=self._descriptor.key,
                request_url=url,
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            raise FetchFailure(
                message=f"Connection error: {e}",
                adapter_name=self.name,
                network=self._descriptor.key,
                request_url=url,
                original_error=e,
            ) from e
        except ValueError as e:
            raise FetchFailure(
                message=f"Invalid JSON response: {e}",
                adapter_name=self.name,
                network=self._descriptor.key,
                request_url=url,
                original_error=e,
            ) from e

        if not isinstance(data, dict):
            raise FetchFailure(
                message=f"Unexpected response type {type(data).__name__}",
                adapter_name=self.name,
                network=self._descriptor.key,
                request_url=url,
            )
        return data

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseIncomeAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, network={self._descriptor.key})>"
