"""
Orchestrator - Income Pipeline.

============================================================
RESPONSIBILITY
============================================================
Runs every configured address group end to end.

- Start each network's current-price lookup immediately
- Fetch, price and aggregate each address group concurrently
- Turn a failed group into a GroupFailure, never an exception
- Share one HTTP session between adapters and the price source

============================================================
USAGE
============================================================
async with IncomePipeline(NetworkRegistry.default()) as pipeline:
    records = await pipeline.run(config)

============================================================
"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence, Tuple, Union

import aiohttp

from income_adapters.base import BaseIncomeAdapter
from income_adapters.exceptions import FetchFailure
from income_adapters.models import NetworkDescriptor
from income_adapters.registry import NetworkRegistry
from price_sources.base import BasePriceSource
from price_sources.exceptions import PriceUnavailable
from price_sources.models import CurrencyPair
from price_sources.providers import CoinbasePriceSource
from valuation.engine import ValuationEngine
from valuation.models import DroppedTransfer, ResultRecord

from .config import DEFAULT_REQUEST_TIMEOUT, IncomeConfig
from .models import GroupFailure, PipelineReport


logger = logging.getLogger(__name__)


AddressGroup = Tuple[str, ...]
GroupOutcome = Tuple[Union[ResultRecord, GroupFailure], List[DroppedTransfer]]


# ============================================================
# INCOME PIPELINE
# ============================================================

class IncomePipeline:
    """
    Values the inbound transfers of every configured address.

    Batch-capable networks are fetched as one group holding all of
    their addresses; every other network gets one group per address.
    Groups of all networks run concurrently and are awaited together.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        price_source: Optional[BasePriceSource] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._registry = registry
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._price_source = price_source
        self._owns_price_source = price_source is None

    @property
    def registry(self) -> NetworkRegistry:
        return self._registry

    # --------------------------------------------------------
    # Public API
    # --------------------------------------------------------

    async def run(self, config: IncomeConfig) -> List[ResultRecord]:
        """
        Run every address group and return the successful records.

        Failed groups are logged and omitted. Nothing is raised for them.
        """
        report = await self.run_detailed(config)
        return report.records

    async def run_detailed(self, config: IncomeConfig) -> PipelineReport:
        """Run every address group and return records, failures and drops."""
        report = PipelineReport()
        started = time.monotonic()

        session = await self._get_session()
        price_source = self._get_price_source(session)
        engine = ValuationEngine(price_source)
        api_keys = config.api_key_map()

        adapters: List[BaseIncomeAdapter] = []
        price_tasks: List[asyncio.Task] = []
        group_runs = []

        try:
            for network_key, addresses in config.addresses.items():
                descriptor = self._registry.get(network_key)
                adapter = self._registry.create_adapter(
                    network_key,
                    session=session,
                    timeout=self._timeout,
                    api_keys=api_keys,
                )
                adapters.append(adapter)

                price_task = asyncio.create_task(
                    price_source.current_price(CurrencyPair(descriptor.code, config.currency))
                )
                price_tasks.append(price_task)

                for group in self.address_groups(descriptor, addresses):
                    group_runs.append(
                        self._run_group(engine, adapter, descriptor, group, config.currency, price_task)
                    )

            logger.info(
                f"Running {len(group_runs)} address group(s) across "
                f"{len(adapters)} network(s) ({', '.join(config.networks)}) in {config.currency}"
            )
            outcomes: List[GroupOutcome] = await asyncio.gather(*group_runs)

        finally:
            for task in price_tasks:
                if not task.done():
                    task.cancel()
                elif not task.cancelled():
                    # Consume failures no group awaited
                    task.exception()
            for adapter in adapters:
                await adapter.close()

        for outcome, dropped in outcomes:
            if isinstance(outcome, GroupFailure):
                report.failures.append(outcome)
            else:
                report.records.append(outcome)
            report.dropped.extend(dropped)

        report.complete()
        logger.info(
            f"Pipeline finished: {len(report.records)} record(s), "
            f"{len(report.failures)} failed group(s), "
            f"{len(report.dropped)} dropped transfer(s) "
            f"({time.monotonic() - started:.2f}s)"
        )
        return report

    @staticmethod
    def address_groups(
        descriptor: NetworkDescriptor,
        addresses: Sequence[str],
    ) -> List[AddressGroup]:
        """Split a network's addresses into fetch groups."""
        unique = tuple(dict.fromkeys(addresses))
        if descriptor.multi_address:
            return [unique]
        return [(address,) for address in unique]

    # --------------------------------------------------------
    # Group Execution
    # --------------------------------------------------------

    async def _run_group(
        self,
        engine: ValuationEngine,
        adapter: BaseIncomeAdapter,
        descriptor: NetworkDescriptor,
        group: AddressGroup,
        currency: str,
        current_price: "asyncio.Task",
    ) -> GroupOutcome:
        addresses = list(group)
        fetch_arg = addresses if descriptor.multi_address else addresses[0]

        try:
            transfers = await adapter.fetch_inbound_transfers(fetch_arg)
            valued, dropped = await engine.value_transfers(transfers, descriptor, currency)
            record = await engine.build_result(
                valued,
                descriptor,
                currency,
                current_price,
                address_group=group,
            )
        except (FetchFailure, PriceUnavailable) as e:
            logger.error(
                f"[{descriptor.key}] Omitting address group {', '.join(group)}: {e}"
            )
            return GroupFailure.from_error(descriptor.key, group, e), []
        except Exception as e:
            logger.error(
                f"[{descriptor.key}] Unexpected error for address group "
                f"{', '.join(group)} - {type(e).__name__}: {e}",
                exc_info=True,
            )
            return GroupFailure.from_error(descriptor.key, group, e), []

        return record, dropped

    # --------------------------------------------------------
    # Resources
    # --------------------------------------------------------

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the shared HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={
                    "Accept": "application/json",
                    "User-Agent": "MiningIncomeValuation/1.0",
                },
            )
            self._owns_session = True
        return self._session

    def _get_price_source(self, session: aiohttp.ClientSession) -> BasePriceSource:
        if self._price_source is None:
            self._price_source = CoinbasePriceSource(timeout=self._timeout, session=session)
            self._owns_price_source = True
        return self._price_source

    async def close(self) -> None:
        """Close owned resources."""
        if self._owns_price_source and self._price_source is not None:
            await self._price_source.close()
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "IncomePipeline":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
