"""
Orchestrator Package - Income Valuation Coordination Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Wires configuration, network adapters, the price source and the
valuation engine into a single run, and exposes the CLI.

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                   IncomePipeline                    |
    |-----------------------------------------------------|
    |  IncomeConfig    |  Addresses, currency, API keys   |
    |  NetworkRegistry |  Descriptor + adapter per network|
    |  ValuationEngine |  Receipt-date and current prices |
    |  PipelineReport  |  Records, failures, drops        |
    |  CLI             |  Command-line interface          |
    +-----------------------------------------------------+

    config --> address groups --> fetch --> price --> record

============================================================
USAGE
============================================================
    from income_adapters import NetworkRegistry
    from orchestrator import IncomePipeline, load_config

    registry = NetworkRegistry.default()
    config = load_config("config.yaml", registry)

    async with IncomePipeline(registry) as pipeline:
        records = await pipeline.run(config)

============================================================
"""

from .config import (
    ConfigurationError,
    IncomeConfig,
    RuntimeSettings,
    config_from_dict,
    load_config,
)
from .models import GroupFailure, PipelineReport
from .pipeline import IncomePipeline


__all__ = [
    # Config
    "ConfigurationError",
    "IncomeConfig",
    "RuntimeSettings",
    "config_from_dict",
    "load_config",

    # Models
    "GroupFailure",
    "PipelineReport",

    # Pipeline
    "IncomePipeline",
]
