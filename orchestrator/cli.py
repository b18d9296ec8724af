"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the income valuation pipeline.

- Provides argparse-based CLI
- Loads configuration from file, CLI and environment (.env)
- Writes the report to stdout or a file, logs to stderr
- Entry point for the application

============================================================
EXIT CODES
============================================================
0   - Report written (failed groups are logged, not fatal)
1   - Unexpected fatal error
2   - Invalid arguments or configuration
130 - Interrupted

============================================================
USAGE
============================================================
mining-income --config config.yaml
mining-income --config config.json --currency EUR --format json
mining-income --summary --output income.csv

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, TextIO

from dotenv import find_dotenv, load_dotenv

from income_adapters.registry import NetworkRegistry
from reporting import render_summary, write_csv, write_json

from .config import (
    LOG_LEVELS,
    OUTPUT_FORMATS,
    ConfigurationError,
    IncomeConfig,
    RuntimeSettings,
    load_config,
)
from .models import PipelineReport
from .pipeline import IncomePipeline


logger = logging.getLogger("orchestrator")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


# ============================================================
# LOGGING
# ============================================================

def setup_logging(level: str = "WARNING", log_format: str = "text") -> logging.Logger:
    """
    Set up logging on stderr so stdout carries only the report.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("orchestrator")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser(defaults: Optional[RuntimeSettings] = None) -> argparse.ArgumentParser:
    """
    Create the argument parser.

    Args:
        defaults: Settings supplying option defaults (environment)
    """
    defaults = defaults or RuntimeSettings()

    parser = argparse.ArgumentParser(
        prog="mining-income",
        description="Value mined cryptocurrency at the price on the day it was received",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Networks:
  bitcoin   - blockchain.info, all addresses in one batch
  litecoin  - BlockCypher, one address at a time
  ethereum  - Etherscan, requires an API key

Examples:
  %(prog)s --config config.yaml                  # CSV report on stdout
  %(prog)s --config config.json --format json    # Full JSON report
  %(prog)s --currency EUR --summary -o out.csv   # EUR values, totals on stderr
        """
    )

    # --------------------------------------------------------
    # Input Options
    # --------------------------------------------------------
    input_group = parser.add_argument_group("Input Options")

    input_group.add_argument(
        "--config", "-c",
        type=str,
        default=defaults.config_path,
        metavar="PATH",
        help="YAML or JSON configuration file (default: $MINING_INCOME_CONFIG or config.yaml)",
    )

    input_group.add_argument(
        "--env-file",
        type=str,
        metavar="PATH",
        help="Load API keys from this .env file (default: search for .env)",
    )

    input_group.add_argument(
        "--currency",
        type=str,
        default=defaults.currency,
        metavar="CODE",
        help="Target fiat currency, overrides the configuration file (env: MINING_INCOME_CURRENCY)",
    )

    # --------------------------------------------------------
    # Output Options
    # --------------------------------------------------------
    output_group = parser.add_argument_group("Output Options")

    output_group.add_argument(
        "--format", "-f",
        dest="output_format",
        type=str,
        choices=OUTPUT_FORMATS,
        default="csv",
        help="Report format (default: csv)",
    )

    output_group.add_argument(
        "--output", "-o",
        type=str,
        metavar="PATH",
        help="Write the report to a file instead of stdout",
    )

    output_group.add_argument(
        "--summary",
        action="store_true",
        help="Print per-network totals to stderr",
    )

    # --------------------------------------------------------
    # Network Options
    # --------------------------------------------------------
    network_group = parser.add_argument_group("Network Options")

    network_group.add_argument(
        "--timeout",
        type=float,
        default=defaults.request_timeout,
        metavar="SECONDS",
        help=f"Per-request timeout in seconds (default: {defaults.request_timeout:g})",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default="text",
        help="Logging format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 1.0.0",
    )

    return parser


# ============================================================
# CLI SETTINGS BUILDER
# ============================================================

def build_settings(args: argparse.Namespace) -> RuntimeSettings:
    """
    Build runtime settings from CLI arguments.

    Args:
        args: Parsed arguments

    Returns:
        RuntimeSettings instance
    """
    return RuntimeSettings(
        config_path=args.config,
        currency=args.currency,
        request_timeout=args.timeout,
        output_format=args.output_format,
        output_path=args.output,
        summary=args.summary,
        log_level=args.log_level,
        log_format=args.log_format,
    )


# ============================================================
# OUTPUT
# ============================================================

def write_report(report: PipelineReport, settings: RuntimeSettings, stream: TextIO) -> None:
    """Write the report in the selected format."""
    if settings.output_format == "json":
        write_json(report, stream)
    else:
        write_csv(report.records, stream)


def emit_report(report: PipelineReport, settings: RuntimeSettings) -> None:
    """Write the report to its destination and the summary to stderr."""
    if settings.output_path:
        with open(settings.output_path, "w", encoding="utf-8", newline="") as f:
            write_report(report, settings, f)
        logger.info(f"Report written to {settings.output_path}")
    else:
        write_report(report, settings, sys.stdout)
        sys.stdout.flush()

    if settings.summary:
        print(render_summary(report.records, report.failures), file=sys.stderr)


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(
    settings: RuntimeSettings,
    config: IncomeConfig,
    registry: NetworkRegistry,
) -> int:
    """
    Async main entry point.

    Args:
        settings: Runtime settings
        config: Validated configuration
        registry: Network registry

    Returns:
        Exit code
    """
    async with IncomePipeline(registry, timeout=settings.request_timeout) as pipeline:
        report = await pipeline.run_detailed(config)

    emit_report(report, settings)
    return EXIT_OK


def load_environment(argv: Optional[List[str]] = None) -> None:
    """Load --env-file if given, otherwise the nearest .env file."""
    env_parser = argparse.ArgumentParser(add_help=False)
    env_parser.add_argument("--env-file", type=str)
    env_args, _ = env_parser.parse_known_args(argv)

    if env_args.env_file:
        load_dotenv(env_args.env_file)
    else:
        load_dotenv(find_dotenv(usecwd=True))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    # .env must be loaded before the environment supplies option defaults
    load_environment(argv)

    try:
        defaults = RuntimeSettings.from_env()
    except ValueError as e:
        print(f"Error: invalid environment setting: {e}", file=sys.stderr)
        return EXIT_CONFIG

    parser = create_parser(defaults)
    args = parser.parse_args(argv)

    settings = build_settings(args)
    setup_logging(settings.log_level, settings.log_format)

    # Validate arguments
    errors = settings.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return EXIT_CONFIG

    registry = NetworkRegistry.default()

    try:
        config = load_config(settings.config_path, registry)
        if settings.currency:
            config = config.with_currency(settings.currency)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for error in e.errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_CONFIG

    try:
        return asyncio.run(async_main(settings, config, registry))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return EXIT_FATAL


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
