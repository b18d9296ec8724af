"""
Orchestrator - Configuration.

============================================================
RESPONSIBILITY
============================================================
Load and validate what a run needs before any request is made.

- IncomeConfig: addresses per network, target currency, API keys
- RuntimeSettings: request timeout, output format, logging
- load_config(): YAML or JSON file + environment credentials

Every problem found here is a ConfigurationError and is fatal
at startup.

============================================================
FILE FORMAT
============================================================
currency: USD
addresses:
  bitcoin: [1A..., 1B...]
  litecoin: L...
  ethereum: [0x...]
api_keys:
  etherscan: KEY

============================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from income_adapters.registry import NetworkRegistry


DEFAULT_CURRENCY = "USD"
DEFAULT_REQUEST_TIMEOUT = 30.0
ETHERSCAN_KEY_ENV_VAR = "ETHERSCAN_API_KEY"

OUTPUT_FORMATS = ("csv", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================
# EXCEPTIONS
# ============================================================

class ConfigurationError(Exception):
    """Invalid or incomplete run configuration."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "path": self.path,
            "errors": self.errors,
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"[config={self.path}]")
        if self.errors:
            parts.append("; ".join(self.errors))
        return " ".join(parts)


# ============================================================
# FILE SCHEMA
# ============================================================

def _currency_code(value: str) -> str:
    value = value.strip().upper()
    if not value:
        raise ValueError("currency must not be blank")
    return value


class ApiKeys(BaseModel):
    """Credentials for providers that require one."""
    model_config = ConfigDict(extra="allow")

    etherscan: Optional[str] = None


class IncomeConfig(BaseModel):
    """Validated contents of the configuration file."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    currency: str = DEFAULT_CURRENCY
    addresses: Dict[str, List[str]]
    api_keys: ApiKeys = Field(default_factory=ApiKeys, alias="apiKeys")

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        return _currency_code(value)

    @field_validator("addresses", mode="before")
    @classmethod
    def wrap_single_address(cls, value: Any) -> Any:
        # A single address may be given as a plain string
        if not isinstance(value, dict):
            return value

        wrapped = {}
        for network, addresses in value.items():
            if isinstance(addresses, (str, int)):
                addresses = [addresses]
            if isinstance(addresses, list) and any(isinstance(a, int) for a in addresses):
                # YAML reads unquoted 0x... addresses as hex integers
                raise ValueError(f"'{network}' addresses must be quoted strings")
            wrapped[network] = addresses
        return wrapped

    @field_validator("addresses")
    @classmethod
    def check_addresses(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        if not value:
            raise ValueError("at least one network must be configured")

        cleaned = {}
        for network, addresses in value.items():
            if not addresses:
                raise ValueError(f"'{network}' has no addresses")
            stripped = [a.strip() for a in addresses]
            if any(not a for a in stripped):
                raise ValueError(f"'{network}' contains a blank address")
            key = network.strip().lower()
            if key in cleaned:
                raise ValueError(f"network '{key}' is configured more than once")
            cleaned[key] = stripped
        return cleaned

    @property
    def networks(self) -> List[str]:
        """Configured network names in file order."""
        return list(self.addresses)

    def api_key_map(self) -> Dict[str, str]:
        """API keys as a plain mapping, unset keys omitted."""
        return {k: v for k, v in self.api_keys.model_dump().items() if v}

    def with_currency(self, currency: str) -> "IncomeConfig":
        """Copy of this configuration valued in another currency."""
        return self.model_copy(update={"currency": _currency_code(currency)})

    def check_networks(self, registry: NetworkRegistry) -> List[str]:
        """Validate against a registry, return list of errors."""
        errors = []

        for network in self.addresses:
            if network not in registry:
                errors.append(
                    f"Unknown network '{network}' "
                    f"(supported: {', '.join(registry.list_networks())})"
                )

        if "ethereum" in self.addresses and not self.api_keys.etherscan:
            errors.append(
                f"An Etherscan API key is required for ethereum "
                f"(api_keys.etherscan or {ETHERSCAN_KEY_ENV_VAR})"
            )

        return errors


# ============================================================
# RUNTIME SETTINGS
# ============================================================

@dataclass
class RuntimeSettings:
    """Settings that shape a run but not what it values."""

    config_path: str = "config.yaml"
    """Path of the configuration file."""

    currency: Optional[str] = None
    """Overrides the file's currency when set."""

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    """Per-request HTTP timeout in seconds."""

    output_format: str = "csv"
    """Report format (csv or json)."""

    output_path: Optional[str] = None
    """Report destination, stdout when unset."""

    summary: bool = False
    """Print per-network totals to stderr."""

    log_level: str = "WARNING"
    """Logging level."""

    log_format: str = "text"
    """Logging format (text or json)."""

    @classmethod
    def from_env(cls) -> "RuntimeSettings":
        """Load settings from environment variables."""
        return cls(
            config_path=os.getenv("MINING_INCOME_CONFIG", "config.yaml"),
            currency=os.getenv("MINING_INCOME_CURRENCY"),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT_SECONDS", str(DEFAULT_REQUEST_TIMEOUT))),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> List[str]:
        """Validate settings, return list of errors."""
        errors = []

        if self.request_timeout <= 0:
            errors.append("request_timeout must be positive")

        if self.output_format not in OUTPUT_FORMATS:
            errors.append(f"output_format must be one of {', '.join(OUTPUT_FORMATS)}")

        if self.currency is not None and not self.currency.strip():
            errors.append("currency must not be blank")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        return errors


# ============================================================
# LOADING
# ============================================================

def load_config(
    path: Union[str, Path],
    registry: Optional[NetworkRegistry] = None,
) -> IncomeConfig:
    """
    Load and validate a configuration file.

    JSON files are read by the same YAML loader. A missing Etherscan
    key falls back to the ETHERSCAN_API_KEY environment variable
    (populate it from a .env file with python-dotenv before calling).

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    path = Path(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration: {e}", path=str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse configuration: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping", path=str(path))

    return config_from_dict(data, registry, path=str(path))


def config_from_dict(
    data: Dict[str, Any],
    registry: Optional[NetworkRegistry] = None,
    path: Optional[str] = None,
) -> IncomeConfig:
    """
    Validate an already parsed configuration mapping.

    Raises:
        ConfigurationError: If the mapping is invalid
    """
    try:
        config = IncomeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            path=path,
            errors=[
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            ],
        ) from e

    if not config.api_keys.etherscan and os.getenv(ETHERSCAN_KEY_ENV_VAR):
        config = config.model_copy(update={
            "api_keys": config.api_keys.model_copy(
                update={"etherscan": os.environ[ETHERSCAN_KEY_ENV_VAR]},
            ),
        })

    errors = config.check_networks(registry or NetworkRegistry.default())
    if errors:
        raise ConfigurationError("Invalid configuration", path=path, errors=errors)

    return config
