"""
Income Adapter Exceptions - Custom exception hierarchy.

A failure while fetching one address group never escapes the pipeline;
it is converted into an explicit group failure by the caller.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class IncomeAdapterError(Exception):
    """Base exception for all income adapter errors."""

    def __init__(
        self,
        message: str,
        adapter_name: Optional[str] = None,
        network: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.adapter_name = adapter_name
        self.network = network
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "adapter_name": self.adapter_name,
            "network": self.network,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.adapter_name:
            parts.append(f"[adapter={self.adapter_name}]")
        if self.network:
            parts.append(f"[network={self.network}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class FetchFailure(IncomeAdapterError):
    """Transport, HTTP or decode error while retrieving transfers."""

    def __init__(
        self,
        message: str,
        adapter_name: Optional[str] = None,
        network: Optional[str] = None,
        addresses: Optional[list[str]] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        request_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, adapter_name, network, original_error, context)
        self.addresses = addresses or []
        self.status_code = status_code
        self.response_body = response_body
        self.request_url = request_url

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "addresses": self.addresses,
            "status_code": self.status_code,
            "response_body": self.response_body,
            "request_url": self.request_url,
        })
        return data

    def __str__(self) -> str:
        text = super().__str__()
        if self.addresses:
            text += f" [addresses={','.join(self.addresses)}]"
        return text


class NormalizationError(FetchFailure):
    """A provider entry could not be turned into a raw transfer."""

    def __init__(
        self,
        message: str,
        adapter_name: Optional[str] = None,
        network: Optional[str] = None,
        raw_data: Optional[Any] = None,
        field_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message,
            adapter_name=adapter_name,
            network=network,
            original_error=original_error,
            context=context,
        )
        self.raw_data = raw_data
        self.field_name = field_name

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "raw_data": str(self.raw_data)[:500] if self.raw_data is not None else None,
            "field_name": self.field_name,
        })
        return data


class NetworkNotSupportedError(IncomeAdapterError):
    """Requested network has no descriptor or adapter."""

    def __init__(
        self,
        message: str,
        network: Optional[str] = None,
        supported_networks: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, None, network, None, context)
        self.supported_networks = supported_networks or []

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["supported_networks"] = self.supported_networks
        return data
