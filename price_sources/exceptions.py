"""
Price Source Exceptions - Custom exception hierarchy for price sources.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class PriceSourceError(Exception):
    """Base exception for all price source errors."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "original_error": str(self.original_error) if self.original_error else None,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.source_name:
            parts.append(f"[source={self.source_name}]")
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class PriceUnavailable(PriceSourceError):
    """The source has no usable quote for a pair on a date."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        pair: Optional[str] = None,
        at_date: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, original_error, context)
        self.pair = pair
        self.at_date = at_date
        self.status_code = status_code
        self.response_body = response_body

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "pair": self.pair,
            "at_date": self.at_date,
            "status_code": self.status_code,
            "response_body": self.response_body,
        })
        return data

    def __str__(self) -> str:
        text = super().__str__()
        if self.pair:
            text += f" [pair={self.pair} date={self.at_date or 'current'}]"
        return text
