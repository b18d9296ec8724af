"""
Price Data Models.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union


DateLike = Union[date, str]


@dataclass(frozen=True)
class CurrencyPair:
    """Base/quote currency codes, e.g. BTC/USD."""
    base: str
    quote: str

    def __post_init__(self) -> None:
        if not self.base or not self.quote:
            raise ValueError("Currency pair needs both a base and a quote code")
        object.__setattr__(self, "base", self.base.upper())
        object.__setattr__(self, "quote", self.quote.upper())

    @classmethod
    def of(cls, value: Union["CurrencyPair", tuple[str, str]]) -> "CurrencyPair":
        """Accept a pair or a (base, quote) tuple."""
        if isinstance(value, CurrencyPair):
            return value
        base, quote = value
        return cls(base, quote)

    @property
    def symbol(self) -> str:
        """Dash-joined symbol, e.g. BTC-USD."""
        return f"{self.base}-{self.quote}"

    def __str__(self) -> str:
        return self.symbol


def format_date(at_date: Optional[DateLike]) -> Optional[str]:
    """YYYY-MM-DD form of a date, validating strings."""
    if at_date is None:
        return None
    if isinstance(at_date, date):
        return at_date.strftime("%Y-%m-%d")
    return date.fromisoformat(at_date[:10]).strftime("%Y-%m-%d")
