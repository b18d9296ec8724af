"""
Valuation Package.

Turns raw inbound transfers into valued transactions and per-group
result records.

Modules:
- models: ValuedTransaction, DroppedTransfer, ResultRecord
- engine: ValuationEngine
"""

from .engine import ValuationEngine
from .models import (
    DroppedTransfer,
    ResultRecord,
    ValuedTransaction,
    to_display_amount,
)


__all__ = [
    "ValuationEngine",
    "ValuedTransaction",
    "DroppedTransfer",
    "ResultRecord",
    "to_display_amount",
]
