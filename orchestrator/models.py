"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Explicit outcome values produced by a pipeline run.

- GroupFailure: an address group that produced no record
- PipelineReport: records, group failures and dropped transfers

A run never raises for a partial failure. Callers inspect
the report to tell an empty result from a failed one.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from valuation.models import DroppedTransfer, ResultRecord


# ============================================================
# GROUP FAILURE
# ============================================================

@dataclass(frozen=True)
class GroupFailure:
    """An address group whose record was omitted."""

    network: str
    addresses: tuple
    error_type: str
    message: str

    @classmethod
    def from_error(
        cls,
        network: str,
        addresses,
        error: Exception,
    ) -> "GroupFailure":
        """Describe a group failure from the exception that caused it."""
        return cls(
            network=network,
            addresses=tuple(addresses),
            error_type=type(error).__name__,
            message=getattr(error, "message", str(error)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "network": self.network,
            "addresses": list(self.addresses),
            "error_type": self.error_type,
            "message": self.message,
        }


# ============================================================
# PIPELINE REPORT
# ============================================================

@dataclass
class PipelineReport:
    """Everything a pipeline run produced."""

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    records: List[ResultRecord] = field(default_factory=list)
    failures: List[GroupFailure] = field(default_factory=list)
    dropped: List[DroppedTransfer] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Get total duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    @property
    def success(self) -> bool:
        """True when no address group failed."""
        return not self.failures

    @property
    def transaction_count(self) -> int:
        return sum(r.transaction_count for r in self.records)

    def complete(self) -> None:
        """Mark the run as finished."""
        self.completed_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "records": [r.to_dict() for r in self.records],
            "failures": [f.to_dict() for f in self.failures],
            "dropped": [d.to_dict() for d in self.dropped],
        }
