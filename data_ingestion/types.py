"""
Data Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the ingestion layer.

- Provider configuration
- Raw provider records
- Ingestion cycle results and metrics

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures where possible
- Clear typing for all fields
- No business logic
- Serializable for monitoring

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


# =============================================================
# ENUMS
# =============================================================

class IngestionStatus(str, Enum):
    """Outcome of one ingestion cycle."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailureReason(str, Enum):
    """Why an ingestion cycle aborted."""
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    ASSET_NOT_FOUND = "asset_not_found"
    SCORE_INPUT_INVALID = "score_input_invalid"
    STORE_UNAVAILABLE = "store_unavailable"
    UNEXPECTED = "unexpected"


# =============================================================
# CONFIGURATION TYPES
# =============================================================

@dataclass(frozen=True)
class CoinGeckoConfig:
    """Configuration for the CoinGecko client."""
    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: Optional[str] = None
    vs_currency: str = "usd"
    timeout_seconds: float = 10.0
    source_name: str = "CoinGecko"


# =============================================================
# RAW DATA TYPES
# =============================================================

@dataclass(frozen=True)
class RawMarketData:
    """One per-asset record from the provider's markets endpoint."""
    asset_id: str
    symbol: str
    name: str
    price_usd: float
    market_cap_usd: float
    volume_24h_usd: float
    last_updated: Optional[datetime] = None


# =============================================================
# INGESTION RESULT TYPES
# =============================================================

@dataclass
class IngestionResult:
    """Result of a single ingestion cycle."""
    cycle_id: UUID = field(default_factory=uuid4)
    asset_id: str = ""
    status: IngestionStatus = IngestionStatus.SUCCESS

    observation_id: Optional[int] = None
    score: Optional[float] = None

    failure_reason: Optional[FailureReason] = None
    error: Optional[str] = None

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == IngestionStatus.SUCCESS

    def mark_complete(self, completed_at: datetime) -> None:
        """Mark the cycle as complete and calculate duration."""
        self.completed_at = completed_at
        if self.started_at:
            delta = completed_at - self.started_at
            self.duration_seconds = delta.total_seconds()

    def mark_failed(self, reason: FailureReason, error: str) -> None:
        """Mark the cycle as failed."""
        self.status = IngestionStatus.FAILED
        self.failure_reason = reason
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        return {
            "cycle_id": str(self.cycle_id),
            "asset_id": self.asset_id,
            "status": self.status.value,
            "observation_id": self.observation_id,
            "score": self.score,
            "failure_reason": self.failure_reason.value if self.failure_reason else None,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class IngestionMetrics:
    """Aggregated counters for the ingestion job."""
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    skipped_runs: int = 0

    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    last_error: Optional[str] = None

    failures_by_reason: Dict[str, int] = field(default_factory=dict)

    def record_result(self, result: IngestionResult) -> None:
        """Record an ingestion result."""
        self.total_runs += 1
        self.last_run_at = result.completed_at

        if result.status == IngestionStatus.SUCCESS:
            self.successful_runs += 1
            self.last_success_at = result.completed_at
        elif result.status == IngestionStatus.FAILED:
            self.failed_runs += 1
            self.last_failure_at = result.completed_at
            self.last_error = result.error
            if result.failure_reason:
                key = result.failure_reason.value
                self.failures_by_reason[key] = self.failures_by_reason.get(key, 0) + 1
        else:
            self.skipped_runs += 1

    def to_dict(self) -> Dict[str, Any]:
        def iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "total_runs": self.total_runs,
            "successful_runs": self.successful_runs,
            "failed_runs": self.failed_runs,
            "skipped_runs": self.skipped_runs,
            "last_run_at": iso(self.last_run_at),
            "last_success_at": iso(self.last_success_at),
            "last_failure_at": iso(self.last_failure_at),
            "last_error": self.last_error,
            "failures_by_reason": dict(self.failures_by_reason),
        }
