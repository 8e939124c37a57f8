"""
Pydantic schemas for Dashboard API responses.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from storage.types import Observation


# =======================
# METRICS
# =======================

class ObservationResponse(BaseModel):
    """One observation as served to the charting dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    symbol: str
    source: str
    price_usd: float = Field(alias="priceUSD")
    market_cap_usd: float = Field(alias="marketCapUSD")
    volume_24h_usd: float = Field(alias="volume24hUSD")
    score: float = Field(ge=0, le=100)
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_observation(cls, observation: Observation) -> "ObservationResponse":
        return cls(
            id=observation.id,
            symbol=observation.symbol,
            source=observation.source,
            price_usd=observation.price_usd,
            market_cap_usd=observation.market_cap_usd,
            volume_24h_usd=observation.volume_24h_usd,
            score=observation.score,
            created_at=observation.created_at,
        )


# =======================
# HEALTH
# =======================

class HealthResponse(BaseModel):
    status: str  # ok, degraded
    database: bool
    observation_count: Optional[int] = None
    ingestion: Optional[Dict[str, Any]] = None
    last_cycle: Optional[Dict[str, Any]] = None
    timestamp: datetime
