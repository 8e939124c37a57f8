"""
Storage - Domain Types.

Plain immutable values handed across the store boundary, so
callers never hold ORM instances bound to a session.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class NewObservation:
    """An observation ready to be written; id and created_at come from the store."""
    symbol: str
    source: str
    price_usd: float
    market_cap_usd: float
    volume_24h_usd: float
    score: float


@dataclass(frozen=True)
class Observation:
    """A persisted, immutable observation."""
    id: int
    symbol: str
    source: str
    price_usd: float
    market_cap_usd: float
    volume_24h_usd: float
    score: float
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation used by the query endpoint."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "source": self.source,
            "priceUSD": self.price_usd,
            "marketCapUSD": self.market_cap_usd,
            "volume24hUSD": self.volume_24h_usd,
            "score": self.score,
            "createdAt": self.created_at.isoformat(),
        }
