"""
Data Ingestion - Base Market Data Client.

============================================================
PURPOSE
============================================================
Abstract capability the ingestion job depends on: fetch one
asset's raw market record from an external provider.

============================================================
DESIGN PRINCIPLES
============================================================
- All-or-nothing per call
- Every failure surfaces as ProviderUnavailable
- No state retained between calls

============================================================
"""

from abc import ABC, abstractmethod
from typing import Iterable

from core.exceptions import AssetNotFoundError
from data_ingestion.types import RawMarketData


class BaseMarketDataClient(ABC):
    """Abstract base class for market-data provider clients."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Literal provider identifier stored with each observation."""
        pass

    @abstractmethod
    async def fetch(self, asset_id: str) -> RawMarketData:
        """
        Fetch the market record for one asset.

        Args:
            asset_id: Provider-assigned asset identifier

        Returns:
            The asset's raw market record

        Raises:
            ProviderUnavailable: On any transport, status, parse or lookup failure
        """
        pass


def select_asset(
    records: Iterable[RawMarketData],
    asset_id: str,
    source: str = "",
) -> RawMarketData:
    """
    Select the record whose provider id equals asset_id exactly.

    Raises:
        AssetNotFoundError: If no record matches
    """
    for record in records:
        if record.asset_id == asset_id:
            return record
    raise AssetNotFoundError(asset_id, source=source or None)
