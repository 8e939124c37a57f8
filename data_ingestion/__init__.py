"""
Data Ingestion Package.

Fetches market data, scores it and persists one observation
per scheduled tick.

Sub-packages:
- collectors: Provider clients

Modules:
- ingestion_job: One fetch -> score -> persist cycle
- scheduler: Fixed-interval ticker driving the job
"""

from data_ingestion.collectors import BaseMarketDataClient, CoinGeckoClient, select_asset
from data_ingestion.ingestion_job import IngestionJob, IngestionJobConfig
from data_ingestion.scheduler import IngestionTicker
from data_ingestion.types import (
    CoinGeckoConfig,
    FailureReason,
    IngestionMetrics,
    IngestionResult,
    IngestionStatus,
    RawMarketData,
)


__all__ = [
    # Job
    "IngestionJob",
    "IngestionJobConfig",
    "IngestionTicker",
    # Collectors
    "BaseMarketDataClient",
    "CoinGeckoClient",
    "select_asset",
    # Types
    "CoinGeckoConfig",
    "FailureReason",
    "IngestionMetrics",
    "IngestionResult",
    "IngestionStatus",
    "RawMarketData",
]
