"""
Data Ingestion - Collectors Package.

Market-data provider clients.

Collectors:
- base: BaseMarketDataClient and asset selection
- coingecko: Market data from CoinGecko
"""

from data_ingestion.collectors.base import BaseMarketDataClient, select_asset
from data_ingestion.collectors.coingecko import CoinGeckoClient


__all__ = [
    "BaseMarketDataClient",
    "CoinGeckoClient",
    "select_asset",
]
