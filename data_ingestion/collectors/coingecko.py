"""
Data Ingestion - CoinGecko Client.

============================================================
RESPONSIBILITY
============================================================
Fetches market data for one asset from the CoinGecko
/coins/markets endpoint.

- Fetches price, market cap and 24h volume
- Parses the response into RawMarketData
- Translates every failure into ProviderUnavailable

============================================================
DESIGN PRINCIPLES
============================================================
- No business logic - collection only
- One outbound call per fetch
- All-or-nothing: never returns partial data
- No state retained between calls

============================================================
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from core.exceptions import ProviderUnavailable
from data_ingestion.collectors.base import BaseMarketDataClient, select_asset
from data_ingestion.types import CoinGeckoConfig, RawMarketData


class CoinGeckoClient(BaseMarketDataClient):
    """
    Client for CoinGecko market data.

    ============================================================
    WIRING
    ============================================================
    Source: CoinGecko API (REST)
    Endpoint: GET {base_url}/coins/markets
    Consumer: IngestionJob

    ============================================================
    """

    def __init__(
        self,
        config: CoinGeckoConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the CoinGecko client.

        Args:
            config: CoinGecko configuration
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self._config = config
        self._transport = transport
        self._logger = logging.getLogger("collector.coingecko")

    @property
    def source_name(self) -> str:
        return self._config.source_name

    # =========================================================
    # FETCH - External API Call
    # =========================================================

    async def fetch(self, asset_id: str) -> RawMarketData:
        """
        Fetch the market record for one asset.

        Raises:
            ProviderUnavailable: On network, status, parse or lookup failure
        """
        records = await self.fetch_markets(asset_id)
        return select_asset(records, asset_id, source=self.source_name)

    async def fetch_markets(self, asset_id: str) -> List[RawMarketData]:
        """
        Fetch and parse the full markets response for asset_id.

        Returns:
            Parsed records, in provider order

        Raises:
            ProviderUnavailable: On network, status or parse failure
        """
        payload = await self._get_markets(asset_id)

        if not isinstance(payload, list):
            raise ProviderUnavailable(
                message=f"Expected a JSON array, got {type(payload).__name__}",
                source=self.source_name,
            )
        if not payload:
            raise ProviderUnavailable(
                message="Provider returned an empty response",
                source=self.source_name,
                context={"asset_id": asset_id},
            )

        records = [self.parse_item(item) for item in payload]
        self._logger.debug(f"Parsed {len(records)} market records for {asset_id}")
        return records

    async def _get_markets(self, asset_id: str) -> Any:
        url = f"{self._config.base_url.rstrip('/')}/coins/markets"
        params = {
            "vs_currency": self._config.vs_currency,
            "ids": asset_id,
            "sparkline": "false",
        }

        headers = {"Accept": "application/json"}
        if self._config.api_key:
            # x-cg-demo-api-key for the free tier
            headers["x-cg-demo-api-key"] = self._config.api_key

        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            raise ProviderUnavailable(
                message=f"HTTP {e.response.status_code}: {e.response.text[:200]}",
                source=self.source_name,
                status_code=e.response.status_code,
                cause=e,
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(
                message=f"Request timeout: {e}",
                source=self.source_name,
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise ProviderUnavailable(
                message=f"Request error: {e}",
                source=self.source_name,
                cause=e,
            ) from e
        except ValueError as e:
            raise ProviderUnavailable(
                message=f"Malformed JSON body: {e}",
                source=self.source_name,
                cause=e,
            ) from e

    # =========================================================
    # PARSE - Normalize to RawMarketData
    # =========================================================

    def parse_item(self, raw_data: Any) -> RawMarketData:
        """
        Parse one element of the markets response.

        Raises:
            ProviderUnavailable: If required fields are missing or invalid
        """
        if not isinstance(raw_data, dict):
            raise ProviderUnavailable(
                message=f"Market record must be an object, got {type(raw_data).__name__}",
                source=self.source_name,
            )

        asset_id = raw_data.get("id")
        symbol = raw_data.get("symbol")
        if not isinstance(asset_id, str) or not asset_id:
            raise self._malformed(raw_data, "id")
        if not isinstance(symbol, str) or not symbol:
            raise self._malformed(raw_data, "symbol")

        return RawMarketData(
            asset_id=asset_id,
            symbol=symbol.upper(),
            name=str(raw_data.get("name") or asset_id),
            price_usd=self._quantity(raw_data, "current_price"),
            market_cap_usd=self._quantity(raw_data, "market_cap"),
            volume_24h_usd=self._quantity(raw_data, "total_volume"),
            last_updated=self._parse_timestamp(raw_data.get("last_updated")),
        )

    def _quantity(self, raw_data: Dict[str, Any], key: str) -> float:
        value = raw_data.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self._malformed(raw_data, key)
        value = float(value)
        if math.isnan(value) or math.isinf(value) or value < 0:
            raise self._malformed(raw_data, key)
        return value

    def _malformed(self, raw_data: Dict[str, Any], key: str) -> ProviderUnavailable:
        return ProviderUnavailable(
            message=f"Missing or invalid field {key!r} in market record",
            source=self.source_name,
            context={
                "field": key,
                "value": repr(raw_data.get(key))[:100],
                "raw_data_keys": sorted(raw_data.keys()),
            },
        )

    @staticmethod
    def _parse_timestamp(value: Any) -> Optional[datetime]:
        # CoinGecko provides "last_updated" as ISO timestamp
        if not isinstance(value, str) or not value:
            return None
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
