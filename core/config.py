"""
Core Module - Application Configuration.

============================================================
RESPONSIBILITY
============================================================
Builds the single configuration value for the process.

- Loaded once at startup from environment (and .env)
- Validated before any component is constructed
- Passed explicitly into the provider client, job, and API

============================================================
ENVIRONMENT
============================================================
Required:
  ASSET_ID                    provider asset id, e.g. "ethereum"
  PROVIDER_BASE_URL           e.g. "https://api.coingecko.com/api/v3"
  DATABASE_URL                SQLAlchemy URL

Optional:
  INGESTION_INTERVAL_SECONDS  default 43200 (twice daily)
  PROVIDER_API_KEY, PROVIDER_TIMEOUT_SECONDS, VS_CURRENCY,
  DATA_SOURCE, STORE_TIMEOUT_SECONDS, RUN_ON_STARTUP,
  LOG_LEVEL, LOG_FORMAT, API_HOST, API_PORT, QUERY_MAX_LIMIT

============================================================
"""

import math
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from core.exceptions import ConfigurationError


DEFAULT_INTERVAL_SECONDS = 12 * 60 * 60
DEFAULT_SOURCE = "CoinGecko"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class AppConfig:
    """Process-wide configuration, immutable once built."""

    # Provider
    asset_id: str
    provider_base_url: str
    provider_api_key: Optional[str] = None
    provider_timeout_seconds: float = 10.0
    vs_currency: str = "usd"
    data_source: str = DEFAULT_SOURCE

    # Store
    database_url: str = ""
    store_timeout_seconds: float = 10.0

    # Schedule
    ingestion_interval_seconds: float = DEFAULT_INTERVAL_SECONDS
    run_on_startup: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    query_max_limit: int = 1000

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = None,
    ) -> "AppConfig":
        """
        Load and validate configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ after .env load)
            dotenv_path: Optional explicit .env file

        Raises:
            ConfigurationError: If required values are missing or malformed
        """
        if environ is None:
            load_dotenv(dotenv_path)
            environ = os.environ

        errors: List[str] = []

        def required(key: str) -> str:
            value = (environ.get(key) or "").strip()
            if not value:
                errors.append(f"{key} is required")
            return value

        def number(key: str, default: float, cast=float):
            raw = environ.get(key)
            if raw is None or raw.strip() == "":
                return default
            try:
                value = cast(raw.strip())
            except ValueError:
                errors.append(f"{key} must be a number, got {raw!r}")
                return default
            if not math.isfinite(value):
                errors.append(f"{key} must be finite, got {raw!r}")
                return default
            return value

        config = cls(
            asset_id=required("ASSET_ID"),
            provider_base_url=required("PROVIDER_BASE_URL").rstrip("/"),
            provider_api_key=environ.get("PROVIDER_API_KEY") or None,
            provider_timeout_seconds=number("PROVIDER_TIMEOUT_SECONDS", 10.0),
            vs_currency=environ.get("VS_CURRENCY", "usd").strip().lower() or "usd",
            data_source=environ.get("DATA_SOURCE", DEFAULT_SOURCE).strip() or DEFAULT_SOURCE,
            database_url=required("DATABASE_URL"),
            store_timeout_seconds=number("STORE_TIMEOUT_SECONDS", 10.0),
            ingestion_interval_seconds=number(
                "INGESTION_INTERVAL_SECONDS", float(DEFAULT_INTERVAL_SECONDS)
            ),
            run_on_startup=environ.get("RUN_ON_STARTUP", "true").strip().lower() in _TRUE_VALUES,
            api_host=environ.get("API_HOST", "0.0.0.0"),
            api_port=number("API_PORT", 3000, int),
            query_max_limit=number("QUERY_MAX_LIMIT", 1000, int),
            log_level=environ.get("LOG_LEVEL", "INFO").upper(),
            log_format=environ.get("LOG_FORMAT", "text").lower(),
        )

        errors.extend(config.validate())
        if errors:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(errors),
                errors=errors,
            )
        return config

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.asset_id.strip():
            errors.append("asset_id must not be empty")

        if self.provider_base_url and not self.provider_base_url.startswith(("http://", "https://")):
            errors.append("provider_base_url must be an http(s) URL")

        for name in (
            "ingestion_interval_seconds",
            "provider_timeout_seconds",
            "store_timeout_seconds",
        ):
            value = getattr(self, name)
            # NaN compares False against everything
            if not math.isfinite(value) or value <= 0:
                errors.append(f"{name} must be a positive finite number")

        if self.query_max_limit < 1:
            errors.append("query_max_limit must be at least 1")

        if self.log_format not in ("text", "json"):
            errors.append("log_format must be 'text' or 'json'")

        return errors

    def redacted(self) -> dict:
        """Configuration summary safe for logging."""
        return {
            "asset_id": self.asset_id,
            "provider_base_url": self.provider_base_url,
            "provider_api_key": "***" if self.provider_api_key else None,
            "database": self.database_url.split("@")[-1],
            "ingestion_interval_seconds": self.ingestion_interval_seconds,
            "data_source": self.data_source,
        }
