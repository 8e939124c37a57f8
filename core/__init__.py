"""
Core Module Package.

Infrastructure shared by every layer.

Components:
- config: Application configuration
- clock: Unified time abstraction
- exceptions: Exception taxonomy
- logging_config: Process logging setup
"""

from core.clock import ClockProtocol, MockClock, SystemClock
from core.config import AppConfig
from core.exceptions import (
    AssetNotFoundError,
    CallerInputInvalid,
    ConfigurationError,
    MetricsServiceError,
    ProviderUnavailable,
    ScoreInputInvalid,
    Severity,
    StoreUnavailable,
)


__all__ = [
    "AppConfig",
    "ClockProtocol",
    "MockClock",
    "SystemClock",
    "MetricsServiceError",
    "Severity",
    "ConfigurationError",
    "ProviderUnavailable",
    "AssetNotFoundError",
    "ScoreInputInvalid",
    "StoreUnavailable",
    "CallerInputInvalid",
]
