"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines the exception taxonomy for the metrics service.

- Provides clear exception hierarchy
- Separates fatal startup errors from per-cycle failures
- Carries context for structured logging

============================================================
EXCEPTION HIERARCHY
============================================================
MetricsServiceError (base)
├── ConfigurationError          fatal, startup only
├── ProviderUnavailable         one ingestion cycle
│   └── AssetNotFoundError
├── ScoreInputInvalid           one ingestion cycle
├── StoreUnavailable            one cycle (write) / query failure (read)
│   └── storage.repositories.exceptions.RepositoryException ...
└── CallerInputInvalid          query time, no store access

============================================================
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ============================================================
# BASE EXCEPTION
# ============================================================

class MetricsServiceError(Exception):
    """
    Base exception for all metrics service errors.

    All exceptions carry:
    - severity: for log level selection
    - context: for debugging
    - recoverable: whether the process may continue
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM
    default_recoverable: bool = True

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_log_format(self) -> str:
        """Format exception for single-line logging."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        if ctx_str:
            line += f" | {ctx_str}"
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(MetricsServiceError):
    """Configuration is missing or invalid. The process must not start."""

    default_severity = Severity.CRITICAL
    default_recoverable = False

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        self.errors = list(errors or [])
        if self.errors:
            context["errors"] = self.errors
        super().__init__(message, context=context, **kwargs)


# ============================================================
# INGESTION ERRORS
# ============================================================

class ProviderUnavailable(MetricsServiceError):
    """
    The market-data provider could not deliver a usable record.

    Covers transport errors, timeouts, non-success status codes,
    malformed bodies and missing assets.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})
        if source:
            context["source"] = source
        if status_code is not None:
            context["status_code"] = status_code
        self.source = source
        self.status_code = status_code
        super().__init__(message, context=context, **kwargs)


class AssetNotFoundError(ProviderUnavailable):
    """The requested asset is absent from the provider response."""

    def __init__(self, asset_id: str, source: Optional[str] = None):
        super().__init__(
            message=f"Asset {asset_id!r} not found in provider response",
            source=source,
            context={"asset_id": asset_id},
        )
        self.asset_id = asset_id


class ScoreInputInvalid(MetricsServiceError):
    """Scorer inputs are not strictly positive finite numbers."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid score input {field}={value!r}: {reason}",
            context={"field": field, "value": repr(value)[:100]},
        )
        self.field = field
        self.value = value
        self.reason = reason


# ============================================================
# STORAGE ERRORS
# ============================================================

class StoreUnavailable(MetricsServiceError):
    """The observation store could not complete an operation."""

    default_severity = Severity.HIGH


# ============================================================
# QUERY ERRORS
# ============================================================

class CallerInputInvalid(MetricsServiceError):
    """A query parameter supplied by the caller is invalid."""

    default_severity = Severity.LOW

    def __init__(self, parameter: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid value for {parameter}: {reason}",
            context={"parameter": parameter, "value": repr(value)[:100]},
        )
        self.parameter = parameter
        self.value = value
        self.reason = reason
