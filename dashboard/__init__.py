"""
Dashboard Package.

Read-only HTTP surface consumed by the charting dashboard.

Modules:
- main: create_app() FastAPI factory
- routers/: /metrics and /health endpoints
- services: MetricQueryService
- schemas: Response models
"""

from dashboard.main import create_app
from dashboard.services import MetricQueryService


__all__ = ["create_app", "MetricQueryService"]
