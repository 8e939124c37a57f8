"""
Dashboard API Routers.
"""
from . import health, metrics

__all__ = ["health", "metrics"]
