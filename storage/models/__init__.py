"""
Storage Models Package.

ORM models for the metrics service database.

Models:
- Base: Declarative base (base.py)
- MetricRecord: Append-only scored observations (metric.py)
"""

from storage.models.base import Base
from storage.models.metric import MetricRecord


__all__ = [
    "Base",
    "MetricRecord",
]
