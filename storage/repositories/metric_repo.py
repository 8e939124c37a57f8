"""
Storage - Metric Repository.

============================================================
RESPONSIBILITY
============================================================
Data access for the append-only `metrics` table.

- Insert one observation
- Read the most recent N observations
- Count rows, read the latest write time

No update or delete methods exist.

============================================================
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storage.models.metric import MetricRecord
from storage.repositories.base import BaseRepository


class MetricRepository(BaseRepository[MetricRecord]):
    """Repository for MetricRecord rows."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, MetricRecord, "metrics")

    def add(self, record: MetricRecord) -> MetricRecord:
        """Add a record and flush so its id is assigned."""
        return self._add(record)

    def commit(self) -> None:
        self._commit()

    def rollback(self) -> None:
        self._rollback()

    def get_most_recent(self, limit: int) -> List[MetricRecord]:
        """Most recent records first (descending by write time, then id)."""
        stmt = (
            select(MetricRecord)
            .order_by(MetricRecord.created_at.desc(), MetricRecord.id.desc())
            .limit(limit)
        )
        return self._execute_query(stmt)

    def get_latest_created_at(self) -> Optional[datetime]:
        stmt = select(func.max(MetricRecord.created_at))
        return self._execute_scalar(stmt)

    def count(self) -> int:
        return self._count()
