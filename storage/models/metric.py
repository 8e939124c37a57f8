"""
Metric ORM Model.

============================================================
PURPOSE
============================================================
Persists one ingestion result (an observation) per row.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Mutability: IMMUTABLE (append-only)
- Source: IngestionJob, one row per successful cycle
- Consumers: Query endpoint / dashboard
- Retention: indefinite

============================================================
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    event,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base
from storage.repositories.exceptions import ImmutableRecordError


class MetricRecord(Base):
    """
    One scored market observation.

    Rows are written once by the ingestion job and never
    updated or deleted.
    """

    __tablename__ = "metrics"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="Store-assigned monotonically increasing id"
    )

    symbol: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Uppercase asset ticker"
    )

    source: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="Market-data provider name"
    )

    price_usd: Mapped[float] = mapped_column(Float, nullable=False)

    market_cap_usd: Mapped[float] = mapped_column(Float, nullable=False)

    volume_24h_usd: Mapped[float] = mapped_column(Float, nullable=False)

    score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Derived composite score in [0, 100]"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Write time (UTC); defines total order"
    )

    __table_args__ = (
        CheckConstraint("score >= 0 AND score <= 100", name="ck_metrics_score_range"),
        CheckConstraint(
            "price_usd >= 0 AND market_cap_usd >= 0 AND volume_24h_usd >= 0",
            name="ck_metrics_non_negative",
        ),
        Index("ix_metrics_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<MetricRecord(id={self.id}, symbol={self.symbol}, "
            f"score={self.score}, created_at={self.created_at})>"
        )


@event.listens_for(MetricRecord, "before_update")
def _reject_update(mapper, connection, target: MetricRecord) -> None:
    raise ImmutableRecordError(
        repository_name="metrics",
        record_id=target.id,
        attempted_operation="update",
    )


@event.listens_for(MetricRecord, "before_delete")
def _reject_delete(mapper, connection, target: MetricRecord) -> None:
    raise ImmutableRecordError(
        repository_name="metrics",
        record_id=target.id,
        attempted_operation="delete",
    )
