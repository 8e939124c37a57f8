"""
Storage - Observation Store.

============================================================
RESPONSIBILITY
============================================================
Append-only persistence of scored observations.

- insert(observation) -> Observation with id and created_at
- latest(n) -> up to n most recent, oldest first
- count() / health_check() for the health endpoint

============================================================
DESIGN PRINCIPLES
============================================================
- No update or delete path
- created_at is assigned here, at write time, and strictly
  increases across inserts through one store instance
- Each operation runs in its own short-lived session
- A write that overruns its deadline is rolled back, never
  committed late
- Database errors surface as StoreUnavailable subclasses

============================================================
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import ClockProtocol, SystemClock, ensure_utc
from core.exceptions import CallerInputInvalid
from scoring_engine.composite_score import MAX_SCORE, MIN_SCORE
from storage.base import BaseObservationStore
from storage.models.metric import MetricRecord
from storage.repositories.exceptions import ConnectionFailure, ConstraintViolation
from storage.repositories.metric_repo import MetricRepository
from storage.types import NewObservation, Observation


_TICK = timedelta(microseconds=1)


class ObservationStore(BaseObservationStore):
    """
    Append-only observation store over a SQLAlchemy session factory.

    Safe to share between the ingestion job (writer) and the
    query service (reader). Writes are serialized by a lock so
    timestamps stay ordered.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Optional[ClockProtocol] = None,
        write_timeout_seconds: Optional[float] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            session_factory: Callable returning a new Session
            clock: Source of created_at timestamps
            write_timeout_seconds: Deadline for one insert, lock wait included.
                None disables the deadline.
        """
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._write_timeout = write_timeout_seconds
        self._write_lock = threading.Lock()
        self._last_created_at: Optional[datetime] = None
        self._logger = logging.getLogger("storage.observation_store")

    # =========================================================
    # WRITE PATH
    # =========================================================

    def insert(self, observation: NewObservation) -> Observation:
        """
        Append one observation.

        The row is committed only if the write finishes within
        write_timeout_seconds; otherwise it is rolled back.

        Returns:
            The persisted observation with store-assigned id and created_at

        Raises:
            ConstraintViolation: If the observation violates a table constraint
            ConnectionFailure: If the database is unreachable or the deadline passes
        """
        if not (MIN_SCORE <= observation.score <= MAX_SCORE):
            raise ConstraintViolation(
                repository_name="metrics",
                operation="insert",
                message=f"score {observation.score} outside [{MIN_SCORE}, {MAX_SCORE}]",
            )

        deadline = None
        if self._write_timeout is not None:
            deadline = time.monotonic() + self._write_timeout

        lock_timeout = -1 if self._write_timeout is None else self._write_timeout
        if not self._write_lock.acquire(timeout=lock_timeout):
            raise self._deadline_exceeded("waiting for the write lock")

        try:
            with self._session_factory() as session:
                repository = MetricRepository(session)

                if self._last_created_at is None:
                    latest = repository.get_latest_created_at()
                    if latest is not None:
                        self._last_created_at = ensure_utc(latest)

                created_at = self._next_timestamp()
                record = MetricRecord(
                    symbol=observation.symbol.upper(),
                    source=observation.source,
                    price_usd=observation.price_usd,
                    market_cap_usd=observation.market_cap_usd,
                    volume_24h_usd=observation.volume_24h_usd,
                    score=observation.score,
                    created_at=created_at,
                )
                repository.add(record)

                # Last point at which the write can still be abandoned
                if deadline is not None and time.monotonic() > deadline:
                    repository.rollback()
                    raise self._deadline_exceeded("before commit")

                repository.commit()

                self._last_created_at = created_at
                stored = self._to_observation(record)
        finally:
            self._write_lock.release()

        self._logger.debug(f"Inserted observation {stored.id} at {stored.created_at.isoformat()}")
        return stored

    def _deadline_exceeded(self, phase: str) -> ConnectionFailure:
        self._logger.warning(f"Observation write abandoned: {self._write_timeout}s deadline exceeded {phase}")
        return ConnectionFailure(
            repository_name="metrics",
            operation="insert",
            original_error=f"write deadline of {self._write_timeout}s exceeded {phase}",
        )

    def _next_timestamp(self) -> datetime:
        now = ensure_utc(self._clock.now())
        if self._last_created_at is not None and now <= self._last_created_at:
            return self._last_created_at + _TICK
        return now

    # =========================================================
    # READ PATH
    # =========================================================

    def latest(self, n: int) -> List[Observation]:
        """
        Up to n most recent observations, oldest first.

        Raises:
            CallerInputInvalid: If n is not a positive integer
            StoreUnavailable: If the query fails
        """
        if isinstance(n, bool) or not isinstance(n, int):
            raise CallerInputInvalid("n", n, "must be an integer")
        if n <= 0:
            raise CallerInputInvalid("n", n, "must be positive")

        with self._session_factory() as session:
            records = MetricRepository(session).get_most_recent(n)
            observations = [self._to_observation(r) for r in records]

        observations.reverse()
        return observations

    def count(self) -> int:
        with self._session_factory() as session:
            return MetricRepository(session).count()

    def health_check(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            self._logger.warning(f"Store health check failed: {e}")
            return False

    @staticmethod
    def _to_observation(record: MetricRecord) -> Observation:
        return Observation(
            id=record.id,
            symbol=record.symbol,
            source=record.source,
            price_usd=record.price_usd,
            market_cap_usd=record.market_cap_usd,
            volume_24h_usd=record.volume_24h_usd,
            score=record.score,
            created_at=ensure_utc(record.created_at),
        )
