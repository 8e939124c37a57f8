"""
Data Ingestion - Ingestion Job.

============================================================
RESPONSIBILITY
============================================================
Runs one ingestion cycle per trigger:

1. Fetch the configured asset from the provider
2. Verify the record is the configured asset
3. Compute the composite score
4. Persist one observation

============================================================
DESIGN PRINCIPLES
============================================================
- Failure isolation: every cycle failure is contained here,
  logged, and reported in the IngestionResult
- No partial writes: a cycle writes exactly one row or none
- No retry within a cycle; the next trigger runs independently
- At most one run in flight; overlapping triggers are skipped
- Schedule agnostic: callers only use run()

============================================================
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from core.config import AppConfig
from core.exceptions import (
    AssetNotFoundError,
    ProviderUnavailable,
    ScoreInputInvalid,
    StoreUnavailable,
)
from data_ingestion.collectors.base import BaseMarketDataClient
from data_ingestion.types import (
    FailureReason,
    IngestionMetrics,
    IngestionResult,
    IngestionStatus,
    RawMarketData,
)
from scoring_engine.composite_score import calculate_composite_score
from storage.base import BaseObservationStore
from storage.types import NewObservation


Scorer = Callable[[float, float], float]


# ============================================================
# CONFIGURATION
# ============================================================

@dataclass(frozen=True)
class IngestionJobConfig:
    """Configuration for the ingestion job."""

    asset_id: str

    # Upper bound on one provider fetch, end to end
    fetch_timeout_seconds: float = 15.0

    @classmethod
    def from_app_config(cls, config: AppConfig) -> "IngestionJobConfig":
        return cls(
            asset_id=config.asset_id,
            # headroom over the per-request httpx timeout
            fetch_timeout_seconds=config.provider_timeout_seconds * 1.5,
        )


# ============================================================
# INGESTION JOB
# ============================================================

class IngestionJob:
    """
    Fetch -> score -> persist, once per run().

    ============================================================
    USAGE
    ============================================================
    ```python
    job = IngestionJob(job_config, provider, store)

    # One cycle
    result = await job.run()

    # Or driven by IngestionTicker
    ```

    ============================================================
    """

    def __init__(
        self,
        config: IngestionJobConfig,
        provider: BaseMarketDataClient,
        store: BaseObservationStore,
        scorer: Scorer = calculate_composite_score,
    ) -> None:
        """
        Initialize the ingestion job.

        Args:
            config: Job configuration
            provider: Capability exposing fetch(asset_id)
            store: Capability exposing insert(observation)
            scorer: Pure scoring function
        """
        self._config = config
        self._provider = provider
        self._store = store
        self._scorer = scorer
        self._logger = logging.getLogger("ingestion_job")

        self._run_guard = asyncio.Lock()
        self._metrics = IngestionMetrics()
        self._last_result: Optional[IngestionResult] = None

    @property
    def is_running(self) -> bool:
        return self._run_guard.locked()

    @property
    def metrics(self) -> IngestionMetrics:
        return self._metrics

    @property
    def last_result(self) -> Optional[IngestionResult]:
        return self._last_result

    # =========================================================
    # ENTRY POINT
    # =========================================================

    async def run(self) -> IngestionResult:
        """
        Run one ingestion cycle.

        Never raises for cycle failures; the outcome is in the
        returned IngestionResult.
        """
        result = IngestionResult(
            asset_id=self._config.asset_id,
            started_at=self._now(),
        )

        if self._run_guard.locked():
            result.status = IngestionStatus.SKIPPED
            result.error = "previous run still in progress"
            self._finish(result)
            return result

        async with self._run_guard:
            self._logger.info(f"Starting ingestion cycle {result.cycle_id} for {self._config.asset_id}")
            try:
                await self._run_cycle(result)
            except Exception as e:
                result.mark_failed(FailureReason.UNEXPECTED, f"Unexpected error: {e}")
                self._logger.exception(f"Unexpected error in ingestion cycle {result.cycle_id}")

        self._finish(result)
        return result

    # =========================================================
    # CYCLE STEPS
    # =========================================================

    async def _run_cycle(self, result: IngestionResult) -> None:
        asset_id = self._config.asset_id

        # Step 1: Fetch
        raw = await self._fetch(result)
        if raw is None:
            return

        # Step 2: Exact match on provider-assigned id
        if raw.asset_id != asset_id:
            result.mark_failed(
                FailureReason.ASSET_NOT_FOUND,
                f"Asset {asset_id!r} not found in response (got {raw.asset_id!r})",
            )
            return

        # Step 3: Score
        try:
            score = self._scorer(raw.market_cap_usd, raw.volume_24h_usd)
        except ScoreInputInvalid as e:
            result.mark_failed(FailureReason.SCORE_INPUT_INVALID, str(e))
            return
        result.score = score

        # Step 4: Persist
        observation = NewObservation(
            symbol=raw.symbol.upper(),
            source=self._provider.source_name,
            price_usd=raw.price_usd,
            market_cap_usd=raw.market_cap_usd,
            volume_24h_usd=raw.volume_24h_usd,
            score=score,
        )
        # Run guard stays held until the write thread returns;
        # the store rolls back itself when its deadline passes
        try:
            stored = await asyncio.to_thread(self._store.insert, observation)
        except StoreUnavailable as e:
            result.mark_failed(FailureReason.STORE_UNAVAILABLE, str(e))
            return

        result.observation_id = stored.id
        self._logger.info(
            f"Observation for {stored.symbol} saved. id={stored.id} score={stored.score}"
        )

    async def _fetch(self, result: IngestionResult) -> Optional[RawMarketData]:
        try:
            return await asyncio.wait_for(
                self._provider.fetch(self._config.asset_id),
                timeout=self._config.fetch_timeout_seconds,
            )
        except asyncio.TimeoutError:
            result.mark_failed(
                FailureReason.PROVIDER_UNAVAILABLE,
                f"Provider fetch timed out after {self._config.fetch_timeout_seconds}s",
            )
        except AssetNotFoundError as e:
            result.mark_failed(FailureReason.ASSET_NOT_FOUND, str(e))
        except ProviderUnavailable as e:
            result.mark_failed(FailureReason.PROVIDER_UNAVAILABLE, str(e))
        return None

    # =========================================================
    # BOOKKEEPING
    # =========================================================

    def _finish(self, result: IngestionResult) -> None:
        result.mark_complete(self._now())
        self._metrics.record_result(result)
        if result.status != IngestionStatus.SKIPPED:
            self._last_result = result
        self._log_result(result)

    def _log_result(self, result: IngestionResult) -> None:
        log_data = result.to_dict()

        if result.status == IngestionStatus.SUCCESS:
            self._logger.info(f"Ingestion cycle complete: {log_data}")
        elif result.status == IngestionStatus.SKIPPED:
            self._logger.warning(f"Ingestion cycle skipped: {log_data}")
        elif result.failure_reason == FailureReason.ASSET_NOT_FOUND:
            self._logger.warning(f"Ingestion cycle aborted: {log_data}")
        else:
            self._logger.error(f"Ingestion cycle failed: {log_data}")

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)
