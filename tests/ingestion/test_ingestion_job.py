"""
Tests for the Ingestion Job.

============================================================
TEST SCENARIOS
============================================================
1. Successful cycle writes exactly one observation
2. Provider failure -> no write, next run unaffected
3. Asset mismatch / not found -> aborted, no write
4. Invalid score inputs -> no write
5. Store failure and unexpected errors are contained
6. Overlapping run is skipped
7. Sequential cycles produce strictly increasing createdAt
8. A write past the store deadline leaves no row behind

============================================================
"""

import asyncio
import time
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from core.exceptions import AssetNotFoundError
from data_ingestion.ingestion_job import IngestionJob, IngestionJobConfig
from data_ingestion.types import FailureReason, IngestionStatus
from storage.observation_store import ObservationStore
from storage.repositories.exceptions import ConnectionFailure


FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def job_config():
    return IngestionJobConfig(
        asset_id="ethereum",
        fetch_timeout_seconds=1.0,
    )


class SlowClock(MockClock):
    """Clock whose reads take long enough to overrun a write deadline."""

    def now(self):
        time.sleep(0.1)
        return super().now()


class SlowProvider:
    """Blocks in fetch() until released."""

    source_name = "CoinGecko"

    def __init__(self, record):
        self.record = record
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def fetch(self, asset_id):
        self.started.set()
        await self.release.wait()
        return self.record


# ============================================================
# TEST: SUCCESS
# ============================================================

class TestSuccessfulCycle:

    @pytest.mark.asyncio
    async def test_writes_one_observation(self, job_config, make_provider, fake_store, raw_eth):
        job = IngestionJob(job_config, make_provider(raw_eth), fake_store)

        result = await job.run()

        assert result.status == IngestionStatus.SUCCESS
        assert result.succeeded
        assert len(fake_store.observations) == 1

        stored = fake_store.observations[0]
        assert stored.symbol == "ETH"
        assert stored.source == "CoinGecko"
        assert stored.score == 77.83
        assert stored.price_usd == 3000.0
        assert result.observation_id == stored.id
        assert result.score == 77.83

    @pytest.mark.asyncio
    async def test_symbol_uppercased(self, job_config, make_provider, fake_store, raw_eth):
        job = IngestionJob(job_config, make_provider(replace(raw_eth, symbol="eth")), fake_store)

        await job.run()

        assert fake_store.observations[0].symbol == "ETH"

    @pytest.mark.asyncio
    async def test_requests_configured_asset(self, job_config, make_provider, fake_store, raw_eth):
        provider = make_provider(raw_eth)
        job = IngestionJob(job_config, provider, fake_store)

        await job.run()

        assert provider.calls == ["ethereum"]

    @pytest.mark.asyncio
    async def test_metrics_and_last_result(self, job_config, make_provider, fake_store, raw_eth):
        job = IngestionJob(job_config, make_provider(raw_eth), fake_store)

        result = await job.run()

        assert job.metrics.total_runs == 1
        assert job.metrics.successful_runs == 1
        assert job.metrics.last_success_at is not None
        assert job.last_result is result
        assert job.is_running is False


# ============================================================
# TEST: FAILURES
# ============================================================

class TestFailedCycle:

    @pytest.mark.asyncio
    async def test_provider_failure_writes_nothing(
        self, job_config, make_provider, fake_store, raw_eth, provider_down
    ):
        job = IngestionJob(job_config, make_provider(provider_down, raw_eth), fake_store)

        first = await job.run()

        assert first.status == IngestionStatus.FAILED
        assert first.failure_reason == FailureReason.PROVIDER_UNAVAILABLE
        assert fake_store.observations == []

        # next trigger is independent of the failed one
        second = await job.run()

        assert second.status == IngestionStatus.SUCCESS
        assert len(fake_store.observations) == 1
        assert job.metrics.failed_runs == 1
        assert job.metrics.successful_runs == 1
        assert job.metrics.failures_by_reason == {"provider_unavailable": 1}

    @pytest.mark.asyncio
    async def test_fetch_timeout(self, make_provider, fake_store, raw_eth):
        class HangingProvider:
            source_name = "CoinGecko"

            async def fetch(self, asset_id):
                await asyncio.sleep(10)
                return raw_eth

        config = IngestionJobConfig(asset_id="ethereum", fetch_timeout_seconds=0.05)
        job = IngestionJob(config, HangingProvider(), fake_store)

        result = await job.run()

        assert result.failure_reason == FailureReason.PROVIDER_UNAVAILABLE
        assert "timed out" in result.error
        assert fake_store.observations == []

    @pytest.mark.asyncio
    async def test_asset_not_found(self, job_config, make_provider, fake_store):
        error = AssetNotFoundError("ethereum", source="CoinGecko")
        job = IngestionJob(job_config, make_provider(error), fake_store)

        result = await job.run()

        assert result.failure_reason == FailureReason.ASSET_NOT_FOUND
        assert fake_store.observations == []

    @pytest.mark.asyncio
    async def test_asset_id_mismatch(self, job_config, make_provider, fake_store, raw_eth):
        other = replace(raw_eth, asset_id="ethereum-classic", symbol="ETC")
        job = IngestionJob(job_config, make_provider(other), fake_store)

        result = await job.run()

        assert result.status == IngestionStatus.FAILED
        assert result.failure_reason == FailureReason.ASSET_NOT_FOUND
        assert fake_store.observations == []

    @pytest.mark.asyncio
    async def test_asset_id_match_is_case_sensitive(self, job_config, make_provider, fake_store, raw_eth):
        job = IngestionJob(job_config, make_provider(replace(raw_eth, asset_id="Ethereum")), fake_store)

        result = await job.run()

        assert result.failure_reason == FailureReason.ASSET_NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["market_cap_usd", "volume_24h_usd"])
    async def test_zero_score_input(self, job_config, make_provider, fake_store, raw_eth, field):
        job = IngestionJob(job_config, make_provider(replace(raw_eth, **{field: 0.0})), fake_store)

        result = await job.run()

        assert result.failure_reason == FailureReason.SCORE_INPUT_INVALID
        assert result.score is None
        assert fake_store.observations == []

    @pytest.mark.asyncio
    async def test_store_failure_contained(self, job_config, make_provider, make_store, clock, raw_eth):
        store = make_store(clock, error=ConnectionFailure("metrics", "insert", "connection refused"))
        job = IngestionJob(job_config, make_provider(raw_eth), store)

        result = await job.run()

        assert result.status == IngestionStatus.FAILED
        assert result.failure_reason == FailureReason.STORE_UNAVAILABLE
        assert result.observation_id is None
        assert job.metrics.last_error == result.error

    @pytest.mark.asyncio
    async def test_slow_write_holds_run_guard(self, job_config, make_provider, make_store, clock, raw_eth):
        store = make_store(clock)
        original_insert = store.insert

        def slow_insert(observation):
            time.sleep(0.2)
            return original_insert(observation)

        store.insert = slow_insert
        job = IngestionJob(job_config, make_provider(raw_eth), store)

        first = asyncio.create_task(job.run())
        await asyncio.sleep(0.05)
        overlapping = await job.run()
        result = await first

        assert overlapping.status == IngestionStatus.SKIPPED
        assert result.status == IngestionStatus.SUCCESS
        assert result.observation_id == store.observations[0].id
        assert len(store.observations) == 1

    @pytest.mark.asyncio
    async def test_store_deadline_writes_nothing(self, job_config, make_provider, session_factory, raw_eth):
        store = ObservationStore(session_factory, clock=SlowClock(FIXED_NOW), write_timeout_seconds=0.05)
        job = IngestionJob(job_config, make_provider(raw_eth), store)

        result = await job.run()
        await asyncio.sleep(0.2)

        assert result.failure_reason == FailureReason.STORE_UNAVAILABLE
        assert "deadline" in result.error
        assert result.observation_id is None
        assert store.count() == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_contained(self, job_config, make_provider, fake_store, raw_eth):
        def broken_scorer(market_cap, volume):
            raise RuntimeError("boom")

        job = IngestionJob(job_config, make_provider(raw_eth), fake_store, scorer=broken_scorer)

        result = await job.run()

        assert result.failure_reason == FailureReason.UNEXPECTED
        assert "boom" in result.error
        assert fake_store.observations == []
        assert job.is_running is False


# ============================================================
# TEST: CONCURRENCY AND ORDERING
# ============================================================

class TestRunGuard:

    @pytest.mark.asyncio
    async def test_overlapping_run_is_skipped(self, job_config, fake_store, raw_eth):
        provider = SlowProvider(raw_eth)
        job = IngestionJob(job_config, provider, fake_store)

        first = asyncio.create_task(job.run())
        await provider.started.wait()
        assert job.is_running is True

        skipped = await job.run()

        assert skipped.status == IngestionStatus.SKIPPED
        assert fake_store.observations == []

        provider.release.set()
        completed = await first

        assert completed.status == IngestionStatus.SUCCESS
        assert len(fake_store.observations) == 1
        assert job.metrics.skipped_runs == 1
        assert job.metrics.total_runs == 2
        # skipped runs never replace the last real cycle
        assert job.last_result is completed

    @pytest.mark.asyncio
    async def test_sequential_cycles_have_increasing_created_at(self, job_config, make_provider, store, raw_eth):
        job = IngestionJob(job_config, make_provider(raw_eth), store)

        for _ in range(3):
            result = await job.run()
            assert result.succeeded

        observations = store.latest(10)

        assert len(observations) == 3
        timestamps = [o.created_at for o in observations]
        assert all(a < b for a, b in zip(timestamps, timestamps[1:]))
        assert all(o.score == 77.83 for o in observations)


class TestJobConfig:

    def test_from_app_config(self):
        from core.config import AppConfig

        app_config = AppConfig(
            asset_id="ethereum",
            provider_base_url="https://api.example.test",
            database_url="sqlite:///:memory:",
            provider_timeout_seconds=10.0,
        )

        config = IngestionJobConfig.from_app_config(app_config)

        assert config.asset_id == "ethereum"
        assert config.fetch_timeout_seconds == 15.0
