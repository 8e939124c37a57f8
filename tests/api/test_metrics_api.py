"""
Tests for the Dashboard API.

============================================================
TEST SCENARIOS
============================================================
1. /metrics returns [] before any ingestion
2. Default limit is 10, results oldest first, camelCase fields
3. Invalid limit -> 422 without touching the store
4. Store failure -> 503
5. /health reports store reachability and job counters

============================================================
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from dashboard.main import create_app
from data_ingestion.ingestion_job import IngestionJob, IngestionJobConfig
from storage.repositories.exceptions import ConnectionFailure


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def client(store):
    with TestClient(create_app(store)) as test_client:
        yield test_client


@pytest.fixture
def mock_store():
    store = MagicMock()
    store.latest.return_value = []
    store.count.return_value = 0
    store.health_check.return_value = True
    return store


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# ============================================================
# TEST: /metrics
# ============================================================

class TestMetricsEndpoint:

    def test_empty_store_returns_empty_list(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.json() == []

    def test_default_limit_and_order(self, client, store, clock, new_observation):
        for i in range(12):
            store.insert(new_observation(score=float(50 + i)))
            clock.advance(hours=12)

        response = client.get("/metrics")

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 10
        assert [item["score"] for item in body] == [float(50 + i) for i in range(2, 12)]

        timestamps = [parse_timestamp(item["createdAt"]) for item in body]
        assert timestamps == sorted(timestamps)
        assert all(ts.tzinfo is not None for ts in timestamps)

    def test_field_names(self, client, store, new_observation):
        stored = store.insert(new_observation())

        item = client.get("/metrics").json()[0]

        assert set(item) == {
            "id", "symbol", "source", "priceUSD", "marketCapUSD",
            "volume24hUSD", "score", "createdAt",
        }
        assert item["id"] == stored.id
        assert item["symbol"] == "ETH"
        assert item["source"] == "CoinGecko"
        assert item["priceUSD"] == 3000.0
        assert item["marketCapUSD"] == 1e9
        assert item["volume24hUSD"] == 1e8
        assert item["score"] == 77.83
        assert parse_timestamp(item["createdAt"]) == stored.created_at

    def test_explicit_limit(self, client, store, new_observation):
        for _ in range(5):
            store.insert(new_observation())

        response = client.get("/metrics", params={"limit": 3})

        assert response.status_code == 200
        assert len(response.json()) == 3

    @pytest.mark.parametrize("limit", ["0", "-5", "abc", "1.5"])
    def test_invalid_limit_rejected_before_store(self, mock_store, limit):
        with TestClient(create_app(mock_store)) as client:
            response = client.get("/metrics", params={"limit": limit})

        assert response.status_code == 422
        mock_store.latest.assert_not_called()

    def test_limit_above_maximum(self, mock_store):
        with TestClient(create_app(mock_store, max_limit=50)) as client:
            response = client.get("/metrics", params={"limit": 51})

        assert response.status_code == 422
        mock_store.latest.assert_not_called()

    def test_limit_passed_to_store(self, mock_store):
        with TestClient(create_app(mock_store)) as client:
            client.get("/metrics", params={"limit": 25})

        mock_store.latest.assert_called_once_with(25)

    def test_store_failure_returns_503(self, mock_store):
        mock_store.latest.side_effect = ConnectionFailure("metrics", "query", "connection refused")

        with TestClient(create_app(mock_store)) as client:
            response = client.get("/metrics")

        assert response.status_code == 503
        assert response.json()["detail"] == "Metrics store unavailable"


# ============================================================
# TEST: /health and /
# ============================================================

class TestHealthEndpoint:

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health_ok(self, client, store, new_observation):
        store.insert(new_observation())

        body = client.get("/health").json()

        assert body["status"] == "ok"
        assert body["database"] is True
        assert body["observation_count"] == 1
        assert body["ingestion"] is None

    def test_health_degraded_when_store_down(self, mock_store):
        mock_store.count.side_effect = ConnectionFailure("metrics", "count", "connection refused")

        with TestClient(create_app(mock_store)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["database"] is False

    def test_health_includes_job_metrics(self, store, make_provider, raw_eth):
        job = IngestionJob(IngestionJobConfig(asset_id="ethereum"), make_provider(raw_eth), store)

        with TestClient(create_app(store, job=job)) as client:
            body = client.get("/health").json()

        assert body["ingestion"]["total_runs"] == 0
        assert body["last_cycle"] is None

    def test_health_degraded_when_unreachable(self, mock_store):
        mock_store.health_check.return_value = False

        with TestClient(create_app(mock_store)) as client:
            body = client.get("/health").json()

        assert body["status"] == "degraded"
        assert body["observation_count"] is None
        mock_store.count.assert_not_called()
