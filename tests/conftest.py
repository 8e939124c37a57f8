"""
Shared fixtures.

============================================================
FIXTURES
============================================================
- engine / session_factory: in-memory SQLite with schema
- clock: MockClock at a fixed instant
- store: ObservationStore over the in-memory database
- raw_eth: a valid provider record
- make_provider / make_store: capability fakes for the job

============================================================
"""

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from core.clock import MockClock
from core.exceptions import ProviderUnavailable
from data_ingestion.types import RawMarketData
from storage.database import (
    DatabaseConfig,
    create_database_engine,
    create_session_factory,
    init_schema,
)
from storage.base import BaseObservationStore
from storage.observation_store import ObservationStore
from storage.types import NewObservation, Observation


FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================
# DATABASE
# ============================================================

@pytest.fixture
def engine():
    engine = create_database_engine(DatabaseConfig(url="sqlite:///:memory:"))
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def clock():
    return MockClock(FIXED_NOW)


@pytest.fixture
def store(session_factory, clock):
    return ObservationStore(session_factory, clock=clock)


# ============================================================
# PROVIDER DATA
# ============================================================

@pytest.fixture
def raw_eth():
    return RawMarketData(
        asset_id="ethereum",
        symbol="ETH",
        name="Ethereum",
        price_usd=3000.0,
        market_cap_usd=1e9,
        volume_24h_usd=1e8,
    )


def make_new_observation(score: float = 77.83, symbol: str = "ETH") -> NewObservation:
    return NewObservation(
        symbol=symbol,
        source="CoinGecko",
        price_usd=3000.0,
        market_cap_usd=1e9,
        volume_24h_usd=1e8,
        score=score,
    )


# ============================================================
# FAKES
# ============================================================

class FakeProvider:
    """Provider fake: returns queued records or raises queued errors."""

    source_name = "CoinGecko"

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[str] = []

    async def fetch(self, asset_id: str) -> RawMarketData:
        self.calls.append(asset_id)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class FakeStore(BaseObservationStore):
    """In-memory store fake with strictly increasing timestamps."""

    def __init__(self, clock: MockClock, error: Optional[Exception] = None):
        self.clock = clock
        self.error = error
        self.observations: List[Observation] = []

    def insert(self, observation: NewObservation) -> Observation:
        if self.error is not None:
            raise self.error
        self.clock.advance(seconds=1)
        stored = Observation(
            id=len(self.observations) + 1,
            symbol=observation.symbol,
            source=observation.source,
            price_usd=observation.price_usd,
            market_cap_usd=observation.market_cap_usd,
            volume_24h_usd=observation.volume_24h_usd,
            score=observation.score,
            created_at=self.clock.now(),
        )
        self.observations.append(stored)
        return stored

    def latest(self, n: int) -> List[Observation]:
        return self.observations[-n:]


@pytest.fixture
def provider_down():
    return ProviderUnavailable("connection refused", source="CoinGecko")


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def fake_store(clock):
    return FakeStore(clock)


@pytest.fixture
def new_observation():
    return make_new_observation


@pytest.fixture
def make_store():
    return FakeStore
