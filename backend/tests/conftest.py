"""
Test Configuration — Fixtures for the yield engine, providers and test client.

Every test gets its own engine and registry; nothing is shared between
tests except the FastAPI app object, whose engine dependency is overridden.
"""

from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from api.deps import get_engine
from api.main import app
from integrations.base import ActionExecutor
from integrations.in_memory import InMemoryMetricsProvider, PropertyData
from revenue.engine import YieldEngine
from revenue.errors import UpstreamFetchError
from revenue.models import MetricsSnapshot, RoomType, SegmentPerformance
from revenue.strategies import StrategyRegistry, seed_default_strategies

PROPERTY_ID = "prop-harbor-view"

WEDNESDAY = datetime(2025, 6, 11)
FRIDAY = datetime(2025, 6, 13)
NOW = datetime(2025, 6, 1, 12, 0)


class FakeClock:
    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingExecutor(ActionExecutor):
    """Records executed actions; fails on the configured call indexes."""

    def __init__(self, fail_on: set[int] | None = None):
        self.fail_on = fail_on or set()
        self.executed: list[tuple[str, str]] = []
        self._calls = 0

    async def execute(self, property_id, action):
        index = self._calls
        self._calls += 1
        if index in self.fail_on:
            raise UpstreamFetchError("pricing system rejected action", endpoint="/yield-actions")
        self.executed.append((property_id, action.type.value))


def make_metrics(**overrides) -> MetricsSnapshot:
    values = {
        "occupancy_rate": 0.90,
        "average_daily_rate": 150.0,
        "available_rooms": 100,
        "sold_rooms": 90,
        "no_shows": 3,
        "cancellations": 5,
        "walk_ins": 2,
        "upgrades": 12,
        "downgrades": 1,
    }
    values.update(overrides)
    return MetricsSnapshot(**values)


def make_property_data(**metrics_overrides) -> PropertyData:
    return PropertyData(
        metrics=make_metrics(**metrics_overrides),
        bookings_to_date={1: 40, 7: 30, 14: 24, 30: 18, 60: 10, 90: 6},
        historical_pace={1: 60.0, 7: 31.0, 14: 20.0, 30: 18.0, 60: 10.0, 90: 6.0},
        room_types=[
            RoomType(id="standard", name="Standard Room", inventory=50),
            RoomType(id="suite", name="Suite", inventory=20),
        ],
        no_shows={"standard": 3, "suite": 1},
        cancellations={"standard": 5, "suite": 2},
        segments=[
            SegmentPerformance(
                segment="Corporate",
                bookings=20,
                revenue=3200.0,
                adr=160.0,
                lead_time=12.0,
                cancellation_rate=0.08,
                no_show_rate=0.02,
                profitability=0.8,
                growth_rate=0.05,
            )
        ],
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    return InMemoryMetricsProvider(config={"properties": {PROPERTY_ID: make_property_data()}})


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def registry():
    return seed_default_strategies(StrategyRegistry())


@pytest.fixture
def engine(provider, executor, registry, clock):
    return YieldEngine(provider, executor, registry=registry, clock=clock)


@pytest.fixture
async def client(engine):
    """Async test client wired to a per-test engine."""
    app.dependency_overrides[get_engine] = lambda: engine

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
