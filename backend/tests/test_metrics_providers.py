"""
Tests for the property data providers.

Covers:
  - Remote provider request/response mapping (respx-mocked upstream)
  - Upstream errors surface as UpstreamFetchError
  - Transport-error retry
  - Synthetic provider ranges and determinism
  - Fallback provider timeout and substitution
  - Provider registry
"""

import asyncio
import json
import math
from datetime import datetime

import httpx
import pytest
import respx

from conftest import PROPERTY_ID, WEDNESDAY
from core.config import Settings
from integrations import build_action_executor, build_metrics_provider
from integrations.base import ProviderKind, get_provider
from integrations.fallback import FallbackMetricsProvider
from integrations.in_memory import InMemoryMetricsProvider
from integrations.remote import RemoteActionExecutor, RemoteMetricsProvider
from integrations.synthetic import ROOM_TYPES, SEGMENTS, SyntheticMetricsProvider
from revenue.errors import UpstreamFetchError
from revenue.models import Action, ActionParameters, ActionType, AdjustmentType

PMS_BASE_URL = "https://pms.example.com/api/os"
PMS_HOST = "pms.example.com"
PROPERTY_PATH = f"/api/os/properties/{PROPERTY_ID}"

METRICS_BODY = {
    "occupancyRate": 0.82,
    "averageDailyRate": 171.5,
    "availableRooms": 120,
    "soldRooms": 98,
    "noShows": 4,
    "cancellations": 6,
    "walkIns": 1,
    "upgrades": 9,
    "downgrades": 0,
    "revPAR": 9999.0,
}


def _remote(**config):
    return RemoteMetricsProvider(
        config={
            "base_url": PMS_BASE_URL,
            "token": "secret-token",
            "retry_attempts": 1,
            **config,
        }
    )


# ── Remote ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestRemoteProvider:
    async def test_fetch_metrics(self):
        with respx.mock(assert_all_called=True) as router:
            route = router.post(host=PMS_HOST, path=f"{PROPERTY_PATH}/yield-metrics").respond(
                status_code=200,
                json=METRICS_BODY,
            )
            metrics = await _remote().fetch_metrics(PROPERTY_ID, WEDNESDAY)

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == {"date": "2025-06-11T00:00:00"}
        assert metrics.occupancy_rate == 0.82
        assert metrics.sold_rooms == 98
        assert metrics.source == "live"
        # Stored revPAR is ignored; it's always derived
        assert metrics.revpar == pytest.approx(0.82 * 171.5)

    async def test_booking_pace_and_history(self):
        with respx.mock(assert_all_called=True) as router:
            pace_route = router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/booking-pace").respond(
                status_code=200,
                json={"bookings_to_date": 31},
            )
            history_route = router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/historical-pace").respond(
                status_code=200,
                json={"historical_average": 28.5},
            )
            provider = _remote()
            assert await provider.fetch_bookings_to_date(PROPERTY_ID, WEDNESDAY, datetime(2025, 6, 4)) == 31
            assert await provider.fetch_historical_pace(PROPERTY_ID, WEDNESDAY, 7) == 28.5

        assert pace_route.calls.last.request.url.params["as_of"] == "2025-06-04"
        assert history_route.calls.last.request.url.params["days_out"] == "7"

    async def test_room_types_and_history(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/room-types").respond(
                status_code=200,
                json={"room_types": [{"id": "king", "name": "King", "inventory": 40}]},
            )
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/room-types/king/history").respond(
                status_code=200,
                json={"no_shows": 3, "cancellations": 7},
            )
            provider = _remote()
            (room_type,) = await provider.fetch_room_types(PROPERTY_ID)
            no_shows = await provider.fetch_historical_no_shows(PROPERTY_ID, "king", WEDNESDAY)
            cancellations = await provider.fetch_historical_cancellations(PROPERTY_ID, "king", WEDNESDAY)

        assert (room_type.id, room_type.inventory) == ("king", 40)
        assert no_shows == 3.0
        assert cancellations == 7.0

    async def test_malformed_room_types(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/room-types").respond(
                status_code=200,
                json={"room_types": [{"name": "No id"}]},
            )
            with pytest.raises(UpstreamFetchError, match="malformed room types"):
                await _remote().fetch_room_types(PROPERTY_ID)

    async def test_segment_performance(self):
        segment = {
            "segment": "Group",
            "bookings": 12,
            "revenue": 2100.0,
            "adr": 175.0,
            "lead_time": 45.0,
            "cancellation_rate": 0.1,
            "no_show_rate": 0.01,
            "profitability": 0.7,
            "growth_rate": 0.02,
        }
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/segment-performance").respond(
                status_code=200,
                json={"segments": [segment]},
            )
            (result,) = await _remote().fetch_segment_performance(PROPERTY_ID, WEDNESDAY)

        assert result.segment == "Group"

    async def test_http_error_status(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(host=PMS_HOST, path=f"{PROPERTY_PATH}/yield-metrics").respond(
                status_code=503,
                json={"error": "maintenance"},
            )
            with pytest.raises(UpstreamFetchError, match="503") as exc_info:
                await _remote().fetch_metrics(PROPERTY_ID, WEDNESDAY)

        assert exc_info.value.endpoint == f"/properties/{PROPERTY_ID}/yield-metrics"

    async def test_malformed_metrics(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(host=PMS_HOST, path=f"{PROPERTY_PATH}/yield-metrics").respond(
                status_code=200,
                json={"occupancyRate": 1.7},
            )
            with pytest.raises(UpstreamFetchError, match="malformed"):
                await _remote().fetch_metrics(PROPERTY_ID, WEDNESDAY)

    async def test_invalid_json(self):
        with respx.mock(assert_all_called=True) as router:
            router.post(host=PMS_HOST, path=f"{PROPERTY_PATH}/yield-metrics").respond(
                status_code=200,
                content=b"<html>oops</html>",
            )
            with pytest.raises(UpstreamFetchError, match="invalid JSON"):
                await _remote().fetch_metrics(PROPERTY_ID, WEDNESDAY)

    async def test_missing_key(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/booking-pace").respond(
                status_code=200,
                json={"unexpected": True},
            )
            with pytest.raises(UpstreamFetchError, match="bookings_to_date"):
                await _remote().fetch_bookings_to_date(PROPERTY_ID, WEDNESDAY, WEDNESDAY)

    async def test_null_bookings_to_date(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/booking-pace").respond(
                status_code=200,
                json={"bookings_to_date": None},
            )
            with pytest.raises(UpstreamFetchError, match="malformed 'bookings_to_date'") as exc_info:
                await _remote().fetch_bookings_to_date(PROPERTY_ID, WEDNESDAY, WEDNESDAY)

        assert exc_info.value.endpoint == f"/properties/{PROPERTY_ID}/booking-pace"

    async def test_non_numeric_history(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/room-types/king/history").respond(
                status_code=200,
                json={"no_shows": "several", "cancellations": 2},
            )
            provider = _remote()
            with pytest.raises(UpstreamFetchError, match="malformed 'no_shows'"):
                await provider.fetch_historical_no_shows(PROPERTY_ID, "king", WEDNESDAY)
            assert await provider.fetch_historical_cancellations(PROPERTY_ID, "king", WEDNESDAY) == 2.0

    async def test_malformed_payloads_fall_back_to_synthetic(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/booking-pace").respond(
                status_code=200,
                json={"bookings_to_date": None},
            )
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/historical-pace").respond(
                status_code=200,
                json={"historical_average": "n/a"},
            )
            fallback = FallbackMetricsProvider(_remote(), SyntheticMetricsProvider(config={"seed": 2}))
            bookings = await fallback.fetch_bookings_to_date(PROPERTY_ID, WEDNESDAY, datetime(2025, 6, 4))
            historical = await fallback.fetch_historical_pace(PROPERTY_ID, WEDNESDAY, 7)

        assert isinstance(bookings, int)
        assert isinstance(historical, float)
        assert fallback.fallback_count == 2

    async def test_connection_error(self):
        with respx.mock(assert_all_called=True) as router:
            router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/room-types").mock(
                side_effect=httpx.ConnectError("connection refused")
            )
            with pytest.raises(UpstreamFetchError, match="failed"):
                await _remote().fetch_room_types(PROPERTY_ID)

    async def test_transport_errors_are_retried(self):
        with respx.mock(assert_all_called=True) as router:
            route = router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/historical-pace").mock(
                side_effect=[
                    httpx.ConnectError("connection reset"),
                    httpx.Response(200, json={"historical_average": 12}),
                ]
            )
            result = await _remote(retry_attempts=2).fetch_historical_pace(PROPERTY_ID, WEDNESDAY, 14)

        assert result == 12.0
        assert route.call_count == 2

    async def test_status_errors_are_not_retried(self):
        with respx.mock(assert_all_called=True) as router:
            route = router.get(host=PMS_HOST, path=f"{PROPERTY_PATH}/room-types").respond(status_code=500)
            with pytest.raises(UpstreamFetchError):
                await _remote(retry_attempts=3).fetch_room_types(PROPERTY_ID)

        assert route.call_count == 1


@pytest.mark.asyncio
class TestRemoteActionExecutor:
    async def test_posts_action(self):
        action = Action(
            type=ActionType.ADJUST_RATE,
            parameters=ActionParameters(adjustment=10, adjustment_type=AdjustmentType.PERCENTAGE),
        )
        with respx.mock(assert_all_called=True) as router:
            route = router.post(host=PMS_HOST, path=f"{PROPERTY_PATH}/yield-actions").respond(status_code=202)
            await RemoteActionExecutor(config={"base_url": PMS_BASE_URL}).execute(PROPERTY_ID, action)

        body = json.loads(route.calls.last.request.content)
        assert body["action"]["type"] == "adjust_rate"
        assert body["action"]["parameters"]["adjustment_type"] == "percentage"

    async def test_rejection_raises(self):
        with respx.mock(assert_all_called=True) as router:
            route = router.post(host=PMS_HOST, path=f"{PROPERTY_PATH}/yield-actions").respond(status_code=409)
            with pytest.raises(UpstreamFetchError):
                await RemoteActionExecutor(config={"base_url": PMS_BASE_URL, "retry_attempts": 5}).execute(
                    PROPERTY_ID, Action(type=ActionType.UPGRADE_OFFER)
                )

        assert route.call_count == 1


# ── Synthetic ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestSyntheticProvider:
    async def test_metrics_ranges(self):
        provider = SyntheticMetricsProvider(config={"seed": 1})
        for _ in range(50):
            metrics = await provider.fetch_metrics(PROPERTY_ID, WEDNESDAY)
            assert 0.75 <= metrics.occupancy_rate <= 0.95
            assert 150 <= metrics.average_daily_rate <= 200
            assert metrics.sold_rooms == math.floor(metrics.available_rooms * metrics.occupancy_rate)
            assert metrics.source == "synthetic"

    async def test_seed_is_deterministic(self):
        first = await SyntheticMetricsProvider(config={"seed": 99}).fetch_metrics(PROPERTY_ID, WEDNESDAY)
        second = await SyntheticMetricsProvider(config={"seed": 99}).fetch_metrics(PROPERTY_ID, WEDNESDAY)
        assert first == second

    async def test_reference_data(self):
        provider = SyntheticMetricsProvider(config={"seed": 1})
        room_types = await provider.fetch_room_types(PROPERTY_ID)
        assert [rt.id for rt in room_types] == [rt.id for rt in ROOM_TYPES]
        segments = await provider.fetch_segment_performance(PROPERTY_ID, WEDNESDAY)
        assert [s.segment for s in segments] == SEGMENTS


# ── Fallback ──────────────────────────────────────────────────────────


class _SlowProvider(InMemoryMetricsProvider):
    async def fetch_metrics(self, property_id, date):
        await asyncio.sleep(1)
        return await super().fetch_metrics(property_id, date)


@pytest.mark.asyncio
class TestFallbackProvider:
    async def test_primary_used_when_healthy(self, provider):
        fallback = FallbackMetricsProvider(provider, SyntheticMetricsProvider(config={"seed": 1}))
        metrics = await fallback.fetch_metrics(PROPERTY_ID, WEDNESDAY)
        assert metrics.source == "live"
        assert fallback.fallback_count == 0
        assert fallback.kind is ProviderKind.IN_MEMORY

    async def test_secondary_on_upstream_error(self):
        fallback = FallbackMetricsProvider(
            InMemoryMetricsProvider(config={"properties": {}}),
            SyntheticMetricsProvider(config={"seed": 1}),
        )
        metrics = await fallback.fetch_metrics(PROPERTY_ID, WEDNESDAY)
        assert metrics.source == "synthetic"
        assert fallback.fallback_count == 1

    async def test_secondary_on_timeout(self, provider):
        slow = _SlowProvider(config={"properties": provider.properties})
        fallback = FallbackMetricsProvider(slow, SyntheticMetricsProvider(config={"seed": 1}), timeout=0.01)
        metrics = await fallback.fetch_metrics(PROPERTY_ID, WEDNESDAY)
        assert metrics.source == "synthetic"
        assert fallback.fallback_count == 1


# ── Registry / wiring ─────────────────────────────────────────────────


class TestProviderWiring:
    def test_get_provider_by_kind(self):
        assert isinstance(get_provider(ProviderKind.SYNTHETIC, {"seed": 1}), SyntheticMetricsProvider)
        assert isinstance(get_provider(ProviderKind.IN_MEMORY), InMemoryMetricsProvider)

    def test_build_with_fallback(self):
        provider = build_metrics_provider(Settings(allow_synthetic_fallback=True, synthetic_seed=5))
        assert isinstance(provider, FallbackMetricsProvider)
        assert isinstance(provider.primary, RemoteMetricsProvider)

    def test_build_without_fallback(self):
        settings = Settings(allow_synthetic_fallback=False, metrics_api_token="t", upstream_retry_attempts=2)
        provider = build_metrics_provider(settings)
        assert isinstance(provider, RemoteMetricsProvider)
        assert provider.api.retry_attempts == 2
        assert provider.api.headers["Authorization"] == "Bearer t"

    def test_action_executor_does_not_retry(self):
        executor = build_action_executor(Settings(upstream_retry_attempts=5))
        assert executor.api.retry_attempts == 1
