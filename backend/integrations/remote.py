"""
Remote Property API Client

Fetches yield metrics, pace and history from the property management API
and pushes yield actions back to it. Transport errors are retried with
exponential backoff; anything else that goes wrong surfaces as
UpstreamFetchError.
"""

from datetime import datetime
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from integrations.base import ActionExecutor, MetricsProvider, ProviderKind, register_provider
from revenue.errors import UpstreamFetchError, ValidationError
from revenue.models import Action, MetricsSnapshot, RoomType, SegmentPerformance


class _PropertyApi:
    """Shared HTTP plumbing for the provider and the action executor."""

    def __init__(self, config: dict[str, Any]):
        self.base_url = str(config.get("base_url", "http://localhost:3000/api/os")).rstrip("/")
        self.timeout = float(config.get("timeout", 5.0))
        self.retry_attempts = max(1, int(config.get("retry_attempts", 3)))
        self.headers = {"Content-Type": "application/json"}
        if config.get("token"):
            self.headers["Authorization"] = f"Bearer {config['token']}"

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_attempts),
                wait=wait_exponential(min=1, max=10),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    async with httpx.AsyncClient(
                        base_url=self.base_url,
                        headers=self.headers,
                        timeout=self.timeout,
                    ) as client:
                        response = await client.request(method, path, **kwargs)
                        response.raise_for_status()
                        return response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            raise UpstreamFetchError(
                f"{method} {path} returned {exc.response.status_code}",
                endpoint=path,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"{method} {path} failed: {exc}", endpoint=path) from exc
        except ValueError as exc:
            raise UpstreamFetchError(f"{method} {path} returned invalid JSON", endpoint=path) from exc


def _require(payload: Any, key: str, path: str) -> Any:
    if not isinstance(payload, dict) or key not in payload:
        raise UpstreamFetchError(f"{path} response missing {key!r}", endpoint=path)
    return payload[key]


def _number(value: Any, cast: type, key: str, path: str) -> Any:
    try:
        return cast(value)
    except (TypeError, ValueError) as exc:
        raise UpstreamFetchError(f"{path} returned malformed {key!r}: {value!r}", endpoint=path) from exc


@register_provider
class RemoteMetricsProvider(MetricsProvider):
    """Property management API over HTTP."""

    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.api = _PropertyApi(self.config)

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.REMOTE

    async def fetch_metrics(self, property_id: str, date: datetime) -> MetricsSnapshot:
        path = f"/properties/{property_id}/yield-metrics"
        payload = await self.api.request("POST", path, json={"date": date.isoformat()})
        try:
            return MetricsSnapshot.from_payload(payload, source="live")
        except (ValidationError, AttributeError) as exc:
            raise UpstreamFetchError(f"{path} returned malformed metrics: {exc}", endpoint=path) from exc

    async def fetch_bookings_to_date(self, property_id: str, target_date: datetime, as_of: datetime) -> int:
        path = f"/properties/{property_id}/booking-pace"
        payload = await self.api.request(
            "GET",
            path,
            params={"target_date": target_date.date().isoformat(), "as_of": as_of.date().isoformat()},
        )
        return _number(_require(payload, "bookings_to_date", path), int, "bookings_to_date", path)

    async def fetch_historical_pace(self, property_id: str, target_date: datetime, days_out: int) -> float:
        path = f"/properties/{property_id}/historical-pace"
        payload = await self.api.request(
            "GET",
            path,
            params={"target_date": target_date.date().isoformat(), "days_out": days_out},
        )
        return _number(_require(payload, "historical_average", path), float, "historical_average", path)

    async def fetch_room_types(self, property_id: str) -> list[RoomType]:
        path = f"/properties/{property_id}/room-types"
        payload = await self.api.request("GET", path)
        try:
            return [
                RoomType(id=str(rt["id"]), name=rt.get("name", str(rt["id"])), inventory=int(rt["inventory"]))
                for rt in _require(payload, "room_types", path)
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise UpstreamFetchError(f"{path} returned malformed room types: {exc}", endpoint=path) from exc

    async def _room_type_history(self, property_id: str, room_type_id: str, date: datetime, key: str) -> float:
        path = f"/properties/{property_id}/room-types/{room_type_id}/history"
        payload = await self.api.request("GET", path, params={"date": date.date().isoformat()})
        if not isinstance(payload, dict):
            raise UpstreamFetchError(f"{path} returned non-object body", endpoint=path)
        return _number(payload.get(key, 0), float, key, path)

    async def fetch_historical_no_shows(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return await self._room_type_history(property_id, room_type_id, date, "no_shows")

    async def fetch_historical_cancellations(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return await self._room_type_history(property_id, room_type_id, date, "cancellations")

    async def fetch_segment_performance(self, property_id: str, date: datetime) -> list[SegmentPerformance]:
        path = f"/properties/{property_id}/segment-performance"
        payload = await self.api.request("GET", path, params={"date": date.date().isoformat()})
        try:
            return [SegmentPerformance(**row) for row in _require(payload, "segments", path)]
        except TypeError as exc:
            raise UpstreamFetchError(f"{path} returned malformed segments: {exc}", endpoint=path) from exc


class RemoteActionExecutor(ActionExecutor):
    """Pushes yield actions to the property API. No retry on failure."""

    def __init__(self, config: dict[str, Any] | None = None):
        self.api = _PropertyApi({**(config or {}), "retry_attempts": 1})

    async def execute(self, property_id: str, action: Action) -> None:
        await self.api.request(
            "POST",
            f"/properties/{property_id}/yield-actions",
            json={"action": action.to_dict()},
        )
