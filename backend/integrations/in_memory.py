"""Caller-supplied property data. No I/O; missing values raise UpstreamFetchError."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from integrations.base import MetricsProvider, ProviderKind, register_provider
from revenue.errors import UpstreamFetchError
from revenue.models import MetricsSnapshot, RoomType, SegmentPerformance


@dataclass
class PropertyData:
    metrics: MetricsSnapshot | None = None
    bookings_to_date: dict[int, int] = field(default_factory=dict)  # days_out -> bookings
    historical_pace: dict[int, float] = field(default_factory=dict)  # days_out -> average
    room_types: list[RoomType] = field(default_factory=list)
    no_shows: dict[str, float] = field(default_factory=dict)  # room_type_id -> count
    cancellations: dict[str, float] = field(default_factory=dict)
    segments: list[SegmentPerformance] = field(default_factory=list)


@register_provider
class InMemoryMetricsProvider(MetricsProvider):
    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.properties: dict[str, PropertyData] = dict(self.config.get("properties", {}))
        self.calls: list[tuple[str, str]] = []

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.IN_MEMORY

    def _property(self, property_id: str) -> PropertyData:
        data = self.properties.get(property_id)
        if data is None:
            raise UpstreamFetchError(f"No data for property {property_id}")
        return data

    async def fetch_metrics(self, property_id: str, date: datetime) -> MetricsSnapshot:
        self.calls.append(("fetch_metrics", property_id))
        metrics = self._property(property_id).metrics
        if metrics is None:
            raise UpstreamFetchError(f"No metrics for property {property_id}")
        return metrics

    async def fetch_bookings_to_date(self, property_id: str, target_date: datetime, as_of: datetime) -> int:
        days_out = (target_date.date() - as_of.date()).days
        return self._property(property_id).bookings_to_date.get(days_out, 0)

    async def fetch_historical_pace(self, property_id: str, target_date: datetime, days_out: int) -> float:
        return self._property(property_id).historical_pace.get(days_out, 0.0)

    async def fetch_room_types(self, property_id: str) -> list[RoomType]:
        return list(self._property(property_id).room_types)

    async def fetch_historical_no_shows(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return self._property(property_id).no_shows.get(room_type_id, 0.0)

    async def fetch_historical_cancellations(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return self._property(property_id).cancellations.get(room_type_id, 0.0)

    async def fetch_segment_performance(self, property_id: str, date: datetime) -> list[SegmentPerformance]:
        return list(self._property(property_id).segments)
