"""
Fallback Provider — degrade gracefully when the primary source is down.

Every call to the primary is bounded by ``timeout`` seconds. On timeout or
UpstreamFetchError the call is retried once against the secondary (normally
the synthetic provider) and the substitution is logged, so the dashboard
still renders with clearly-marked synthetic numbers.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from integrations.base import MetricsProvider, ProviderKind, record_fallback
from revenue.errors import UpstreamFetchError
from revenue.models import MetricsSnapshot, RoomType, SegmentPerformance

T = TypeVar("T")


class FallbackMetricsProvider(MetricsProvider):
    def __init__(self, primary: MetricsProvider, secondary: MetricsProvider, timeout: float | None = 5.0):
        self.primary = primary
        self.secondary = secondary
        self.timeout = timeout
        self.fallback_count = 0
        super().__init__({"primary": primary.kind.value, "secondary": secondary.kind.value})

    @property
    def kind(self) -> ProviderKind:
        return self.primary.kind

    async def _call(
        self,
        operation: str,
        primary: Callable[[], Awaitable[T]],
        secondary: Callable[[], Awaitable[T]],
        **context: Any,
    ) -> T:
        try:
            return await asyncio.wait_for(primary(), timeout=self.timeout)
        except (UpstreamFetchError, asyncio.TimeoutError) as exc:
            self.fallback_count += 1
            record_fallback(operation)
            self.logger.warning(
                "metrics.fallback_used",
                operation=operation,
                secondary=self.secondary.kind.value,
                error=str(exc) or type(exc).__name__,
                **context,
            )
            return await secondary()

    async def fetch_metrics(self, property_id: str, date: datetime) -> MetricsSnapshot:
        return await self._call(
            "fetch_metrics",
            lambda: self.primary.fetch_metrics(property_id, date),
            lambda: self.secondary.fetch_metrics(property_id, date),
            property_id=property_id,
        )

    async def fetch_bookings_to_date(self, property_id: str, target_date: datetime, as_of: datetime) -> int:
        return await self._call(
            "fetch_bookings_to_date",
            lambda: self.primary.fetch_bookings_to_date(property_id, target_date, as_of),
            lambda: self.secondary.fetch_bookings_to_date(property_id, target_date, as_of),
            property_id=property_id,
        )

    async def fetch_historical_pace(self, property_id: str, target_date: datetime, days_out: int) -> float:
        return await self._call(
            "fetch_historical_pace",
            lambda: self.primary.fetch_historical_pace(property_id, target_date, days_out),
            lambda: self.secondary.fetch_historical_pace(property_id, target_date, days_out),
            property_id=property_id,
        )

    async def fetch_room_types(self, property_id: str) -> list[RoomType]:
        return await self._call(
            "fetch_room_types",
            lambda: self.primary.fetch_room_types(property_id),
            lambda: self.secondary.fetch_room_types(property_id),
            property_id=property_id,
        )

    async def fetch_historical_no_shows(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return await self._call(
            "fetch_historical_no_shows",
            lambda: self.primary.fetch_historical_no_shows(property_id, room_type_id, date),
            lambda: self.secondary.fetch_historical_no_shows(property_id, room_type_id, date),
            property_id=property_id,
        )

    async def fetch_historical_cancellations(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return await self._call(
            "fetch_historical_cancellations",
            lambda: self.primary.fetch_historical_cancellations(property_id, room_type_id, date),
            lambda: self.secondary.fetch_historical_cancellations(property_id, room_type_id, date),
            property_id=property_id,
        )

    async def fetch_segment_performance(self, property_id: str, date: datetime) -> list[SegmentPerformance]:
        return await self._call(
            "fetch_segment_performance",
            lambda: self.primary.fetch_segment_performance(property_id, date),
            lambda: self.secondary.fetch_segment_performance(property_id, date),
            property_id=property_id,
        )
