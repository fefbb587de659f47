"""
Synthetic Property Data

Seeded random data used for demos and as the degraded-mode fallback when
the property API is unreachable. Every snapshot it produces is marked
``source="synthetic"`` so it can't be mistaken for live numbers.
"""

import math
from datetime import datetime
from typing import Any

import numpy as np

from integrations.base import MetricsProvider, ProviderKind, register_provider
from revenue.models import MetricsSnapshot, RoomType, SegmentPerformance

SEGMENTS = ["Corporate", "Leisure", "Group", "Government", "Online Travel Agent"]

ROOM_TYPES = [
    RoomType(id="standard", name="Standard Room", inventory=50),
    RoomType(id="deluxe", name="Deluxe Room", inventory=30),
    RoomType(id="suite", name="Suite", inventory=20),
]

AVAILABLE_ROOMS = 100


@register_provider
class SyntheticMetricsProvider(MetricsProvider):
    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.rng = np.random.default_rng(self.config.get("seed"))

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.SYNTHETIC

    async def fetch_metrics(self, property_id: str, date: datetime) -> MetricsSnapshot:
        occupancy = 0.75 + self.rng.random() * 0.2
        return MetricsSnapshot(
            occupancy_rate=float(occupancy),
            average_daily_rate=float(150 + self.rng.random() * 50),
            available_rooms=AVAILABLE_ROOMS,
            sold_rooms=math.floor(AVAILABLE_ROOMS * occupancy),
            no_shows=3,
            cancellations=5,
            walk_ins=2,
            upgrades=4,
            downgrades=1,
            source="synthetic",
        )

    async def fetch_bookings_to_date(self, property_id: str, target_date: datetime, as_of: datetime) -> int:
        return int(self.rng.integers(10, 30))

    async def fetch_historical_pace(self, property_id: str, target_date: datetime, days_out: int) -> float:
        return float(self.rng.integers(8, 23))

    async def fetch_room_types(self, property_id: str) -> list[RoomType]:
        return [RoomType(id=rt.id, name=rt.name, inventory=rt.inventory) for rt in ROOM_TYPES]

    async def fetch_historical_no_shows(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return float(self.rng.integers(1, 4))

    async def fetch_historical_cancellations(self, property_id: str, room_type_id: str, date: datetime) -> float:
        return float(self.rng.integers(2, 6))

    async def fetch_segment_performance(self, property_id: str, date: datetime) -> list[SegmentPerformance]:
        return [
            SegmentPerformance(
                segment=segment,
                bookings=int(self.rng.integers(5, 30)),
                revenue=float(self.rng.integers(1000, 6000)),
                adr=float(self.rng.integers(120, 200)),
                lead_time=float(self.rng.integers(5, 30)),
                cancellation_rate=float(self.rng.random() * 0.15),
                no_show_rate=float(self.rng.random() * 0.05),
                profitability=float(self.rng.random() * 0.4 + 0.6),
                growth_rate=float((self.rng.random() - 0.5) * 0.3),
            )
            for segment in SEGMENTS
        ]
