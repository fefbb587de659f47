"""
Property Data Provider — Abstract Base Class

Everything the yield engine reads about a property (occupancy snapshot,
booking pace, room inventory, no-show / cancellation history, segment mix)
comes through this interface, so the engine is source-agnostic:

  - remote     — the property management API over HTTP
  - synthetic  — seeded random data for demos and degraded mode
  - in_memory  — caller-supplied values, no I/O
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from revenue.models import Action, MetricsSnapshot, RoomType, SegmentPerformance

logger = structlog.get_logger()


# ── Provider types ────────────────────────────────────────────────────────


class ProviderKind(str, Enum):
    """Supported property data sources."""

    REMOTE = "remote"
    SYNTHETIC = "synthetic"
    IN_MEMORY = "in_memory"


# ── Fallback tracking ─────────────────────────────────────────────────────

_fallbacks: ContextVar[list[str] | None] = ContextVar("provider_fallbacks", default=None)


@contextmanager
def track_fallbacks() -> Iterator[list[str]]:
    """
    Collect the operations that fell back to a secondary source within this
    block. Scoped to the current task, so concurrent dashboard builds on a
    shared provider do not see each other's substitutions.
    """
    used: list[str] = []
    token = _fallbacks.set(used)
    try:
        yield used
    finally:
        _fallbacks.reset(token)


def record_fallback(operation: str) -> None:
    used = _fallbacks.get()
    if used is not None:
        used.append(operation)


# ── Abstract provider ─────────────────────────────────────────────────────


class MetricsProvider(ABC):
    """
    Base class for all property data sources.

    Implementations raise ``UpstreamFetchError`` when the data source is
    unavailable; ``FallbackMetricsProvider`` relies on that contract.
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        self.logger = logger.bind(provider=self.kind.value)

    @property
    @abstractmethod
    def kind(self) -> ProviderKind:
        """Return the provider kind."""
        ...

    @abstractmethod
    async def fetch_metrics(self, property_id: str, date: datetime) -> MetricsSnapshot:
        """Occupancy / rate snapshot for a property on a date."""
        ...

    @abstractmethod
    async def fetch_bookings_to_date(self, property_id: str, target_date: datetime, as_of: datetime) -> int:
        """Bookings on the books for ``target_date`` as of ``as_of``."""
        ...

    @abstractmethod
    async def fetch_historical_pace(self, property_id: str, target_date: datetime, days_out: int) -> float:
        """Historical average bookings at ``days_out`` for comparable dates."""
        ...

    @abstractmethod
    async def fetch_room_types(self, property_id: str) -> list[RoomType]:
        ...

    @abstractmethod
    async def fetch_historical_no_shows(self, property_id: str, room_type_id: str, date: datetime) -> float:
        ...

    @abstractmethod
    async def fetch_historical_cancellations(self, property_id: str, room_type_id: str, date: datetime) -> float:
        ...

    @abstractmethod
    async def fetch_segment_performance(self, property_id: str, date: datetime) -> list[SegmentPerformance]:
        ...


class ActionExecutor(ABC):
    """Applies a yield action to the live pricing system."""

    @abstractmethod
    async def execute(self, property_id: str, action: Action) -> None:
        ...


# ── Provider registry ─────────────────────────────────────────────────────

_PROVIDER_REGISTRY: dict[ProviderKind, type[MetricsProvider]] = {}


def register_provider(provider_cls: type[MetricsProvider]):
    """Decorator: register a provider class for its kind."""
    _PROVIDER_REGISTRY[provider_cls.kind.fget(None)] = provider_cls  # type: ignore
    return provider_cls


def get_provider(kind: ProviderKind, config: dict[str, Any] | None = None) -> MetricsProvider:
    """Factory: return the right provider instance for the given kind."""
    provider_cls = _PROVIDER_REGISTRY.get(kind)
    if provider_cls is None:
        raise ValueError(f"No provider registered for kind: {kind.value}")
    return provider_cls(config=config)
