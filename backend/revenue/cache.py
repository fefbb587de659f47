"""
Dashboard cache — time-bounded memoization keyed by (property, date).

Entries expire by wall-clock age only. Stale entries are dropped on read and
swept on every write, so the map only holds what was stored within one TTL.
Callers clear the cache when they know the underlying data changed.
Concurrent misses for the same key are not de-duplicated.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from revenue.models import YieldDashboard


@dataclass
class _Entry:
    dashboard: YieldDashboard
    stored_at: datetime


def cache_key(property_id: str, when: datetime) -> tuple[str, str]:
    return property_id, when.date().isoformat()


class DashboardCache:
    def __init__(self, ttl: timedelta = timedelta(hours=2), clock: Callable[[], datetime] = datetime.utcnow):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[tuple[str, str], _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _expired(self, entry: _Entry, now: datetime) -> bool:
        return now - entry.stored_at >= self.ttl

    def get(self, property_id: str, when: datetime) -> YieldDashboard | None:
        key = cache_key(property_id, when)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry.dashboard

    def set(self, property_id: str, when: datetime, dashboard: YieldDashboard) -> None:
        now = self._clock()
        self.evict_expired(now)
        self._entries[cache_key(property_id, when)] = _Entry(dashboard=dashboard, stored_at=now)

    def evict_expired(self, now: datetime | None = None) -> int:
        """Drop every stale entry; returns how many were removed."""
        now = now or self._clock()
        stale = [key for key, entry in self._entries.items() if self._expired(entry, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
