"""
Booking Pace Analysis.

For a target stay date, compares bookings on the books at several days-out
horizons against the historical average at the same horizon.

  variance = (bookings_to_date - historical) / historical × 100
  trend    = ahead (> +5%) | behind (< -5%) | on_pace
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from revenue.models import BookingPace, PaceTrend

if TYPE_CHECKING:
    from integrations.base import MetricsProvider

DAYS_OUT = (1, 7, 14, 30, 60, 90)
PACE_TOLERANCE_PCT = 5.0


def pace_variance(bookings_to_date: float, historical_average: float) -> float:
    """Percent difference vs history. No history: 0% if also no bookings, else +100%."""
    if historical_average == 0:
        return 0.0 if bookings_to_date == 0 else 100.0
    return ((bookings_to_date - historical_average) / historical_average) * 100


def classify_pace_trend(variance_pct: float) -> PaceTrend:
    if variance_pct > PACE_TOLERANCE_PCT:
        return PaceTrend.AHEAD
    if variance_pct < -PACE_TOLERANCE_PCT:
        return PaceTrend.BEHIND
    return PaceTrend.ON_PACE


def build_pace_entry(
    target_date: datetime,
    days_out: int,
    bookings_to_date: int,
    historical_average: float,
) -> BookingPace:
    variance = pace_variance(bookings_to_date, historical_average)
    return BookingPace(
        date=target_date,
        days_out=days_out,
        bookings_to_date=bookings_to_date,
        historical_average=historical_average,
        pace_variance=variance,
        trend=classify_pace_trend(variance),
    )


async def analyze_booking_pace(
    provider: MetricsProvider,
    property_id: str,
    target_date: datetime,
    horizons: tuple[int, ...] = DAYS_OUT,
) -> list[BookingPace]:
    pace = []
    for days_out in horizons:
        as_of = target_date - timedelta(days=days_out)
        bookings = await provider.fetch_bookings_to_date(property_id, target_date, as_of)
        historical = await provider.fetch_historical_pace(property_id, target_date, days_out)
        pace.append(build_pace_entry(target_date, days_out, bookings, historical))
    return pace
