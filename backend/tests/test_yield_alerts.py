"""
Tests for the Alert Engine — Yield Alerts.

Covers:
  - Critical pace_behind within 7 days out
  - inventory_shortage at 95% occupancy and above
  - rate_opportunity summarising high-impact opportunities
"""

from datetime import datetime

from conftest import make_metrics
from alerts.engine import detect_critical_pace, generate_alerts
from revenue.models import AlertSeverity, BookingPace, PaceTrend, YieldOpportunity

NOW = datetime(2025, 6, 1, 12, 0)


def _pace(days_out, variance):
    trend = PaceTrend.BEHIND if variance < -5 else PaceTrend.ON_PACE
    return BookingPace(
        date=datetime(2025, 6, 11),
        days_out=days_out,
        bookings_to_date=0,
        historical_average=0.0,
        pace_variance=variance,
        trend=trend,
    )


def _opportunity(impact, action_required="Raise rates"):
    return YieldOpportunity(
        type="rate_increase",
        description="test",
        impact=impact,
        revenue_potential=100.0,
        risk_level="low",
        action_required=action_required,
        confidence=0.8,
    )


# ── Pace ──────────────────────────────────────────────────────────────


class TestPaceBehind:
    def test_critical_when_far_behind_near_term(self):
        (alert,) = generate_alerts(make_metrics(), [_pace(7, -25.0)], [], now=NOW)
        assert alert.type == "pace_behind"
        assert alert.severity is AlertSeverity.CRITICAL
        assert alert.message == "Booking pace 25.0% behind historical average"
        assert alert.action_required
        assert alert.date == NOW

    def test_distant_horizon_ignored(self):
        assert generate_alerts(make_metrics(), [_pace(14, -40.0)], [], now=NOW) == []

    def test_mild_shortfall_ignored(self):
        assert generate_alerts(make_metrics(), [_pace(1, -15.0)], [], now=NOW) == []

    def test_first_matching_horizon_is_reported(self):
        entry = detect_critical_pace([_pace(1, -30.0), _pace(7, -50.0)])
        assert entry.days_out == 1


# ── Inventory ─────────────────────────────────────────────────────────


class TestInventoryShortage:
    def test_exactly_ninety_five_percent(self):
        alerts = generate_alerts(make_metrics(occupancy_rate=0.95, sold_rooms=95), [], [], now=NOW)
        assert [a.type for a in alerts] == ["inventory_shortage"]
        assert alerts[0].severity is AlertSeverity.WARNING

    def test_below_threshold(self):
        assert generate_alerts(make_metrics(occupancy_rate=0.94, sold_rooms=94), [], [], now=NOW) == []


# ── Opportunities ─────────────────────────────────────────────────────


class TestRateOpportunity:
    def test_lists_high_impact_actions(self):
        opportunities = [
            _opportunity("high", "Increase rates by 10-15% for remaining inventory"),
            _opportunity("medium", "Implement targeted upgrade offers"),
            _opportunity("high", "Close lower rate channels and implement minimum stay"),
        ]
        (alert,) = generate_alerts(make_metrics(), [], opportunities, now=NOW)
        assert alert.type == "rate_opportunity"
        assert alert.severity is AlertSeverity.INFO
        assert not alert.action_required
        assert alert.message == "2 high-impact revenue opportunities identified"
        assert alert.suggested_actions == [
            "Increase rates by 10-15% for remaining inventory",
            "Close lower rate channels and implement minimum stay",
        ]

    def test_medium_only_produces_no_alert(self):
        assert generate_alerts(make_metrics(), [], [_opportunity("medium")], now=NOW) == []


def test_alerts_ordered_by_rule():
    alerts = generate_alerts(
        make_metrics(occupancy_rate=0.97, sold_rooms=97),
        [_pace(1, -30.0)],
        [_opportunity("high")],
        now=NOW,
    )
    assert [a.type for a in alerts] == ["pace_behind", "inventory_shortage", "rate_opportunity"]
