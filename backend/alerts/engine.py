"""
Alert Engine — Yield alerts derived from metrics, pace and opportunities.

Alert Types:
  - pace_behind (critical):        pace behind by > 20% within 7 days out
  - inventory_shortage (warning):  occupancy >= 95%
  - rate_opportunity (info):       one or more high-impact opportunities

competitor_action and demand_spike are reserved alert types with no
detection rule yet.
"""

from datetime import datetime

from revenue.models import (
    AlertSeverity,
    BookingPace,
    MetricsSnapshot,
    PaceTrend,
    YieldAlert,
    YieldOpportunity,
)

# ──────────────────────────────────────────────────────────────────────────
# Detection Rules
# ──────────────────────────────────────────────────────────────────────────

ALERT_THRESHOLDS = {
    "pace_behind": {
        "variance_pct": -20.0,  # More than 20% behind history
        "max_days_out": 7,
    },
    "inventory_shortage": {
        "occupancy": 0.95,  # Inclusive
    },
}

PACE_BEHIND_ACTIONS = ["Launch promotional campaign", "Reduce rates", "Increase marketing spend"]
INVENTORY_SHORTAGE_ACTIONS = ["Increase rates", "Implement overbooking strategy", "Close discount channels"]


def detect_critical_pace(pace: list[BookingPace]) -> BookingPace | None:
    """First near-term horizon that is badly behind historical pace."""
    rule = ALERT_THRESHOLDS["pace_behind"]
    for entry in pace:
        if (
            entry.trend is PaceTrend.BEHIND
            and entry.pace_variance < rule["variance_pct"]
            and entry.days_out <= rule["max_days_out"]
        ):
            return entry
    return None


def generate_alerts(
    metrics: MetricsSnapshot,
    pace: list[BookingPace],
    opportunities: list[YieldOpportunity],
    now: datetime | None = None,
) -> list[YieldAlert]:
    now = now or datetime.utcnow()
    alerts = []

    critical_pace = detect_critical_pace(pace)
    if critical_pace is not None:
        alerts.append(
            YieldAlert(
                type="pace_behind",
                severity=AlertSeverity.CRITICAL,
                message=f"Booking pace {abs(critical_pace.pace_variance):.1f}% behind historical average",
                date=now,
                action_required=True,
                suggested_actions=list(PACE_BEHIND_ACTIONS),
            )
        )

    if metrics.occupancy_rate >= ALERT_THRESHOLDS["inventory_shortage"]["occupancy"]:
        alerts.append(
            YieldAlert(
                type="inventory_shortage",
                severity=AlertSeverity.WARNING,
                message="Very high occupancy - potential revenue loss due to inventory constraints",
                date=now,
                action_required=True,
                suggested_actions=list(INVENTORY_SHORTAGE_ACTIONS),
            )
        )

    high_impact = [o for o in opportunities if o.impact == "high"]
    if high_impact:
        alerts.append(
            YieldAlert(
                type="rate_opportunity",
                severity=AlertSeverity.INFO,
                message=f"{len(high_impact)} high-impact revenue opportunities identified",
                date=now,
                action_required=False,
                suggested_actions=[o.action_required for o in high_impact],
            )
        )

    return alerts
