"""
Yield Opportunity Detection — deterministic rules over a metrics snapshot.

Rules are evaluated independently; zero or several may fire:
  - rate_increase (high):       occupancy > 90% and ADR < 200
  - rate_increase (medium):     occupancy < 60% and pace behind within 14 days out
  - upgrade_revenue (medium):   upgrades < 10% of sold rooms
  - inventory_control (high):   pace ahead by > 15% and occupancy > 80%
"""

from __future__ import annotations

from revenue.models import BookingPace, MetricsSnapshot, PaceTrend, YieldOpportunity

HIGH_OCCUPANCY = 0.9
RATE_CEILING = 200
LOW_OCCUPANCY = 0.6
NEAR_TERM_DAYS_OUT = 14
UPGRADE_PENETRATION_TARGET = 0.1
STRONG_PACE_VARIANCE_PCT = 15
INVENTORY_CONTROL_OCCUPANCY = 0.8


def identify_opportunities(metrics: MetricsSnapshot, pace: list[BookingPace]) -> list[YieldOpportunity]:
    opportunities: list[YieldOpportunity] = []

    if metrics.occupancy_rate > HIGH_OCCUPANCY and metrics.average_daily_rate < RATE_CEILING:
        opportunities.append(
            YieldOpportunity(
                type="rate_increase",
                description="High occupancy with rate increase opportunity",
                impact="high",
                revenue_potential=metrics.sold_rooms * 25,
                risk_level="low",
                action_required="Increase rates by 10-15% for remaining inventory",
                confidence=0.85,
            )
        )

    if metrics.occupancy_rate < LOW_OCCUPANCY and any(
        p.trend is PaceTrend.BEHIND and p.days_out <= NEAR_TERM_DAYS_OUT for p in pace
    ):
        opportunities.append(
            YieldOpportunity(
                type="rate_increase",
                description="Low occupancy with booking pace behind - stimulate demand",
                impact="medium",
                revenue_potential=(metrics.available_rooms - metrics.sold_rooms) * 30,
                risk_level="medium",
                action_required="Implement promotional pricing or packages",
                confidence=0.7,
            )
        )

    if metrics.upgrades < metrics.sold_rooms * UPGRADE_PENETRATION_TARGET:
        opportunities.append(
            YieldOpportunity(
                type="upgrade_revenue",
                description="Low upgrade penetration - revenue opportunity",
                impact="medium",
                revenue_potential=metrics.sold_rooms * 25,
                risk_level="low",
                action_required="Implement targeted upgrade offers",
                confidence=0.75,
            )
        )

    strong_pace = any(p.trend is PaceTrend.AHEAD and p.pace_variance > STRONG_PACE_VARIANCE_PCT for p in pace)
    if strong_pace and metrics.occupancy_rate > INVENTORY_CONTROL_OCCUPANCY:
        opportunities.append(
            YieldOpportunity(
                type="inventory_control",
                description="Strong pace ahead - control inventory for rate optimization",
                impact="high",
                revenue_potential=metrics.sold_rooms * 15,
                risk_level="medium",
                action_required="Close lower rate channels and implement minimum stay",
                confidence=0.8,
            )
        )

    return opportunities
