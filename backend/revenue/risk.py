"""Pluggable risk model for revenue optimization results."""

from __future__ import annotations

from collections.abc import Callable

from revenue.models import MetricsSnapshot, RevenueRisks, Strategy

RiskModel = Callable[[MetricsSnapshot, MetricsSnapshot, list[Strategy]], RevenueRisks]

# Placeholder figures; not derived from data
DEFAULT_DEMAND_DESTRUCTION = 0.1
DEFAULT_COMPETITIVE_LOSS = 0.05
DEFAULT_BRAND_IMPACT = 0.02


def constant_risk_model(
    current: MetricsSnapshot,
    optimized: MetricsSnapshot,
    strategies: list[Strategy],
) -> RevenueRisks:
    return RevenueRisks(
        demand_destruction=DEFAULT_DEMAND_DESTRUCTION,
        competitive_loss=DEFAULT_COMPETITIVE_LOSS,
        brand_impact=DEFAULT_BRAND_IMPACT,
    )
