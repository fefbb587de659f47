"""
Strategy Impact Simulation — forecast the effect of pricing actions.

Each action is a pure reducer over a MetricsSnapshot:

  adjust_rate:
    delta            = pct ? adjustment/100 × ADR : adjustment
    new ADR          = ADR + delta
    price change     = delta / ADR
    demand change    = elasticity × price change          (elasticity = -1.2)
    new occupancy    = clamp(occ × (1 + demand change), 0.1, 1.0)
    sold rooms       = floor(available × new occupancy)

  set_minimum_stay:
    occupancy × 0.95 (restriction friction), ADR × 1.05

Every other action type is a no-op here: closing/opening room types,
removing restrictions and upgrade offers don't move the simulated numbers.
"""

from __future__ import annotations

import dataclasses
import math
from functools import reduce

from revenue.models import Action, ActionType, AdjustmentType, MetricsSnapshot, Strategy

DEMAND_ELASTICITY = -1.2
MIN_OCCUPANCY = 0.1
MAX_OCCUPANCY = 1.0
MINIMUM_STAY_DEMAND_FACTOR = 0.95
MINIMUM_STAY_RATE_FACTOR = 1.05


def clamp_occupancy(occupancy: float) -> float:
    return max(MIN_OCCUPANCY, min(MAX_OCCUPANCY, occupancy))


def _with_occupancy(metrics: MetricsSnapshot, occupancy: float, adr: float) -> MetricsSnapshot:
    return dataclasses.replace(
        metrics,
        occupancy_rate=occupancy,
        average_daily_rate=adr,
        sold_rooms=math.floor(metrics.available_rooms * occupancy),
    )


def rate_delta(action: Action, current_adr: float) -> float:
    """Currency change in ADR for an adjust_rate action, after the max cap."""
    params = action.parameters
    if not params.adjustment or params.adjustment_type is None:
        return 0.0

    adjustment = float(params.adjustment)
    if params.max_adjustment is not None:
        cap = abs(float(params.max_adjustment))
        adjustment = max(-cap, min(cap, adjustment))

    if params.adjustment_type is AdjustmentType.PERCENTAGE:
        return (adjustment / 100) * current_adr
    return adjustment


def apply_action(
    metrics: MetricsSnapshot,
    action: Action,
    elasticity: float = DEMAND_ELASTICITY,
) -> MetricsSnapshot:
    if action.type is ActionType.ADJUST_RATE:
        delta = rate_delta(action, metrics.average_daily_rate)
        if delta == 0:
            return metrics
        # A rate never drops below zero
        new_adr = max(0.0, metrics.average_daily_rate + delta)
        delta = new_adr - metrics.average_daily_rate
        price_change = delta / metrics.average_daily_rate if metrics.average_daily_rate > 0 else 0.0
        demand_change = elasticity * price_change
        occupancy = clamp_occupancy(metrics.occupancy_rate * (1 + demand_change))
        return _with_occupancy(metrics, occupancy, metrics.average_daily_rate + delta)

    if action.type is ActionType.SET_MINIMUM_STAY:
        occupancy = clamp_occupancy(metrics.occupancy_rate * MINIMUM_STAY_DEMAND_FACTOR)
        return _with_occupancy(metrics, occupancy, metrics.average_daily_rate * MINIMUM_STAY_RATE_FACTOR)

    return metrics


def simulate(
    metrics: MetricsSnapshot,
    strategies: list[Strategy],
    elasticity: float = DEMAND_ELASTICITY,
) -> MetricsSnapshot:
    """Fold every matched strategy's actions over ``metrics``, highest priority first."""
    ordered = sorted(strategies, key=lambda s: s.priority, reverse=True)
    actions = [action for strategy in ordered for action in strategy.actions]
    result = reduce(lambda acc, action: apply_action(acc, action, elasticity), actions, metrics)
    return dataclasses.replace(result, source="simulated")
