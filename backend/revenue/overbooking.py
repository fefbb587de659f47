"""
Overbooking Recommendations — per room type.

  expected no-shows       = historical no-shows × 0.8
  expected cancellations  = historical cancellations × 0.9
  recommended overbooking = floor(expected no-shows + expected cancellations)
  walk probability        = max(0, (recommended - expected no-shows - expected cancellations) / inventory)
  net benefit             = recommended × rate - walk probability × walk cost × recommended
"""

from __future__ import annotations

import math

from revenue.models import OverbookingRecommendation, RiskAssessment, RoomType

NO_SHOW_FACTOR = 0.8
CANCELLATION_FACTOR = 0.9
DEFAULT_WALK_COST = 200.0
DEFAULT_AVERAGE_RATE = 150.0

# Known issue: ``recommended`` is the floor of the same two terms subtracted
# in the numerator, so the numerator is never positive and walk probability
# is always 0. Kept as-is until the walk model is redefined; pinned by
# test_walk_probability_is_always_zero.
WALK_PROBABILITY_IS_DEGENERATE = True


def walk_probability(recommended: int, expected_no_shows: float, expected_cancellations: float, inventory: int) -> float:
    if inventory <= 0:
        return 0.0
    return max(0.0, (recommended - expected_no_shows - expected_cancellations) / inventory)


def recommend_overbooking(
    room_type: RoomType,
    historical_no_shows: float,
    historical_cancellations: float,
    walk_cost: float = DEFAULT_WALK_COST,
    average_rate: float = DEFAULT_AVERAGE_RATE,
) -> OverbookingRecommendation:
    expected_no_shows = historical_no_shows * NO_SHOW_FACTOR
    expected_cancellations = historical_cancellations * CANCELLATION_FACTOR
    recommended = math.floor(expected_no_shows + expected_cancellations)

    probability = walk_probability(recommended, expected_no_shows, expected_cancellations, room_type.inventory)
    revenue_upside = recommended * average_rate

    return OverbookingRecommendation(
        room_type_id=room_type.id,
        current_inventory=room_type.inventory,
        recommended_overbooking=recommended,
        expected_no_shows=expected_no_shows,
        expected_cancellations=expected_cancellations,
        risk_assessment=RiskAssessment(
            walk_probability=probability,
            walk_cost=walk_cost,
            revenue_upside=revenue_upside,
            net_benefit=revenue_upside - probability * walk_cost * recommended,
        ),
    )
