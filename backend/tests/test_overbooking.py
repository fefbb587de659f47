"""
Tests for Overbooking Recommendations.
"""

import numpy as np
import pytest

from revenue.models import RoomType
from revenue.overbooking import (
    DEFAULT_AVERAGE_RATE,
    DEFAULT_WALK_COST,
    WALK_PROBABILITY_IS_DEGENERATE,
    recommend_overbooking,
    walk_probability,
)

STANDARD = RoomType(id="standard", name="Standard Room", inventory=50)


class TestRecommendation:
    def test_expected_values(self):
        rec = recommend_overbooking(STANDARD, historical_no_shows=3, historical_cancellations=5)
        assert rec.room_type_id == "standard"
        assert rec.current_inventory == 50
        assert rec.expected_no_shows == pytest.approx(2.4)
        assert rec.expected_cancellations == pytest.approx(4.5)
        assert rec.recommended_overbooking == 6

    def test_revenue_upside_uses_average_rate(self):
        rec = recommend_overbooking(STANDARD, 3, 5)
        assert rec.risk_assessment.revenue_upside == pytest.approx(6 * DEFAULT_AVERAGE_RATE)
        assert rec.risk_assessment.walk_cost == DEFAULT_WALK_COST
        assert rec.risk_assessment.net_benefit == pytest.approx(rec.risk_assessment.revenue_upside)

    def test_custom_costs(self):
        rec = recommend_overbooking(STANDARD, 3, 5, walk_cost=350.0, average_rate=220.0)
        assert rec.risk_assessment.walk_cost == 350.0
        assert rec.risk_assessment.revenue_upside == pytest.approx(6 * 220.0)

    def test_no_history_recommends_nothing(self):
        rec = recommend_overbooking(STANDARD, 0, 0)
        assert rec.recommended_overbooking == 0
        assert rec.risk_assessment.net_benefit == 0


class TestWalkProbability:
    def test_zero_inventory(self):
        assert walk_probability(3, 1.0, 1.0, inventory=0) == 0.0

    def test_positive_when_recommendation_exceeds_expectation(self):
        assert walk_probability(10, 2.0, 3.0, inventory=50) == pytest.approx(0.1)

    def test_walk_probability_is_always_zero(self):
        """recommended is floored from the same expectations, so no walk risk is ever reported."""
        assert WALK_PROBABILITY_IS_DEGENERATE
        rng = np.random.default_rng(11)
        for _ in range(500):
            room_type = RoomType(id="rt", name="rt", inventory=int(rng.integers(0, 200)))
            rec = recommend_overbooking(room_type, float(rng.integers(0, 40)), float(rng.integers(0, 40)))
            assert rec.risk_assessment.walk_probability == 0.0
            assert rec.risk_assessment.net_benefit == pytest.approx(rec.risk_assessment.revenue_upside)
