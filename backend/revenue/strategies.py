"""
Strategy Registry — in-memory store of condition → action pricing rules.

The registry is owned by a ``YieldEngine`` instance (no module-level
singleton). Writes are not atomic; concurrent writers must serialize
externally (e.g. on the owning event loop).
"""

from __future__ import annotations

import copy
import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from revenue.conditions import EvaluationContext, evaluate_all
from revenue.errors import NotFoundError, ValidationError
from revenue.models import (
    Action,
    ActionParameters,
    ActionType,
    AdjustmentType,
    Condition,
    ConditionType,
    ExecutionCadence,
    MetricsSnapshot,
    Operator,
    Strategy,
)

logger = structlog.get_logger()

_UPDATABLE_FIELDS = frozenset(f.name for f in dataclasses.fields(Strategy)) - {"id"}


@dataclass
class StrategyMatch:
    strategy: Strategy
    defaulted_conditions: list[ConditionType] = field(default_factory=list)

    @property
    def matched_by_default(self) -> bool:
        return bool(self.defaulted_conditions)


def _validate_window(strategy: Strategy) -> None:
    if strategy.valid_from > strategy.valid_to:
        raise ValidationError(
            f"valid_from ({strategy.valid_from.isoformat()}) is after valid_to ({strategy.valid_to.isoformat()})"
        )


class StrategyRegistry:
    def __init__(self) -> None:
        self._strategies: dict[str, Strategy] = {}

    def __len__(self) -> int:
        return len(self._strategies)

    def __contains__(self, strategy_id: str) -> bool:
        return strategy_id in self._strategies

    # ── CRUD ───────────────────────────────────────────────────────────

    def create(self, strategy: Strategy) -> str:
        """Store a copy of ``strategy`` under a fresh id and return the id."""
        _validate_window(strategy)
        strategy_id = f"strategy-{uuid.uuid4().hex[:12]}"
        self._strategies[strategy_id] = dataclasses.replace(copy.deepcopy(strategy), id=strategy_id)
        logger.info("strategies.created", strategy_id=strategy_id, name=strategy.name, priority=strategy.priority)
        return strategy_id

    def put(self, strategy: Strategy) -> None:
        """Insert under the strategy's own id (used for seeding)."""
        if not strategy.id:
            raise ValidationError("strategy id is required")
        _validate_window(strategy)
        self._strategies[strategy.id] = copy.deepcopy(strategy)

    def load(self, strategies: list[Strategy]) -> None:
        """Replace the whole registry with a snapshot taken from another process."""
        for strategy in strategies:
            if not strategy.id:
                raise ValidationError("strategy id is required")
            _validate_window(strategy)
        self._strategies = {s.id: copy.deepcopy(s) for s in strategies}
        logger.info("strategies.loaded", count=len(strategies))

    def update(self, strategy_id: str, **updates: Any) -> Strategy:
        existing = self.get(strategy_id)
        unknown = set(updates) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"unknown strategy fields: {sorted(unknown)}")

        merged = dataclasses.replace(existing, **copy.deepcopy(updates))
        _validate_window(merged)
        self._strategies[strategy_id] = merged
        logger.info("strategies.updated", strategy_id=strategy_id, fields=sorted(updates))
        return merged

    def delete(self, strategy_id: str) -> None:
        if self._strategies.pop(strategy_id, None) is not None:
            logger.info("strategies.deleted", strategy_id=strategy_id)

    def get(self, strategy_id: str) -> Strategy:
        try:
            return self._strategies[strategy_id]
        except KeyError:
            raise NotFoundError(strategy_id) from None

    def list(self) -> list[Strategy]:
        return list(self._strategies.values())

    # ── Selection ──────────────────────────────────────────────────────

    def in_window(self, when: datetime) -> list[Strategy]:
        """Active strategies whose validity window contains ``when``."""
        return [s for s in self._strategies.values() if s.active and s.in_window(when)]

    def matches(
        self,
        when: datetime,
        metrics: MetricsSnapshot,
        now: datetime | None = None,
    ) -> list[StrategyMatch]:
        context = EvaluationContext(date=when, metrics=metrics, now=now or datetime.utcnow())
        found: list[StrategyMatch] = []
        for strategy in self.in_window(when):
            result = evaluate_all(strategy.conditions, context)
            if not result.passed:
                continue
            if result.defaulted:
                logger.info(
                    "conditions.matched_by_default",
                    strategy_id=strategy.id,
                    condition_types=[c.value for c in result.defaulted],
                )
            found.append(StrategyMatch(strategy=strategy, defaulted_conditions=result.defaulted))
        found.sort(key=lambda m: m.strategy.priority, reverse=True)
        return found

    def applicable(
        self,
        when: datetime,
        metrics: MetricsSnapshot,
        now: datetime | None = None,
    ) -> list[Strategy]:
        """Active, in-window strategies whose conditions all hold, highest priority first."""
        return [m.strategy for m in self.matches(when, metrics, now)]


# ── Default strategies ────────────────────────────────────────────────────


def default_strategies(valid_from: datetime, valid_to: datetime) -> list[Strategy]:
    return [
        Strategy(
            id="high-occupancy-rate-increase",
            name="High Occupancy Rate Increase",
            description="Increase rates when occupancy exceeds 85%",
            conditions=[Condition(type=ConditionType.OCCUPANCY, operator=Operator.GTE, value=0.85)],
            actions=[
                Action(
                    type=ActionType.ADJUST_RATE,
                    parameters=ActionParameters(
                        adjustment=10,
                        adjustment_type=AdjustmentType.PERCENTAGE,
                        max_adjustment=25,
                    ),
                    execute_at=ExecutionCadence.IMMEDIATE,
                )
            ],
            priority=100,
            active=True,
            valid_from=valid_from,
            valid_to=valid_to,
        ),
        Strategy(
            id="weekend-premium",
            name="Weekend Premium Pricing",
            description="Apply premium rates for Friday and Saturday nights",
            conditions=[Condition(type=ConditionType.DAY_OF_WEEK, operator=Operator.IN, value=[5, 6])],
            actions=[
                Action(
                    type=ActionType.ADJUST_RATE,
                    parameters=ActionParameters(adjustment=15, adjustment_type=AdjustmentType.PERCENTAGE),
                    execute_at=ExecutionCadence.DAILY,
                )
            ],
            priority=80,
            active=True,
            valid_from=valid_from,
            valid_to=valid_to,
        ),
    ]


def seed_default_strategies(
    registry: StrategyRegistry,
    valid_from: datetime = datetime(2024, 1, 1),
    valid_to: datetime = datetime(2025, 12, 31),
) -> StrategyRegistry:
    for strategy in default_strategies(valid_from, valid_to):
        registry.put(strategy)
    return registry
