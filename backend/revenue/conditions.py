"""
Condition Evaluator — matches a metrics snapshot against strategy conditions.

Supported signals:
  - occupancy:   metrics.occupancy_rate
  - day_of_week: 0=Sunday .. 6=Saturday
  - lead_time:   ceil((date - now) / 1 day), negative for past dates

season / event / competitor_rate / booking_pace have no data feed yet and
evaluate as MATCHED_BY_DEFAULT, which counts as true for the AND but is
reported separately so dashboards can tell it apart from a real match.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import structlog

from revenue.models import Condition, ConditionType, MetricsSnapshot, Operator

logger = structlog.get_logger()

SECONDS_PER_DAY = 24 * 60 * 60

IMPLEMENTED_CONDITION_TYPES = frozenset(
    {
        ConditionType.OCCUPANCY,
        ConditionType.DAY_OF_WEEK,
        ConditionType.LEAD_TIME,
    }
)


class ConditionOutcome(str, Enum):
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    MATCHED_BY_DEFAULT = "matched_by_default"

    @property
    def passed(self) -> bool:
        return self is not ConditionOutcome.NOT_MATCHED


@dataclass(frozen=True)
class EvaluationContext:
    date: datetime
    metrics: MetricsSnapshot
    now: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ConditionsResult:
    passed: bool
    defaulted: list[ConditionType] = field(default_factory=list)


def day_of_week(when: datetime) -> int:
    """Sunday-based day index (0=Sunday .. 6=Saturday)."""
    return (when.weekday() + 1) % 7


def lead_time_days(when: datetime, now: datetime) -> int:
    return math.ceil((when - now).total_seconds() / SECONDS_PER_DAY)


def compare(actual: Any, operator: Operator | str, expected: Any) -> bool:
    """Apply a comparison operator. Malformed operands never match."""
    try:
        op = Operator(operator)
    except ValueError:
        return False

    try:
        if op is Operator.GT:
            return actual > expected
        if op is Operator.GTE:
            return actual >= expected
        if op is Operator.LT:
            return actual < expected
        if op is Operator.LTE:
            return actual <= expected
        if op is Operator.EQ:
            return actual == expected
        if op is Operator.BETWEEN:
            if not _is_sequence(expected) or len(expected) != 2:
                return False
            low, high = expected
            return low <= actual <= high
        if op is Operator.IN:
            return _is_sequence(expected) and actual in expected
    except TypeError:
        logger.warning("conditions.incomparable_operands", operator=op.value, actual=actual, expected=expected)
        return False
    return False


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (Sequence, set, frozenset)) and not isinstance(value, (str, bytes))


def _actual_value(condition: Condition, context: EvaluationContext) -> Any:
    if condition.type is ConditionType.OCCUPANCY:
        return context.metrics.occupancy_rate
    if condition.type is ConditionType.DAY_OF_WEEK:
        return day_of_week(context.date)
    if condition.type is ConditionType.LEAD_TIME:
        return lead_time_days(context.date, context.now)
    raise KeyError(condition.type)


def evaluate_outcome(condition: Condition, context: EvaluationContext) -> ConditionOutcome:
    if condition.type not in IMPLEMENTED_CONDITION_TYPES:
        return ConditionOutcome.MATCHED_BY_DEFAULT

    actual = _actual_value(condition, context)
    if compare(actual, condition.operator, condition.value):
        return ConditionOutcome.MATCHED
    return ConditionOutcome.NOT_MATCHED


def evaluate(condition: Condition, context: EvaluationContext) -> bool:
    return evaluate_outcome(condition, context).passed


def evaluate_all(conditions: list[Condition], context: EvaluationContext) -> ConditionsResult:
    """AND over every condition; an empty list is vacuously true."""
    defaulted: list[ConditionType] = []
    for condition in conditions:
        outcome = evaluate_outcome(condition, context)
        if outcome is ConditionOutcome.NOT_MATCHED:
            return ConditionsResult(passed=False)
        if outcome is ConditionOutcome.MATCHED_BY_DEFAULT:
            defaulted.append(condition.type)
    return ConditionsResult(passed=True, defaulted=defaulted)
