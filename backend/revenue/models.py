"""
Yield Management Data Model.

Records shared by the condition evaluator, the strategy registry, the
simulation engine and the dashboard. Everything here is a plain dataclass so
that results can be handed to the API layer or a Celery result backend via
``to_dict()`` without an ORM in between.

Derived metrics (revPAR, total revenue) are properties of
``MetricsSnapshot`` and are never stored next to their inputs.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from revenue.errors import ValidationError

# ── Enums ──────────────────────────────────────────────────────────────────


class ConditionType(str, Enum):
    OCCUPANCY = "occupancy"
    LEAD_TIME = "lead_time"
    DAY_OF_WEEK = "day_of_week"
    SEASON = "season"
    EVENT = "event"
    COMPETITOR_RATE = "competitor_rate"
    BOOKING_PACE = "booking_pace"


class Operator(str, Enum):
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    BETWEEN = "between"
    IN = "in"


class ActionType(str, Enum):
    ADJUST_RATE = "adjust_rate"
    CLOSE_ROOM_TYPE = "close_room_type"
    OPEN_ROOM_TYPE = "open_room_type"
    SET_MINIMUM_STAY = "set_minimum_stay"
    REMOVE_RESTRICTIONS = "remove_restrictions"
    UPGRADE_OFFER = "upgrade_offer"


class AdjustmentType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ExecutionCadence(str, Enum):
    """When the *caller* should re-run the action; the engine ignores it."""

    IMMEDIATE = "immediate"
    DAILY = "daily"
    HOURLY = "hourly"


class PaceTrend(str, Enum):
    AHEAD = "ahead"
    BEHIND = "behind"
    ON_PACE = "on_pace"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"  # Some actions went through before a failure
    FAILED = "failed"


# ── Serialization ─────────────────────────────────────────────────────────


def to_jsonable(value: Any) -> Any:
    """Recursively convert dataclasses / enums / datetimes to plain JSON types."""
    if hasattr(value, "to_dict") and dataclasses.is_dataclass(value):
        return value.to_dict()
    if dataclasses.is_dataclass(value):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_jsonable(v) for v in value]
    return value


def _naive_utc(value: datetime) -> datetime:
    # Naive UTC throughout the engine
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid datetime: {value!r}") from exc
        return _naive_utc(parsed)
    raise ValidationError(f"Invalid datetime: {value!r}")


def _fields_as_dict(obj: Any) -> dict[str, Any]:
    return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}


# ── Metrics ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time occupancy / rate picture for one property on one date."""

    occupancy_rate: float
    average_daily_rate: float
    available_rooms: int
    sold_rooms: int
    no_shows: int = 0
    cancellations: int = 0
    walk_ins: int = 0
    upgrades: int = 0
    downgrades: int = 0
    source: str = "live"

    def __post_init__(self) -> None:
        if not 0.0 <= self.occupancy_rate <= 1.0:
            raise ValidationError(f"occupancy_rate must be within [0, 1], got {self.occupancy_rate}")
        if self.average_daily_rate < 0:
            raise ValidationError(f"average_daily_rate must be non-negative, got {self.average_daily_rate}")
        if self.available_rooms < 0 or self.sold_rooms < 0:
            raise ValidationError("room counts must be non-negative")
        if self.sold_rooms > self.available_rooms:
            raise ValidationError(
                f"sold_rooms ({self.sold_rooms}) exceeds available_rooms ({self.available_rooms})"
            )

    @property
    def revpar(self) -> float:
        return self.occupancy_rate * self.average_daily_rate

    @property
    def total_revenue(self) -> float:
        return self.sold_rooms * self.average_daily_rate

    def to_dict(self) -> dict[str, Any]:
        payload = _fields_as_dict(self)
        payload["revpar"] = self.revpar
        payload["total_revenue"] = self.total_revenue
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any], source: str = "live") -> MetricsSnapshot:
        """
        Build a snapshot from an upstream JSON body.

        Accepts the camelCase keys the property API emits as well as
        snake_case. Any stored revPAR / totalRevenue is ignored.
        """

        def pick(snake: str, camel: str, default: Any = None) -> Any:
            if snake in payload:
                return payload[snake]
            if camel in payload:
                return payload[camel]
            if default is None:
                raise ValidationError(f"metrics payload missing {snake!r}")
            return default

        try:
            return cls(
                occupancy_rate=float(pick("occupancy_rate", "occupancyRate")),
                average_daily_rate=float(pick("average_daily_rate", "averageDailyRate")),
                available_rooms=int(pick("available_rooms", "availableRooms")),
                sold_rooms=int(pick("sold_rooms", "soldRooms")),
                no_shows=int(pick("no_shows", "noShows", 0)),
                cancellations=int(pick("cancellations", "cancellations", 0)),
                walk_ins=int(pick("walk_ins", "walkIns", 0)),
                upgrades=int(pick("upgrades", "upgrades", 0)),
                downgrades=int(pick("downgrades", "downgrades", 0)),
                source=source,
            )
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"malformed metrics payload: {exc}") from exc


# ── Strategies ────────────────────────────────────────────────────────────


@dataclass
class Condition:
    type: ConditionType
    operator: Operator
    value: Any
    weight: float = 1.0  # Reserved for scoring; evaluation is a plain AND

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        try:
            return cls(
                type=ConditionType(data["type"]),
                operator=Operator(data["operator"]),
                value=data.get("value"),
                weight=float(data.get("weight", 1.0)),
            )
        except (KeyError, ValueError) as exc:
            raise ValidationError(f"invalid condition: {exc}") from exc


@dataclass
class ActionParameters:
    room_type_id: str | None = None
    adjustment: float | None = None
    adjustment_type: AdjustmentType | None = None
    max_adjustment: float | None = None
    minimum_stay: int | None = None
    upgrade_incentive: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ActionParameters:
        data = data or {}
        adjustment_type = data.get("adjustment_type")
        try:
            return cls(
                room_type_id=data.get("room_type_id"),
                adjustment=data.get("adjustment"),
                adjustment_type=AdjustmentType(adjustment_type) if adjustment_type else None,
                max_adjustment=data.get("max_adjustment"),
                minimum_stay=data.get("minimum_stay"),
                upgrade_incentive=data.get("upgrade_incentive"),
            )
        except ValueError as exc:
            raise ValidationError(f"invalid action parameters: {exc}") from exc


@dataclass
class Action:
    type: ActionType
    parameters: ActionParameters = field(default_factory=ActionParameters)
    execute_at: ExecutionCadence = ExecutionCadence.IMMEDIATE

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "parameters": self.parameters.to_dict(),
            "execute_at": self.execute_at.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        try:
            return cls(
                type=ActionType(data["type"]),
                parameters=ActionParameters.from_dict(data.get("parameters")),
                execute_at=ExecutionCadence(data.get("execute_at", "immediate")),
            )
        except (KeyError, ValueError) as exc:
            raise ValidationError(f"invalid action: {exc}") from exc


@dataclass
class Strategy:
    """A condition → action pricing rule. Higher ``priority`` wins."""

    name: str
    conditions: list[Condition]
    actions: list[Action]
    priority: int
    valid_from: datetime
    valid_to: datetime
    active: bool = True
    description: str = ""
    id: str = ""

    def in_window(self, when: datetime) -> bool:
        return _naive_utc(self.valid_from) <= _naive_utc(when) <= _naive_utc(self.valid_to)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "conditions": [c.to_dict() for c in self.conditions],
            "actions": [a.to_dict() for a in self.actions],
            "priority": self.priority,
            "active": self.active,
            "valid_from": self.valid_from.isoformat(),
            "valid_to": self.valid_to.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Strategy:
        try:
            return cls(
                id=data.get("id", ""),
                name=data["name"],
                description=data.get("description", ""),
                conditions=[Condition.from_dict(c) for c in data.get("conditions", [])],
                actions=[Action.from_dict(a) for a in data.get("actions", [])],
                priority=int(data.get("priority", 0)),
                active=bool(data.get("active", True)),
                valid_from=parse_datetime(data["valid_from"]),
                valid_to=parse_datetime(data["valid_to"]),
            )
        except KeyError as exc:
            raise ValidationError(f"strategy missing field {exc}") from exc


# ── Derived insights ──────────────────────────────────────────────────────


@dataclass
class BookingPace:
    date: datetime
    days_out: int
    bookings_to_date: int
    historical_average: float
    pace_variance: float  # percent vs historical average
    trend: PaceTrend

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class YieldOpportunity:
    type: str  # rate_increase | inventory_control | length_of_stay | upgrade_revenue | overbooking
    description: str
    impact: str  # high | medium | low
    revenue_potential: float
    risk_level: str
    action_required: str
    confidence: float
    deadline: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class RoomType:
    id: str
    name: str
    inventory: int

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class RiskAssessment:
    walk_probability: float
    walk_cost: float
    revenue_upside: float
    net_benefit: float


@dataclass
class OverbookingRecommendation:
    room_type_id: str
    current_inventory: int
    recommended_overbooking: int
    expected_no_shows: float
    expected_cancellations: float
    risk_assessment: RiskAssessment

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class SegmentPerformance:
    segment: str
    bookings: int
    revenue: float
    adr: float
    lead_time: float
    cancellation_rate: float
    no_show_rate: float
    profitability: float
    growth_rate: float

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class YieldAlert:
    type: str  # pace_behind | rate_opportunity | inventory_shortage | competitor_action | demand_spike
    severity: AlertSeverity
    message: str
    date: datetime
    action_required: bool
    suggested_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


# ── Engine outputs ────────────────────────────────────────────────────────


@dataclass
class RevenueRisks:
    demand_destruction: float
    competitive_loss: float
    brand_impact: float


@dataclass
class RevenueForecast:
    occupancy: float
    adr: float
    revpar: float


@dataclass
class RevenueOptimization:
    current_revenue: float
    optimized_revenue: float
    uplift: float
    uplift_percent: float
    strategies: list[Strategy]
    forecast: RevenueForecast
    risks: RevenueRisks
    matched_by_default: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class YieldDashboard:
    property_id: str
    date: datetime
    generated_at: datetime
    metrics: MetricsSnapshot
    pace: list[BookingPace]
    opportunities: list[YieldOpportunity]
    active_strategies: list[Strategy]
    segment_performance: list[SegmentPerformance]
    overbooking_recommendations: list[OverbookingRecommendation]
    alerts: list[YieldAlert]
    degraded: bool = False  # True when any input came from the synthetic fallback

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)


@dataclass
class StrategyExecution:
    """Outcome of pushing a strategy's actions to the live pricing system."""

    strategy_id: str
    property_id: str
    status: ExecutionStatus
    actions_executed: int = 0
    errors: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None

    def complete(self) -> StrategyExecution:
        self.completed_at = datetime.utcnow()
        return self

    def to_dict(self) -> dict[str, Any]:
        return _fields_as_dict(self)
