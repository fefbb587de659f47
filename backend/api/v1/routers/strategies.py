"""
Strategies Router — CRUD for yield strategies.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.deps import get_engine
from revenue.engine import YieldEngine
from revenue.errors import NotFoundError, ValidationError
from revenue.models import (
    Action,
    ActionType,
    AdjustmentType,
    Condition,
    ConditionType,
    ExecutionCadence,
    Operator,
    Strategy,
    parse_datetime,
)

router = APIRouter(prefix="/api/v1/strategies", tags=["strategies"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class ConditionSchema(BaseModel):
    type: ConditionType
    operator: Operator
    value: Any = None
    weight: float = 1.0


class ActionParametersSchema(BaseModel):
    room_type_id: str | None = None
    adjustment: float | None = None
    adjustment_type: AdjustmentType | None = None
    max_adjustment: float | None = None
    minimum_stay: int | None = Field(None, ge=1)
    upgrade_incentive: float | None = None


class ActionSchema(BaseModel):
    type: ActionType
    parameters: ActionParametersSchema = Field(default_factory=ActionParametersSchema)
    execute_at: ExecutionCadence = ExecutionCadence.IMMEDIATE


class StrategyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    conditions: list[ConditionSchema] = Field(default_factory=list)
    actions: list[ActionSchema] = Field(default_factory=list)
    priority: int = 0
    active: bool = True
    valid_from: datetime
    valid_to: datetime


class StrategyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    conditions: list[ConditionSchema] | None = None
    actions: list[ActionSchema] | None = None
    priority: int | None = None
    active: bool | None = None
    valid_from: datetime | None = None
    valid_to: datetime | None = None


class StrategyResponse(StrategyCreate):
    id: str


# ─── Helpers ────────────────────────────────────────────────────────────────


def _to_response(strategy: Strategy) -> StrategyResponse:
    return StrategyResponse.model_validate(strategy.to_dict())


def _to_domain_updates(payload: StrategyUpdate) -> dict[str, Any]:
    """Translate a partial update into Strategy field values."""
    raw = payload.model_dump(mode="json", exclude_unset=True)
    updates: dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if key == "conditions":
            updates[key] = [Condition.from_dict(c) for c in value]
        elif key == "actions":
            updates[key] = [Action.from_dict(a) for a in value]
        elif key in ("valid_from", "valid_to"):
            updates[key] = parse_datetime(value)
        else:
            updates[key] = value
    return updates


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/", response_model=list[StrategyResponse])
async def list_strategies(engine: YieldEngine = Depends(get_engine)):
    """List strategies, highest priority first."""
    strategies = sorted(engine.get_strategies(), key=lambda s: s.priority, reverse=True)
    return [_to_response(s) for s in strategies]


@router.get("/{strategy_id}", response_model=StrategyResponse)
async def get_strategy(strategy_id: str, engine: YieldEngine = Depends(get_engine)):
    try:
        return _to_response(engine.registry.get(strategy_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Strategy not found")


@router.post("/", response_model=StrategyResponse, status_code=status.HTTP_201_CREATED)
async def create_strategy(payload: StrategyCreate, engine: YieldEngine = Depends(get_engine)):
    """Create a strategy. The id is assigned by the registry."""
    try:
        strategy = Strategy.from_dict(payload.model_dump(mode="json"))
        strategy_id = engine.create_strategy(strategy)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _to_response(engine.registry.get(strategy_id))


@router.patch("/{strategy_id}", response_model=StrategyResponse)
async def update_strategy(
    strategy_id: str,
    payload: StrategyUpdate,
    engine: YieldEngine = Depends(get_engine),
):
    try:
        updated = engine.update_strategy(strategy_id, **_to_domain_updates(payload))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Strategy not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _to_response(updated)


@router.delete("/{strategy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_strategy(strategy_id: str, engine: YieldEngine = Depends(get_engine)):
    """Delete a strategy. Deleting an unknown id is not an error."""
    engine.delete_strategy(strategy_id)
