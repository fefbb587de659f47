"""
Yield Router — dashboard, optimization, overbooking, strategy execution and
automation dispatch.
"""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from api.deps import get_engine
from revenue.engine import YieldEngine
from revenue.errors import NotFoundError, UpstreamFetchError, ValidationError
from revenue.models import ExecutionCadence

router = APIRouter(prefix="/api/v1/properties/{property_id}/yield", tags=["yield"])
cache_router = APIRouter(prefix="/api/v1/yield", tags=["yield"])


def _target_datetime(target_date: date | None) -> datetime | None:
    if target_date is None:
        return None
    return datetime.combine(target_date, datetime.min.time())


def _upstream_unavailable(exc: UpstreamFetchError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Property data unavailable: {exc}")


@router.get("/dashboard")
async def get_yield_dashboard(
    property_id: str,
    target_date: date | None = Query(None, alias="date", description="Stay date (defaults to today)"),
    engine: YieldEngine = Depends(get_engine),
):
    """Metrics, pace, opportunities, overbooking and alerts for one date."""
    try:
        dashboard = await engine.analyze_yield_opportunities(property_id, _target_datetime(target_date))
    except UpstreamFetchError as exc:
        raise _upstream_unavailable(exc)
    return dashboard.to_dict()


@router.post("/optimize")
async def optimize_revenue(
    property_id: str,
    target_date: date | None = Query(None, alias="date"),
    engine: YieldEngine = Depends(get_engine),
):
    """Simulate the matched strategies and report the revenue impact."""
    try:
        result = await engine.optimize(property_id, _target_datetime(target_date))
    except UpstreamFetchError as exc:
        raise _upstream_unavailable(exc)
    return result.to_dict()


@router.get("/overbooking")
async def get_overbooking_recommendations(
    property_id: str,
    target_date: date | None = Query(None, alias="date"),
    engine: YieldEngine = Depends(get_engine),
):
    when = _target_datetime(target_date) or engine.clock()
    try:
        recommendations = await engine.compute_overbooking(property_id, when)
    except UpstreamFetchError as exc:
        raise _upstream_unavailable(exc)
    return [r.to_dict() for r in recommendations]


@router.post("/strategies/{strategy_id}/execute")
async def execute_strategy(
    property_id: str,
    strategy_id: str,
    cadence: ExecutionCadence | None = None,
    engine: YieldEngine = Depends(get_engine),
):
    """Push a strategy's actions to the live pricing system."""
    try:
        execution = await engine.execute_strategy(property_id, strategy_id, cadence=cadence)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Strategy not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return execution.to_dict()


@cache_router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_dashboard_cache(engine: YieldEngine = Depends(get_engine)):
    """Drop cached dashboards after a known data change."""
    engine.clear_cache()


class AutomationDispatch(BaseModel):
    property_ids: list[str] | None = Field(None, description="Defaults to AUTOMATION_PROPERTY_IDS")


@cache_router.post("/automation/dispatch", status_code=status.HTTP_202_ACCEPTED)
async def dispatch_automation(
    payload: AutomationDispatch | None = None,
    engine: YieldEngine = Depends(get_engine),
):
    """Queue a yield cycle per property, run against this API's current strategies."""
    from workers.celery_app import celery_app

    strategies = [s.to_dict() for s in engine.get_strategies()]
    result = celery_app.send_task(
        "workers.yield_automation.dispatch_properties",
        kwargs={
            "task_name": "workers.yield_automation.run_yield_cycle",
            "property_ids": payload.property_ids if payload else None,
            "strategies": strategies,
        },
    )
    return {"status": "queued", "task_id": result.id, "strategies": [s["id"] for s in strategies]}
