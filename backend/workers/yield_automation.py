"""
Yield Automation Worker — hourly dashboard refresh and optional auto-pricing.

For every property in AUTOMATION_PROPERTY_IDS:
  1. Rebuild the yield dashboard (fresh engine, so no stale cache)
  2. Run revenue optimization against the strategies carried in the task
     kwargs, or the seeded defaults when none are passed
  3. If AUTOMATION_EXECUTE_ACTIONS is on, push the `immediate` actions of
     every matched strategy to the live pricing system

Each worker builds its own engine, so it cannot see the API process's
registry. The hourly beat therefore runs the seeded defaults; POST
/api/v1/yield/automation/dispatch sends a snapshot of the API's strategies
along with the fan-out.

Schedule: crontab(minute=0) — hourly
Queue: yield
"""

import asyncio
from datetime import datetime, timezone

import structlog

from workers.celery_app import celery_app

logger = structlog.get_logger()


@celery_app.task(
    name="workers.yield_automation.dispatch_properties",
    bind=True,
    max_retries=2,
    default_retry_delay=60,
    acks_late=True,
)
def dispatch_properties(
    self,
    task_name: str,
    property_ids: list[str] | None = None,
    strategies: list[dict] | None = None,
):
    """Dispatch a property-scoped task across all automated properties."""
    from core.config import get_settings

    run_id = self.request.id or "manual"
    if not task_name.startswith("workers."):
        return {"status": "failed", "reason": "invalid_task_name", "task_name": task_name}

    targets = list(property_ids) if property_ids is not None else get_settings().automation_properties
    for property_id in targets:
        kwargs = {"property_id": property_id}
        if strategies is not None:
            kwargs["strategies"] = strategies
        celery_app.send_task(task_name, kwargs=kwargs)

    summary = {
        "status": "success",
        "task_name": task_name,
        "property_count": len(targets),
        "strategy_snapshot": strategies is not None,
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "run_id": run_id,
    }
    logger.info("yield_automation.dispatch_complete", **summary)
    return summary


async def run_cycle(engine, property_id: str, when: datetime, execute_actions: bool = False) -> dict:
    """One automation pass for a property. Separated from the task for testing."""
    from revenue.models import ExecutionCadence

    engine.clear_cache()
    dashboard = await engine.analyze_yield_opportunities(property_id, when)
    optimization = await engine.optimize(property_id, when)

    executions = []
    if execute_actions and not dashboard.degraded:
        for strategy in optimization.strategies:
            execution = await engine.execute_strategy(property_id, strategy.id, cadence=ExecutionCadence.IMMEDIATE)
            executions.append(execution.to_dict())
    elif execute_actions:
        logger.warning("yield_automation.execution_skipped_degraded", property_id=property_id)

    return {
        "status": "success",
        "property_id": property_id,
        "date": when.date().isoformat(),
        "degraded": dashboard.degraded,
        "alerts": [a.type for a in dashboard.alerts],
        "opportunities": len(dashboard.opportunities),
        "strategies": [s.id for s in optimization.strategies],
        "uplift": round(optimization.uplift, 2),
        "uplift_percent": round(optimization.uplift_percent, 2),
        "executions": executions,
    }


@celery_app.task(
    name="workers.yield_automation.run_yield_cycle",
    bind=True,
    max_retries=2,
    default_retry_delay=120,
    acks_late=True,
)
def run_yield_cycle(self, property_id: str, date_iso: str | None = None, strategies: list[dict] | None = None):
    run_id = self.request.id or "manual"
    logger.info("yield_automation.started", property_id=property_id, run_id=run_id)

    from core.config import get_settings
    from revenue.engine import create_engine_from_settings
    from revenue.models import Strategy, parse_datetime

    settings = get_settings()
    engine = create_engine_from_settings(settings)
    if strategies is not None:
        engine.registry.load([Strategy.from_dict(s) for s in strategies])
    when = parse_datetime(date_iso) if date_iso else datetime.utcnow()

    try:
        summary = asyncio.run(run_cycle(engine, property_id, when, settings.automation_execute_actions))
    except Exception as exc:  # noqa: BLE001
        logger.error("yield_automation.failed", property_id=property_id, error=str(exc), exc_info=True)
        raise self.retry(exc=exc)

    summary["run_id"] = run_id
    logger.info("yield_automation.complete", **summary)
    return summary
