"""
Yield Engine — Revenue optimization and yield dashboard.

Data flow (one direction, recomputed per call):

  MetricsSnapshot ─▶ StrategyRegistry.matches ─▶ simulate ─▶ RevenueOptimization
        │
        ├─▶ booking pace ─▶ opportunities ─▶ alerts
        └─▶ overbooking / segment performance          ─▶ YieldDashboard (cached 2h)

Each engine owns its registry and cache; construct one per process (or per
test) and pass it around. There is no module-level instance.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import structlog

from alerts.engine import generate_alerts
from integrations.base import ActionExecutor, MetricsProvider, track_fallbacks
from revenue.cache import DashboardCache
from revenue.errors import UpstreamFetchError, ValidationError
from revenue.models import (
    ExecutionCadence,
    ExecutionStatus,
    MetricsSnapshot,
    OverbookingRecommendation,
    RevenueForecast,
    RevenueOptimization,
    Strategy,
    StrategyExecution,
    YieldDashboard,
)
from revenue.opportunities import identify_opportunities
from revenue.overbooking import DEFAULT_AVERAGE_RATE, DEFAULT_WALK_COST, recommend_overbooking
from revenue.pace import analyze_booking_pace
from revenue.risk import RiskModel, constant_risk_model
from revenue.simulation import DEMAND_ELASTICITY, simulate
from revenue.strategies import StrategyRegistry, seed_default_strategies

logger = structlog.get_logger()


class YieldEngine:
    def __init__(
        self,
        provider: MetricsProvider,
        executor: ActionExecutor | None = None,
        *,
        registry: StrategyRegistry | None = None,
        cache_ttl: timedelta = timedelta(hours=2),
        elasticity: float = DEMAND_ELASTICITY,
        walk_cost: float = DEFAULT_WALK_COST,
        average_rate: float = DEFAULT_AVERAGE_RATE,
        risk_model: RiskModel = constant_risk_model,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.provider = provider
        self.executor = executor
        self.registry = registry if registry is not None else StrategyRegistry()
        self.cache = DashboardCache(ttl=cache_ttl, clock=clock)
        self.elasticity = elasticity
        self.walk_cost = walk_cost
        self.average_rate = average_rate
        self.risk_model = risk_model
        self.clock = clock

    # ── Dashboard ──────────────────────────────────────────────────────

    async def analyze_yield_opportunities(self, property_id: str, date: datetime | None = None) -> YieldDashboard:
        date = date or self.clock()
        cached = self.cache.get(property_id, date)
        if cached is not None:
            logger.debug("yield.dashboard.cache_hit", property_id=property_id, date=date.date().isoformat())
            return cached

        with track_fallbacks() as fallbacks:
            metrics = await self.provider.fetch_metrics(property_id, date)
            pace = await analyze_booking_pace(self.provider, property_id, date)
            segments = await self.provider.fetch_segment_performance(property_id, date)
            overbooking = await self.compute_overbooking(property_id, date)
        opportunities = identify_opportunities(metrics, pace)
        now = self.clock()
        alerts = generate_alerts(metrics, pace, opportunities, now=now)

        degraded = metrics.source == "synthetic" or bool(fallbacks)

        dashboard = YieldDashboard(
            property_id=property_id,
            date=date,
            generated_at=now,
            metrics=metrics,
            pace=pace,
            opportunities=opportunities,
            active_strategies=self.registry.in_window(date),
            segment_performance=segments,
            overbooking_recommendations=overbooking,
            alerts=alerts,
            degraded=degraded,
        )
        self.cache.set(property_id, date, dashboard)

        logger.info(
            "yield.dashboard.complete",
            property_id=property_id,
            date=date.date().isoformat(),
            opportunities=len(opportunities),
            alerts=len(alerts),
            degraded=degraded,
        )
        return dashboard

    def clear_cache(self) -> None:
        self.cache.clear()

    # ── Optimization ───────────────────────────────────────────────────

    def optimize_metrics(self, metrics: MetricsSnapshot, date: datetime) -> RevenueOptimization:
        """Pure part of ``optimize``: match strategies and simulate their impact."""
        matches = self.registry.matches(date, metrics, now=self.clock())
        strategies = [m.strategy for m in matches]
        optimized = simulate(metrics, strategies, elasticity=self.elasticity)

        current_revenue = metrics.total_revenue
        optimized_revenue = optimized.total_revenue
        uplift = optimized_revenue - current_revenue
        uplift_percent = (uplift / current_revenue) * 100 if current_revenue else 0.0

        return RevenueOptimization(
            current_revenue=current_revenue,
            optimized_revenue=optimized_revenue,
            uplift=uplift,
            uplift_percent=uplift_percent,
            strategies=strategies,
            forecast=RevenueForecast(
                occupancy=optimized.occupancy_rate,
                adr=optimized.average_daily_rate,
                revpar=optimized.revpar,
            ),
            risks=self.risk_model(metrics, optimized, strategies),
            matched_by_default=[m.strategy.id for m in matches if m.matched_by_default],
        )

    async def optimize(self, property_id: str, date: datetime | None = None) -> RevenueOptimization:
        date = date or self.clock()
        metrics = await self.provider.fetch_metrics(property_id, date)
        result = self.optimize_metrics(metrics, date)
        logger.info(
            "yield.optimize.complete",
            property_id=property_id,
            strategies=[s.id for s in result.strategies],
            current_revenue=round(result.current_revenue, 2),
            optimized_revenue=round(result.optimized_revenue, 2),
            uplift_percent=round(result.uplift_percent, 2),
            metrics_source=metrics.source,
        )
        return result

    # ── Overbooking ────────────────────────────────────────────────────

    async def compute_overbooking(self, property_id: str, date: datetime) -> list[OverbookingRecommendation]:
        recommendations = []
        for room_type in await self.provider.fetch_room_types(property_id):
            no_shows = await self.provider.fetch_historical_no_shows(property_id, room_type.id, date)
            cancellations = await self.provider.fetch_historical_cancellations(property_id, room_type.id, date)
            recommendations.append(
                recommend_overbooking(
                    room_type,
                    no_shows,
                    cancellations,
                    walk_cost=self.walk_cost,
                    average_rate=self.average_rate,
                )
            )
        return recommendations

    # ── Strategy lifecycle ─────────────────────────────────────────────

    def create_strategy(self, strategy: Strategy) -> str:
        return self.registry.create(strategy)

    def update_strategy(self, strategy_id: str, **updates) -> Strategy:
        return self.registry.update(strategy_id, **updates)

    def delete_strategy(self, strategy_id: str) -> None:
        self.registry.delete(strategy_id)

    def get_strategies(self) -> list[Strategy]:
        return self.registry.list()

    # ── Execution ──────────────────────────────────────────────────────

    async def execute_strategy(
        self,
        property_id: str,
        strategy_id: str,
        cadence: ExecutionCadence | None = None,
    ) -> StrategyExecution:
        """
        Push a strategy's actions to the live pricing system, in order.

        Stops at the first failed action; the caller decides whether to
        retry. ``cadence`` restricts execution to actions scheduled at that
        cadence.
        """
        strategy = self.registry.get(strategy_id)
        if not strategy.active:
            raise ValidationError(f"Strategy {strategy_id} is inactive")
        if self.executor is None:
            raise ValidationError("No action executor configured")

        actions = [a for a in strategy.actions if cadence is None or a.execute_at is cadence]
        execution = StrategyExecution(
            strategy_id=strategy_id,
            property_id=property_id,
            status=ExecutionStatus.SUCCESS,
        )
        for action in actions:
            try:
                await self.executor.execute(property_id, action)
            except UpstreamFetchError as exc:
                execution.errors.append(f"{action.type.value}: {exc}")
                execution.status = ExecutionStatus.PARTIAL if execution.actions_executed else ExecutionStatus.FAILED
                logger.error(
                    "yield.execute.failed",
                    property_id=property_id,
                    strategy_id=strategy_id,
                    action=action.type.value,
                    error=str(exc),
                )
                break
            execution.actions_executed += 1

        logger.info(
            "yield.execute.complete",
            property_id=property_id,
            strategy_id=strategy_id,
            status=execution.status.value,
            actions_executed=execution.actions_executed,
        )
        return execution.complete()


def create_engine_from_settings(settings) -> YieldEngine:
    """Production wiring: remote provider (+ synthetic fallback), seeded registry."""
    from integrations import build_action_executor, build_metrics_provider

    registry = seed_default_strategies(
        StrategyRegistry(),
        valid_from=settings.default_strategy_valid_from,
        valid_to=settings.default_strategy_valid_to,
    )
    return YieldEngine(
        build_metrics_provider(settings),
        build_action_executor(settings),
        registry=registry,
        cache_ttl=timedelta(hours=settings.dashboard_cache_ttl_hours),
        elasticity=settings.demand_elasticity,
        walk_cost=settings.overbooking_walk_cost,
        average_rate=settings.overbooking_average_rate,
    )
