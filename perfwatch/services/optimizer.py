"""Runtime performance monitoring and adaptive optimization engine."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar
from uuid import uuid4

from perfwatch.core.config import OptimizerOptions, PerformanceBudget
from perfwatch.core.session_context import session_context
from perfwatch.core.tasks import LifecycleManager
from perfwatch.models import (
    Alert,
    AlertType,
    BudgetStatus,
    CollectorState,
    MetricCategory,
    MetricSample,
    OptimizationResult,
    PerformanceSummary,
    Recommendation,
)
from perfwatch.services.actuator import OptimizationActuator, OptimizationHook
from perfwatch.services.alert_manager import AlertManager, AlertSink
from perfwatch.services.budget import check_budget, evaluate_budget
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.collectors import (
    BundleCollector,
    Collector,
    CollectorContext,
    DomMutationCollector,
    FrameRateCollector,
    IntervalHandle,
    LoadCollector,
    LongTaskCollector,
    MemoryCollector,
    NetworkCollector,
    RenderingCollector,
)
from perfwatch.services.component_registry import ComponentRegistry
from perfwatch.services.lazy_loader import ProgressiveLoader
from perfwatch.services.metric_store import MetricStore
from perfwatch.services.recommendations import generate_recommendations

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
Fetch = TypeVar("Fetch", bound=Callable[..., Awaitable[Any]])


class PerformanceOptimizer:
    """Observe a running application, budget its signals and act on them.

    Collectors are attached during ``init`` according to the options and
    the host's capabilities; ``cleanup`` releases every subscription and
    timer and clears stored metrics and alerts. Failures inside collectors,
    budget checks and optimization actions are recorded or logged and
    never raised to callers.
    """

    def __init__(
        self,
        options: OptimizerOptions | Mapping[str, Any] | None = None,
        *,
        capabilities: CapabilityProvider | None = None,
        components: ComponentRegistry | None = None,
        on_alert: AlertSink | None = None,
    ) -> None:
        if options is None:
            options = OptimizerOptions()
        elif not isinstance(options, OptimizerOptions):
            options = OptimizerOptions.model_validate(dict(options))
        self.options = options
        self.session_id = uuid4().hex[:8]
        self.capabilities = capabilities or CapabilityProvider.detect()
        self._owns_capabilities = capabilities is None
        self.components = components or ComponentRegistry()

        policy = options.policy
        self.store = MetricStore(capacity=policy.series_capacity)
        self.alerts = AlertManager(capacity=policy.alert_capacity, sink=on_alert)
        self._lifecycle = LifecycleManager(name="perfwatch", logger=logger)
        self._context = CollectorContext(
            store=self.store,
            alerts=self.alerts,
            options=options,
            capabilities=self.capabilities,
            lifecycle=self._lifecycle,
            budget=options.performance_budget,
        )

        self.load = LoadCollector(self._context)
        self.rendering = RenderingCollector(self._context)
        self.frame_rate = FrameRateCollector(self._context)
        self.long_tasks = LongTaskCollector(self._context)
        self.dom_mutations = DomMutationCollector(self._context)
        self.network = NetworkCollector(self._context)
        self.memory = MemoryCollector(self._context)
        self.bundle = BundleCollector(self._context)
        self.lazy_loader = ProgressiveLoader(
            self.store,
            self.components,
            self.capabilities,
            self._lifecycle,
        )
        self.actuator = OptimizationActuator(self.store, options)

        self._initialized = False
        self._closed = False

    @property
    def budget(self) -> PerformanceBudget:
        return self._context.budget

    @property
    def collectors(self) -> List[Collector]:
        return [
            self.load,
            self.rendering,
            self.frame_rate,
            self.long_tasks,
            self.dom_mutations,
            self.network,
            self.memory,
            self.bundle,
        ]

    async def __aenter__(self) -> "PerformanceOptimizer":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cleanup()

    async def init(self) -> None:
        if self._initialized:
            return
        self._initialized = True

        with session_context(f"perf:{self.session_id}"):
            logger.info("Initializing performance monitoring")
            options = self.options

            runtime = [self.load, self.rendering, self.frame_rate, self.long_tasks, self.dom_mutations, self.network]
            for collector in runtime:
                self._activate(collector, options.enable_auto_optimization)
            self._activate(self.memory, options.enable_memory_monitoring)
            self._activate(self.bundle, options.enable_bundle_analysis)
            if options.enable_lazy_loading:
                self.lazy_loader.start()
            else:
                self.lazy_loader.disable()

            logger.info("Performance budget configured: %s", self.budget.model_dump())
            active = [state.name for state in self.collector_states() if state.active]
            logger.info("Performance monitoring active (%s)", ", ".join(active) or "no collectors")

    def _activate(self, collector: Collector, enabled: bool) -> None:
        if enabled:
            collector.start()
        else:
            collector.disable()

    async def cleanup(self) -> None:
        """Stop every collector and clear all recorded data; safe to repeat."""
        for collector in self.collectors:
            collector.stop()
        self.lazy_loader.stop()
        await self._lifecycle.cancel_tracked()
        if self._owns_capabilities and not self._closed:
            self.capabilities.close()
        self._closed = True
        self.store.clear()
        self.alerts.clear()
        logger.info("Performance monitoring cleanup complete")

    def record_metric(self, category: MetricCategory | str, name: str, data: Mapping[str, Any]) -> MetricSample:
        return self.store.record(category, name, data)

    def add_alert(self, alert_type: AlertType | str, data: Mapping[str, Any]) -> Alert:
        return self.alerts.add(alert_type, data)

    def get_metrics(self, category: MetricCategory | str | None = None) -> Dict[str, Any]:
        return self.store.get(category)

    def get_alerts(self, alert_type: AlertType | str | None = None) -> List[Alert]:
        return self.alerts.get(alert_type)

    def check_budget(self, category: MetricCategory | str, name: str, budget: float) -> BudgetStatus:
        return check_budget(self.store, category, name, budget)

    def generate_recommendations(self) -> List[Recommendation]:
        return generate_recommendations(self.alerts, self.store, self.options.policy)

    def get_performance_summary(self) -> PerformanceSummary:
        categories = self.store.categories()
        return PerformanceSummary(
            total_metrics=sum(categories.values()),
            total_alerts=len(self.alerts),
            categories=categories,
            budget_status=evaluate_budget(self.store, self.budget),
            recommendations=self.generate_recommendations(),
        )

    def get_status(self) -> PerformanceSummary:
        return self.get_performance_summary()

    def collector_states(self) -> List[CollectorState]:
        return [collector.state for collector in self.collectors] + [self.lazy_loader.state]

    def reconfigure_budget(self, budget: PerformanceBudget | Mapping[str, Any]) -> PerformanceBudget:
        """Replace the performance budget used by subsequent checks."""
        if not isinstance(budget, PerformanceBudget):
            budget = PerformanceBudget.model_validate(dict(budget))
        self._context.budget = budget
        logger.info("Performance budget reconfigured: %s", budget.model_dump())
        return budget

    def register_optimization_hook(self, action: str, hook: OptimizationHook) -> None:
        self.actuator.register_hook(action, hook)

    async def apply_optimizations(self) -> List[OptimizationResult]:
        recommendations = self.generate_recommendations()
        if not recommendations:
            return []
        with session_context(f"perf:{self.session_id}"):
            return await self.actuator.apply(recommendations)

    def instrument_fetch(self, fetch: Fetch) -> Fetch:
        return self.network.instrument(fetch)

    def track_long_tasks(self, kind: str = "task") -> Callable[[F], F]:
        return self.long_tasks.track(kind)

    def call_soon(self, callback: Callable[..., Any], *args: Any):
        return self.long_tasks.call_soon(callback, *args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any):
        return self.long_tasks.call_later(delay, callback, *args)

    def call_every(self, interval: float, callback: Callable[..., Any], *args: Any) -> IntervalHandle:
        return self.long_tasks.call_every(interval, callback, *args)

    def register_deferred(
        self,
        target: Any,
        *,
        source_ref: Optional[str] = None,
        component_name: Optional[str] = None,
    ):
        return self.lazy_loader.register(target, source_ref=source_ref, component_name=component_name)
