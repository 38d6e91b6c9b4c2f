"""Tests for the PerformanceOptimizer facade."""

from unittest.mock import MagicMock

import pytest

from perfwatch.core.config import OptimizerOptions, PerformanceBudget
from perfwatch.models import AlertType, CollectorStateReason, Mutation, Priority, TimingEntry
from perfwatch.services.optimizer import PerformanceOptimizer


class TestConstruction:
    """Test option handling."""

    def test_defaults(self, capabilities):
        engine = PerformanceOptimizer(capabilities=capabilities)

        assert engine.options.enable_auto_optimization is True
        assert engine.budget == PerformanceBudget(load_time=3000, memory_usage=50, bundle_size=500, render_time=16)

    def test_camel_case_mapping(self, capabilities):
        engine = PerformanceOptimizer(
            {
                "enableMemoryMonitoring": False,
                "performanceBudget": {"loadTime": 1000, "memoryUsage": 64, "bundleSize": 250, "renderTime": 8},
            },
            capabilities=capabilities,
        )

        assert engine.options.enable_memory_monitoring is False
        assert engine.budget.load_time == 1000
        assert engine.budget.render_time == 8


class TestLifecycle:
    """Test init, collector states and cleanup."""

    @pytest.mark.asyncio
    async def test_collector_states_with_full_capabilities(self, optimizer):
        states = {state.name: state for state in optimizer.collector_states()}

        for name in ("load", "rendering", "frame-rate", "long-task", "dom-mutation", "network", "memory", "lazy-loading"):
            assert states[name].active, name
        assert states["bundle"].reason == CollectorStateReason.DISABLED

    @pytest.mark.asyncio
    async def test_missing_capabilities_are_not_errors(self, bare_capabilities):
        async with PerformanceOptimizer(OptimizerOptions(enable_bundle_analysis=False), capabilities=bare_capabilities) as engine:
            states = {state.name: state for state in engine.collector_states()}

            for name in ("load", "rendering", "frame-rate", "dom-mutation", "network", "memory", "lazy-loading"):
                assert states[name].active is False
                assert states[name].reason == CollectorStateReason.CAPABILITY_UNAVAILABLE
            assert states["long-task"].active is True
            assert engine.get_alerts() == []

    @pytest.mark.asyncio
    async def test_disabled_features(self, capabilities, memory_probe):
        options = OptimizerOptions(
            enable_auto_optimization=False,
            enable_memory_monitoring=False,
            enable_bundle_analysis=False,
            enable_lazy_loading=False,
        )
        async with PerformanceOptimizer(options, capabilities=capabilities) as engine:
            assert all(state.reason == CollectorStateReason.DISABLED for state in engine.collector_states())
            capabilities.timing.publish([TimingEntry(name="app.js", duration=9999)])
            assert engine.get_metrics() == {}
            assert capabilities.timing.subscriber_count == 0
            assert memory_probe.readings == []

    @pytest.mark.asyncio
    async def test_init_twice_is_noop(self, optimizer, capabilities):
        await optimizer.init()
        assert capabilities.timing.subscriber_count == 2

    @pytest.mark.asyncio
    async def test_cleanup_is_idempotent(self, optimizer, capabilities):
        capabilities.timing.publish([TimingEntry(name="app.js", duration=5000)])
        capabilities.mutations.publish([Mutation() for _ in range(120)])
        assert optimizer.get_metrics()
        assert optimizer.get_alerts()

        await optimizer.cleanup()
        assert optimizer.get_metrics() == {}
        assert optimizer.get_alerts() == []
        assert capabilities.timing.subscriber_count == 0
        assert capabilities.mutations.subscriber_count == 0

        await optimizer.cleanup()
        assert optimizer.get_metrics() == {}
        assert optimizer.get_alerts() == []

        capabilities.timing.publish([TimingEntry(name="late.js", duration=5000)])
        assert optimizer.get_metrics() == {}

    @pytest.mark.asyncio
    async def test_cleanup_before_init(self, capabilities):
        engine = PerformanceOptimizer(capabilities=capabilities)
        await engine.cleanup()
        assert engine.get_metrics() == {}


class TestSummary:
    """Test summary aggregation."""

    @pytest.mark.asyncio
    async def test_long_tasks_alone_yield_javascript_recommendation(self, capabilities):
        options = OptimizerOptions(
            enable_bundle_analysis=False,
            enable_memory_monitoring=False,
        )
        async with PerformanceOptimizer(options, capabilities=capabilities) as engine:
            for _ in range(6):
                engine.record_metric("runtime", "long-task", {"duration": 75, "type": "call_soon"})

            summary = engine.get_performance_summary()

            assert len(summary.recommendations) == 1
            assert summary.recommendations[0].type == "javascript"
            assert summary.recommendations[0].priority == Priority.MEDIUM
            assert summary.total_alerts == 0

    @pytest.mark.asyncio
    async def test_counts_and_budget_status(self, optimizer, capabilities):
        capabilities.timing.publish([
            TimingEntry(name="app.js", duration=10),
            TimingEntry(name="vendor.js", duration=20),
        ])
        optimizer.add_alert(AlertType.LOW_FPS, {"actual": 10, "threshold": 30})

        summary = optimizer.get_performance_summary()

        assert summary.categories == {"memory": 1, "load": 2}
        assert summary.total_metrics == 3
        assert summary.total_alerts == 1
        assert summary.budget_status["memory_usage"].status == "within"
        assert summary.budget_status["load_time"].status == "unknown"
        assert summary.budget_status["bundle_size"].status == "unknown"
        assert [r.type for r in summary.recommendations] == ["rendering"]
        assert optimizer.get_status() == summary

    @pytest.mark.asyncio
    async def test_check_budget_passthrough(self, optimizer):
        optimizer.record_metric("load", "page-load", {"duration": 4000})
        status = optimizer.check_budget("load", "page-load", 3000)
        assert status.status == "exceeded"
        assert status.percentage == pytest.approx(133.333, rel=1e-3)


class TestAlertsAndBudget:
    @pytest.mark.asyncio
    async def test_on_alert_sink(self, capabilities):
        sink = MagicMock()
        options = OptimizerOptions(enable_bundle_analysis=False)
        async with PerformanceOptimizer(options, capabilities=capabilities, on_alert=sink) as engine:
            capabilities.mutations.publish([Mutation() for _ in range(101)])

            sink.assert_called_once()
            alert = sink.call_args.args[0]
            assert alert.type == "high-dom-mutations"
            assert engine.get_alerts() == [alert]

    @pytest.mark.asyncio
    async def test_reconfigure_budget_applies_to_later_samples(self, optimizer, capabilities):
        capabilities.timing.publish([TimingEntry(name="a.js", duration=2000)])
        assert optimizer.get_alerts() == []

        optimizer.reconfigure_budget({"loadTime": 1500})
        capabilities.timing.publish([TimingEntry(name="b.js", duration=2000)])

        alerts = optimizer.get_alerts("load-time-exceeded")
        assert len(alerts) == 1
        assert alerts[0].data["budget"] == 1500
        assert optimizer.budget.memory_usage == 50

    @pytest.mark.asyncio
    async def test_alert_log_is_bounded(self, optimizer, capabilities):
        for _ in range(60):
            capabilities.mutations.publish([Mutation() for _ in range(101)])
        assert len(optimizer.get_alerts()) == 50
