"""Tests for the signal collectors."""

import asyncio
from unittest.mock import MagicMock

import pytest

from perfwatch.core.config import OptimizerOptions, PerformanceBudget
from perfwatch.models import CollectorStateReason, Mutation, NavigationTiming, TimingEntry
from perfwatch.services.capabilities import CapabilityProvider
from perfwatch.services.event_channel import EventChannel
from perfwatch.services.optimizer import PerformanceOptimizer


def _mutations(count):
    return [Mutation(kind="child-list", target=f"node-{i}") for i in range(count)]


class TestLoadCollector:
    """Test load timing and budget alerts."""

    @pytest.mark.asyncio
    async def test_slow_entry_raises_single_alert(self, capabilities):
        options = OptimizerOptions(
            enable_bundle_analysis=False,
            performance_budget=PerformanceBudget(load_time=3000),
        )
        async with PerformanceOptimizer(options, capabilities=capabilities) as engine:
            capabilities.timing.publish([TimingEntry(name="app.js", entry_type="resource", duration=4000)])

            alerts = engine.get_alerts("load-time-exceeded")
            assert len(alerts) == 1
            assert alerts[0].data == {"metric": "app.js", "actual": 4000, "budget": 3000}
            sample = engine.get_metrics("load")["app.js"][0]
            assert sample.duration == 4000
            assert sample.type == "resource"

    @pytest.mark.asyncio
    async def test_fast_entry_and_paint_entry(self, optimizer, capabilities):
        capabilities.timing.publish([
            TimingEntry(name="api", entry_type="measure", duration=120),
            TimingEntry(name="first-paint", entry_type="paint", start_time=40, duration=0),
        ])

        assert optimizer.get_alerts() == []
        assert list(optimizer.get_metrics("load")) == ["api"]
        paint = optimizer.get_metrics("rendering")["first-paint"][0]
        assert paint.start_time == 40
        assert paint.duration == 0

    @pytest.mark.asyncio
    async def test_navigation_timing_records_page_load(self, frames, memory_probe):
        provider = CapabilityProvider(
            timing=EventChannel("timing"),
            navigation_timing=NavigationTiming(
                navigation_start=0,
                response_start=150,
                dom_content_loaded_end=900,
                load_event_end=3500,
            ),
        )
        options = OptimizerOptions(enable_bundle_analysis=False)
        async with PerformanceOptimizer(options, capabilities=provider) as engine:
            sample = engine.get_metrics("load")["page-load"][0]
            assert sample.duration == 3500
            assert sample.dom_content_loaded == 900
            assert sample.first_paint == 150
            assert len(engine.get_alerts("load-time-exceeded")) == 1
            assert engine.get_performance_summary().budget_status["load_time"].status == "exceeded"


class TestFrameRateCollector:
    """Test the rolling frame window."""

    @pytest.mark.asyncio
    async def test_low_fps_alert(self, optimizer, frames):
        frames.fire(0)
        for i in range(1, 21):
            frames.fire(i * 50)

        sample = optimizer.get_metrics("runtime")["fps"][0]
        assert sample.value == 20
        alerts = optimizer.get_alerts("low-fps")
        assert len(alerts) == 1
        assert alerts[0].data == {"actual": 20, "threshold": 30}

    @pytest.mark.asyncio
    async def test_healthy_fps_and_window_reset(self, optimizer, frames):
        frames.fire(0)
        for i in range(1, 101):
            frames.fire(i * 10)
        for i in range(1, 51):
            frames.fire(1000 + i * 20)

        values = [s.value for s in optimizer.get_metrics("runtime")["fps"]]
        assert values == [100, 50]
        assert optimizer.get_alerts("low-fps") == []

    @pytest.mark.asyncio
    async def test_frames_stop_after_cleanup(self, optimizer, frames):
        assert frames.pending is not None
        await optimizer.cleanup()
        assert frames.pending is None
        assert frames.cancelled == 1


class TestLongTaskCollector:
    """Test explicit long-task instrumentation."""

    @pytest.fixture
    def fake_clock(self, monkeypatch):
        readings = []

        def _now():
            return readings.pop(0)

        monkeypatch.setattr("perfwatch.services.collectors.long_task.now_ms", _now)
        return readings

    @pytest.mark.asyncio
    async def test_call_soon_records_long_callback(self, optimizer, fake_clock):
        fake_clock.extend([0.0, 80.0])
        callback = MagicMock()

        optimizer.call_soon(callback, "arg")
        await asyncio.sleep(0)

        callback.assert_called_once_with("arg")
        sample = optimizer.get_metrics("runtime")["long-task"][0]
        assert sample.duration == 80.0
        assert sample.type == "call_soon"

    @pytest.mark.asyncio
    async def test_short_callback_not_recorded(self, optimizer, fake_clock):
        fake_clock.extend([0.0, 50.0])
        optimizer.call_later(0, MagicMock())
        await asyncio.sleep(0.01)

        assert "long-task" not in optimizer.get_metrics("runtime")

    @pytest.mark.asyncio
    async def test_track_decorator_sync_and_async(self, optimizer, fake_clock):
        fake_clock.extend([0.0, 120.0, 10.0, 75.0])

        @optimizer.track_long_tasks("render")
        def render(x):
            return x * 2

        @optimizer.track_long_tasks("parse")
        async def parse(x):
            return x + 1

        assert render(2) == 4
        assert await parse(2) == 3

        samples = optimizer.get_metrics("runtime")["long-task"]
        assert [(s.type, s.duration) for s in samples] == [("render", 120.0), ("parse", 65.0)]

    @pytest.mark.asyncio
    async def test_coroutine_reports_longest_step(self, optimizer, fake_clock):
        fake_clock.extend([0.0, 30.0, 100.0, 170.0])

        @optimizer.track_long_tasks("sync-batch")
        async def batch():
            await asyncio.sleep(0)
            return "done"

        assert await batch() == "done"

        samples = optimizer.get_metrics("runtime")["long-task"]
        assert [(s.type, s.duration) for s in samples] == [("sync-batch", 70.0)]

    @pytest.mark.asyncio
    async def test_awaiting_io_is_not_a_long_task(self, optimizer):
        @optimizer.track_long_tasks("io")
        async def fetch_remote():
            await asyncio.sleep(0.1)
            return 200

        results = await asyncio.gather(*(fetch_remote() for _ in range(6)))

        assert results == [200] * 6
        assert "long-task" not in optimizer.get_metrics("runtime")
        assert "javascript" not in [r.type for r in optimizer.generate_recommendations()]

    @pytest.mark.asyncio
    async def test_coroutine_errors_and_cancellation_propagate(self, optimizer):
        @optimizer.track_long_tasks()
        async def failing():
            await asyncio.sleep(0)
            raise ValueError("bad payload")

        @optimizer.track_long_tasks()
        async def waiting():
            await asyncio.sleep(10)

        with pytest.raises(ValueError):
            await failing()

        task = asyncio.ensure_future(waiting())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_callback_errors_reach_caller_and_are_measured(self, optimizer, fake_clock):
        fake_clock.extend([0.0, 90.0])

        @optimizer.track_long_tasks()
        def explode():
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            explode()
        assert optimizer.get_metrics("runtime")["long-task"][0].type == "task"

    @pytest.mark.asyncio
    async def test_call_every_repeats_until_cancelled(self, optimizer):
        calls = []
        handle = optimizer.call_every(0.001, calls.append, "tick")
        await asyncio.sleep(0.05)
        handle.cancel()
        seen = len(calls)
        await asyncio.sleep(0.02)

        assert seen >= 2
        assert len(calls) == seen


class TestDomMutationCollector:
    """Test batched mutation handling."""

    @pytest.mark.asyncio
    async def test_large_batch_alerts(self, optimizer, capabilities):
        capabilities.mutations.publish(_mutations(150))

        alerts = optimizer.get_alerts("high-dom-mutations")
        assert len(alerts) == 1
        assert alerts[0].data == {"count": 150, "threshold": 100}
        assert optimizer.get_metrics("runtime")["dom-mutations"][0].count == 150

    @pytest.mark.asyncio
    async def test_threshold_is_strict(self, optimizer, capabilities):
        capabilities.mutations.publish(_mutations(100))

        assert optimizer.get_alerts() == []
        assert "dom-mutations" not in optimizer.get_metrics("runtime")

    @pytest.mark.asyncio
    async def test_handler_failure_only_disables_this_collector(self, optimizer, capabilities):
        capabilities.mutations.publish(object())

        state = optimizer.dom_mutations.state
        assert state.active is False
        assert state.reason == CollectorStateReason.COLLECTOR_FAILURE
        assert capabilities.mutations.subscriber_count == 0

        capabilities.timing.publish([TimingEntry(name="app.js", duration=10)])
        assert "app.js" in optimizer.get_metrics("load")


class FakeResponse:
    def __init__(self, status_code=200, headers=None):
        self.status_code = status_code
        self.headers = headers or {}


class TestNetworkCollector:
    """Test fetch instrumentation."""

    @pytest.mark.asyncio
    async def test_successful_fetch_recorded(self, optimizer):
        async def fetch(url, **kwargs):
            return FakeResponse(200, {"content-length": "512"})

        fetch = optimizer.instrument_fetch(fetch)
        response = await fetch("https://example.com/data")

        assert response.status_code == 200
        sample = optimizer.get_metrics("network")["fetch"][0]
        assert sample.url == "https://example.com/data"
        assert sample.status == 200
        assert sample.size == 512
        assert sample.duration >= 0

    @pytest.mark.asyncio
    async def test_failed_fetch_recorded_and_reraised(self, optimizer):
        async def fetch(url):
            raise ConnectionError("connection refused")

        fetch = optimizer.instrument_fetch(fetch)
        with pytest.raises(ConnectionError):
            await fetch(url="https://example.com/down")

        sample = optimizer.get_metrics("network")["fetch-error"][0]
        assert sample.url == "https://example.com/down"
        assert sample.error == "connection refused"

    @pytest.mark.asyncio
    async def test_status_attribute_and_missing_length(self, optimizer):
        class AiohttpStyle:
            status = 404
            headers = {}

        async def fetch(url):
            return AiohttpStyle()

        await optimizer.instrument_fetch(fetch)("/missing")
        sample = optimizer.get_metrics("network")["fetch"][0]
        assert sample.status == 404
        assert sample.size is None

    @pytest.mark.asyncio
    async def test_without_network_hook_fetch_is_untouched(self, bare_capabilities):
        async def fetch(url):
            return FakeResponse()

        async with PerformanceOptimizer(OptimizerOptions(enable_bundle_analysis=False), capabilities=bare_capabilities) as engine:
            assert engine.instrument_fetch(fetch) is fetch


class TestMemoryCollector:
    """Test heap sampling and its two independent alerts."""

    @pytest.mark.asyncio
    async def test_budget_alert_without_percentage_alert(self, capabilities, memory_probe):
        memory_probe.set(used_mb=60, total_mb=80, limit_mb=100)
        options = OptimizerOptions(
            enable_bundle_analysis=False,
            performance_budget=PerformanceBudget(memory_usage=50),
        )
        async with PerformanceOptimizer(options, capabilities=capabilities) as engine:
            sample = engine.get_metrics("memory")["heap-usage"][0]
            assert sample.used == 60
            assert sample.total == 80
            assert sample.limit == 100
            assert sample.percentage == pytest.approx(60)

            budget_alerts = engine.get_alerts("memory-budget-exceeded")
            assert len(budget_alerts) == 1
            assert budget_alerts[0].data == {"actual": 60, "budget": 50}
            assert engine.get_alerts("high-memory-usage") == []

    @pytest.mark.asyncio
    async def test_both_alerts_from_one_sample(self, capabilities, memory_probe):
        memory_probe.set(used_mb=90, total_mb=95, limit_mb=100)
        async with PerformanceOptimizer(OptimizerOptions(enable_bundle_analysis=False), capabilities=capabilities) as engine:
            assert len(engine.get_alerts("memory-budget-exceeded")) == 1
            high = engine.get_alerts("high-memory-usage")
            assert len(high) == 1
            assert high[0].data["percentage"] == pytest.approx(90)
            assert high[0].data["threshold"] == 80

    @pytest.mark.asyncio
    async def test_periodic_sampling(self, capabilities, memory_probe):
        options = OptimizerOptions(
            enable_bundle_analysis=False,
            policy={"memory_interval_s": 0.01},
        )
        async with PerformanceOptimizer(options, capabilities=capabilities) as engine:
            await asyncio.sleep(0.05)
            assert len(engine.get_metrics("memory")["heap-usage"]) >= 2

        taken = len(memory_probe.readings)
        await asyncio.sleep(0.03)
        assert len(memory_probe.readings) == taken

    @pytest.mark.asyncio
    async def test_probe_failure_is_isolated(self, capabilities):
        capabilities.memory_probe = MagicMock(side_effect=OSError("no procfs"))
        async with PerformanceOptimizer(OptimizerOptions(enable_bundle_analysis=False), capabilities=capabilities) as engine:
            assert engine.memory.state.reason == CollectorStateReason.COLLECTOR_FAILURE
            assert engine.memory.state.error == "no procfs"
            assert engine.load.active


class TestBundleCollector:
    @pytest.mark.asyncio
    async def test_bundle_over_budget(self, bare_capabilities):
        options = OptimizerOptions(performance_budget=PerformanceBudget(bundle_size=0.001))
        async with PerformanceOptimizer(options, capabilities=bare_capabilities) as engine:
            sample = engine.get_metrics("bundle")["estimated-size"][0]
            assert sample.size > 0
            assert sample.modules >= 1
            alerts = engine.get_alerts("bundle-size-exceeded")
            assert len(alerts) == 1
            assert alerts[0].data["budget"] == 0.001

    @pytest.mark.asyncio
    async def test_unknown_prefix_measures_nothing(self, bare_capabilities):
        options = OptimizerOptions(bundle_module_prefixes=["no_such_package_here"])
        async with PerformanceOptimizer(options, capabilities=bare_capabilities) as engine:
            sample = engine.get_metrics("bundle")["estimated-size"][0]
            assert sample.size == 0
            assert sample.modules == 0
            assert engine.get_alerts() == []
