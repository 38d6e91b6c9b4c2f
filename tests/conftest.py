# Pytest configuration and fixtures
from typing import Callable, List, Optional

import pytest
import pytest_asyncio

from perfwatch.core.config import OptimizerOptions
from perfwatch.models import MemoryReading
from perfwatch.services.capabilities import CapabilityProvider, ManualVisibilityObserver
from perfwatch.services.event_channel import EventChannel
from perfwatch.services.optimizer import PerformanceOptimizer

MB = 1024 * 1024


class FakeFrameScheduler:
    """Frame scheduler whose frames are fired by the test."""

    def __init__(self) -> None:
        self.pending: Optional[Callable[[float], None]] = None
        self.requests = 0
        self.cancelled = 0

    def request_frame(self, callback):
        self.requests += 1
        self.pending = callback
        return self.requests

    def cancel_frame(self, handle) -> None:
        self.cancelled += 1
        self.pending = None

    def fire(self, timestamp: float) -> None:
        callback, self.pending = self.pending, None
        if callback is not None:
            callback(timestamp)


class FakeMemoryProbe:
    def __init__(self, used_mb: float = 10, total_mb: float = 20, limit_mb: float = 100) -> None:
        self.readings: List[MemoryReading] = []
        self.set(used_mb, total_mb, limit_mb)

    def set(self, used_mb: float, total_mb: float, limit_mb: float) -> None:
        self.reading = MemoryReading(
            used_bytes=used_mb * MB,
            total_bytes=total_mb * MB,
            limit_bytes=limit_mb * MB,
        )

    def __call__(self) -> MemoryReading:
        self.readings.append(self.reading)
        return self.reading


@pytest.fixture
def frames():
    return FakeFrameScheduler()


@pytest.fixture
def memory_probe():
    return FakeMemoryProbe()


@pytest.fixture
def capabilities(frames, memory_probe):
    """Provider exposing every hook, all driven by the test."""
    return CapabilityProvider(
        timing=EventChannel("timing"),
        frames=frames,
        mutations=EventChannel("mutations"),
        visibility=ManualVisibilityObserver(),
        memory_probe=memory_probe,
        network_hook=True,
    )


@pytest.fixture
def bare_capabilities():
    """Provider for a host without any observation hooks."""
    return CapabilityProvider()


@pytest.fixture
def options():
    return OptimizerOptions(enable_bundle_analysis=False)


@pytest_asyncio.fixture
async def optimizer(options, capabilities):
    engine = PerformanceOptimizer(options, capabilities=capabilities)
    await engine.init()
    yield engine
    await engine.cleanup()
