"""Runtime performance observability and adaptive optimization."""
from perfwatch.core.config import MonitoringPolicy, OptimizerOptions, PerformanceBudget
from perfwatch.services.capabilities import CapabilityProvider, LoopFrameScheduler, ManualVisibilityObserver
from perfwatch.services.component_registry import ComponentRegistry
from perfwatch.services.event_channel import EventChannel, Subscription
from perfwatch.services.optimizer import PerformanceOptimizer

__version__ = "1.0.0"

__all__ = [
    "CapabilityProvider",
    "ComponentRegistry",
    "EventChannel",
    "LoopFrameScheduler",
    "ManualVisibilityObserver",
    "MonitoringPolicy",
    "OptimizerOptions",
    "PerformanceBudget",
    "PerformanceOptimizer",
    "Subscription",
]
