"""Engine services: collectors, storage, evaluation and actuation."""
from .optimizer import PerformanceOptimizer
from .registry import ServiceRegistry

__all__ = ["PerformanceOptimizer", "ServiceRegistry"]
